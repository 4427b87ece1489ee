"""评分引擎的请求/响应与领域模型。"""
