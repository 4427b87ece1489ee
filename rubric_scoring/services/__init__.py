"""评分引擎核心：纯函数，不做 I/O，不持有全局状态。"""
