"""评分标准（Rubric）评分引擎。"""

__version__ = "0.1.0"
