"""评分相关枚举定义 - 提交状态、得分档位。"""

import enum


class SubmissionStatus(str, enum.Enum):
    """提交状态。

    状态只能沿 draft -> submitted -> graded 单向推进，graded 为终态。
    """
    DRAFT = "draft"              # 草稿
    SUBMITTED = "submitted"      # 已提交
    GRADED = "graded"            # 已评分


class ScoreBucket(str, enum.Enum):
    """得分档位，按百分比划分。"""
    HIGH = "high"                # >= 80
    MEDIUM = "medium"            # 60-79
    LOW = "low"                  # < 60
