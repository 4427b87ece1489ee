"""评分标准相关的 Pydantic 模型。

``RubricDraft`` 是教师编辑器提交的原始内容，未经校验；``Rubric`` 是校验器
输出的规范形式：评分项有序、带 key，``total_points`` 由系统计算。
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field


class CriterionDraft(BaseModel):
    """编辑器中的单个评分项。"""

    name: str = ""
    description: str = ""
    max_points: int = Field(default=0, ge=0)


class RubricDraft(BaseModel):
    """待校验的评分标准。

    ``total_points`` 只为兼容客户端的旧载荷而保留，校验时总是重新求和。
    """

    name: str = ""
    description: str = ""
    criteria: List[CriterionDraft] = Field(default_factory=list)
    total_points: Optional[int] = None


class Criterion(BaseModel):
    name: str
    description: str = ""
    max_points: int = Field(ge=0)
    key: str


class Rubric(BaseModel):
    name: str
    description: str = ""
    criteria: List[Criterion]
    total_points: int
