"""反馈切分与得分汇总的输出模型。"""

from __future__ import annotations

from pydantic import BaseModel

from rubric_scoring.models.enums import ScoreBucket


class FeedbackSegment(BaseModel):
    """归属到某个评分项的一段 AI 反馈原文。"""

    criterion_name: str
    text: str


class ScoreSummary(BaseModel):
    """汇总结果，只从输入派生，不单独持久化。"""

    total: float
    max_total: float
    percentage: int
    bucket: ScoreBucket
