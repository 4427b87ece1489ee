"""提交尝试与重新提交资格的模型。"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from rubric_scoring.models.enums import SubmissionStatus


class SubmissionAttempt(BaseModel):
    """一次提交尝试。可直接由 ORM 的 ``Submission`` 行构造。"""

    version: int = Field(ge=1)
    status: SubmissionStatus = SubmissionStatus.DRAFT
    score: Optional[float] = None
    submitted_at: Optional[datetime] = None
    graded_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ResubmissionState(BaseModel):
    max_attempts: int
    used_attempts: int
    remaining_attempts: int
    can_resubmit: bool


class SubmissionHistory(BaseModel):
    """版本时间线所需的汇总信息。"""

    versions: List[SubmissionAttempt] = Field(default_factory=list)
    latest_score: Optional[float] = None
    best_score: Optional[float] = None
    graded_count: int = 0
