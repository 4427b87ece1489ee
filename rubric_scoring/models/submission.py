"""提交模型定义。"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, Enum, Float, ForeignKey, Integer, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from rubric_scoring.db import Base
from rubric_scoring.models.enums import SubmissionStatus


class Submission(Base):
    """作业提交模型 - 每行对应一次尝试（attempt）。

    同一学生在同一作业下的提交按 ``version`` 从 1 开始严格递增。
    """

    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("assignment_id", "student_id", "version", name="uq_submission_version"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # 关联
    assignment_id: Mapped[int] = mapped_column(
        ForeignKey("assignments.id", ondelete="CASCADE"), nullable=False
    )
    student_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    status: Mapped[SubmissionStatus] = mapped_column(
        Enum(SubmissionStatus), default=SubmissionStatus.DRAFT, nullable=False
    )

    # 格式: {"text": "..."}
    content_json: Mapped[Dict[str, Any]] = mapped_column(JSON, default=dict)

    # 最终得分（教师确认后写入）
    score: Mapped[Optional[float]] = mapped_column(Float)
    # 各评分项得分，键为评分项 key
    criterion_scores_json: Mapped[Dict[str, float]] = mapped_column(JSON, default=dict)

    # AI 批改协作方给出的原始反馈与总分
    ai_feedback: Mapped[Optional[str]] = mapped_column(Text)
    ai_score: Mapped[Optional[float]] = mapped_column(Float)

    # 时间戳
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    submitted_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    graded_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    assignment = relationship("Assignment", back_populates="submissions")

    def __repr__(self) -> str:
        return (
            f"<Submission(id={self.id}, assignment_id={self.assignment_id}, "
            f"version={self.version}, status={self.status.value})>"
        )
