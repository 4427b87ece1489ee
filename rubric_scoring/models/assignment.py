"""作业模型定义。"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rubric_scoring.db import Base


class Assignment(Base):
    """引用评分标准的作业，只保留评分引擎关心的字段。"""

    __tablename__ = "assignments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    rubric_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("rubrics.id", ondelete="SET NULL")
    )
    # 允许的重新提交次数，首次提交不计入
    max_resubmissions: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # 未关联评分标准时的满分
    total_points: Mapped[Optional[int]] = mapped_column(Integer)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    rubric = relationship("Rubric", back_populates="assignments")
    submissions = relationship("Submission", back_populates="assignment", cascade="all, delete-orphan")

    def __repr__(self) -> str:
        return f"<Assignment(id={self.id}, title={self.title})>"
