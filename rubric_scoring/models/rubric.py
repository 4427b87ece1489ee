"""评分标准模型定义。"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.types import JSON

from rubric_scoring.db import Base


class Rubric(Base):
    """教师维护的评分标准。

    只保存校验通过的结构，``total_points`` 由校验器按各项满分求和得出。
    """

    __tablename__ = "rubrics"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text)

    # 评分项列表，按声明顺序保存
    # 格式: [{"name": "Thesis", "description": "...", "max_points": 25}]
    criteria_json: Mapped[List[Dict[str, Any]]] = mapped_column(JSON, default=list)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    assignments = relationship("Assignment", back_populates="rubric")

    def to_record(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description or "",
            "criteria": self.criteria_json or [],
            "total_points": self.total_points,
        }

    def __repr__(self) -> str:
        return f"<Rubric(id={self.id}, name={self.name}, total_points={self.total_points})>"
