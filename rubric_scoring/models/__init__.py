"""核心 SQLAlchemy 模型定义。"""

from rubric_scoring.models.assignment import Assignment
from rubric_scoring.models.enums import ScoreBucket, SubmissionStatus
from rubric_scoring.models.rubric import Rubric
from rubric_scoring.models.submission import Submission

__all__ = [
    "Assignment",
    "Rubric",
    "ScoreBucket",
    "Submission",
    "SubmissionStatus",
]
