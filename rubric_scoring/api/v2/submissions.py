"""作业提交 API：尝试次数与重新提交资格。

资格与历史每次读取都根据当前提交记录重新计算，不做缓存。
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from rubric_scoring.db import get_db
from rubric_scoring.models import Assignment, Submission, SubmissionStatus
from rubric_scoring.schemas.submission import (
    ResubmissionState,
    SubmissionAttempt,
    SubmissionHistory,
)
from rubric_scoring.services.resubmission import (
    SubmissionStateError,
    advance_status,
    resubmission_eligibility,
    start_next_attempt,
    summarize_history,
)

router = APIRouter()


# === Schemas ===

class SubmissionCreate(BaseModel):
    assignment_id: int
    student_id: int
    content_json: Dict[str, Any] = Field(default_factory=dict)


class SubmissionResponse(BaseModel):
    id: int
    assignment_id: int
    student_id: int
    version: int
    status: SubmissionStatus
    content_json: Dict[str, Any]
    score: Optional[float]
    created_at: datetime
    submitted_at: Optional[datetime]
    graded_at: Optional[datetime]

    model_config = {"from_attributes": True}


# === Helpers ===

def _get_assignment_or_404(db: Session, assignment_id: int) -> Assignment:
    assignment = db.query(Assignment).filter(Assignment.id == assignment_id).first()
    if not assignment:
        raise HTTPException(status_code=404, detail="assignment not found")
    return assignment


def _load_attempts(db: Session, assignment_id: int, student_id: int) -> List[SubmissionAttempt]:
    rows = (
        db.query(Submission)
        .filter(
            Submission.assignment_id == assignment_id,
            Submission.student_id == student_id,
        )
        .order_by(Submission.version.asc())
        .all()
    )
    return [SubmissionAttempt.model_validate(row) for row in rows]


# === API 端点 ===

@router.get("/eligibility", response_model=ResubmissionState)
async def get_resubmission_eligibility(
    assignment_id: int,
    student_id: int,
    db: Session = Depends(get_db),
):
    """学生在某作业下剩余的提交次数及是否可以重新提交。"""
    assignment = _get_assignment_or_404(db, assignment_id)
    attempts = _load_attempts(db, assignment_id, student_id)
    return resubmission_eligibility(assignment.max_resubmissions, attempts)


@router.get("/history", response_model=SubmissionHistory)
async def get_submission_history(
    assignment_id: int,
    student_id: int,
    db: Session = Depends(get_db),
):
    """版本时间线：全部尝试及其得分。"""
    _get_assignment_or_404(db, assignment_id)
    return summarize_history(_load_attempts(db, assignment_id, student_id))


@router.post("/", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
async def create_submission(
    data: SubmissionCreate,
    db: Session = Depends(get_db),
):
    """开始新一次尝试（草稿）。"""
    assignment = _get_assignment_or_404(db, data.assignment_id)
    attempts = _load_attempts(db, data.assignment_id, data.student_id)
    try:
        attempt = start_next_attempt(assignment.max_resubmissions, attempts)
    except SubmissionStateError as exc:
        raise HTTPException(status_code=400, detail=exc.to_detail()) from exc

    submission = Submission(
        assignment_id=data.assignment_id,
        student_id=data.student_id,
        version=attempt.version,
        status=attempt.status,
        content_json=data.content_json,
    )
    db.add(submission)
    try:
        db.commit()
    except IntegrityError as exc:
        # 并发请求抢先写入了同一版本号
        db.rollback()
        raise HTTPException(status_code=409, detail="submission version already exists") from exc
    db.refresh(submission)
    return submission


@router.post("/{submission_id}/submit", response_model=SubmissionResponse)
async def submit_submission(
    submission_id: int,
    db: Session = Depends(get_db),
):
    """正式提交（从草稿变为已提交）。"""
    submission = db.query(Submission).filter(Submission.id == submission_id).first()
    if not submission:
        raise HTTPException(status_code=404, detail="submission not found")

    try:
        submitted = advance_status(
            SubmissionAttempt.model_validate(submission), SubmissionStatus.SUBMITTED
        )
    except SubmissionStateError as exc:
        raise HTTPException(status_code=400, detail=exc.to_detail()) from exc

    submission.status = submitted.status
    submission.submitted_at = submitted.submitted_at
    db.commit()
    db.refresh(submission)
    return submission
