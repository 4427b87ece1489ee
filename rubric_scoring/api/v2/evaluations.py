"""评价 API：AI 反馈切分、得分汇总与教师确认评分。"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from rubric_scoring.config import get_settings
from rubric_scoring.db import get_db
from rubric_scoring.models import Assignment, Rubric as RubricRecord, Submission, SubmissionStatus
from rubric_scoring.schemas.grading import FeedbackSegment, ScoreSummary
from rubric_scoring.schemas.rubric import CriterionDraft
from rubric_scoring.schemas.submission import SubmissionAttempt
from rubric_scoring.services.criterion_keys import (
    criterion_identity,
    find_key_collision,
    normalize_criterion_key,
)
from rubric_scoring.services.feedback_segmenter import segment_feedback, suggest_scores
from rubric_scoring.services.resubmission import SubmissionStateError, advance_status
from rubric_scoring.services.rubric_validation import (
    DuplicateCriterionKey,
    RubricValidationError,
    rubric_from_record,
)
from rubric_scoring.services.score_aggregator import aggregate_scores, clamp_score

router = APIRouter()

OVERALL_CRITERION = "Overall"


# === Schemas ===

class CriteriaSource(BaseModel):
    """评分项来源：已保存的评分标准，或直接给出的评分项列表。"""

    rubric_id: Optional[int] = None
    criteria: List[CriterionDraft] = Field(default_factory=list)


class SegmentRequest(CriteriaSource):
    feedback: str = ""


class SegmentResponse(BaseModel):
    segments: Dict[str, FeedbackSegment]
    suggested_scores: Dict[str, float]


class SubmissionFeedbackResponse(SegmentResponse):
    submission_id: int
    ai_score: Optional[float] = None


class ScoreRequest(CriteriaSource):
    scores: Dict[str, Optional[float]] = Field(default_factory=dict)
    max_total: Optional[float] = None


class GradeRequest(BaseModel):
    # 留空时采用 AI 反馈中的建议分数
    scores: Dict[str, Optional[float]] = Field(default_factory=dict)
    # 作业未关联评分标准时使用的总分，留空时采用 AI 总分
    score: Optional[float] = None


class GradeResponse(BaseModel):
    submission_id: int
    version: int
    status: SubmissionStatus
    criterion_scores: Dict[str, float]
    summary: ScoreSummary
    graded_at: Optional[datetime]


# === Helpers ===

def _load_rubric_criteria(db: Session, rubric_id: int) -> Tuple[List[Any], float]:
    record = db.query(RubricRecord).filter(RubricRecord.id == rubric_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="rubric not found")
    try:
        rubric = rubric_from_record(record.to_record())
    except RubricValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.to_detail()) from exc
    return list(rubric.criteria), float(rubric.total_points)


def _resolve_criteria(db: Session, source: CriteriaSource) -> Tuple[List[Any], Optional[float]]:
    if source.rubric_id is not None:
        return _load_rubric_criteria(db, source.rubric_id)
    if not source.criteria:
        raise HTTPException(status_code=400, detail="rubric_id or criteria is required")
    collision = find_key_collision(criterion.name for criterion in source.criteria)
    if collision is not None:
        raise HTTPException(status_code=400, detail=DuplicateCriterionKey(*collision).to_detail())
    return list(source.criteria), None


def _submission_context(db: Session, submission_id: int) -> Tuple[Submission, Assignment]:
    submission = db.query(Submission).filter(Submission.id == submission_id).first()
    if not submission:
        raise HTTPException(status_code=404, detail="submission not found")
    assignment = db.query(Assignment).filter(Assignment.id == submission.assignment_id).first()
    if not assignment:
        raise HTTPException(status_code=404, detail="assignment not found")
    return submission, assignment


def _overall_criterion(assignment: Assignment) -> Dict[str, Any]:
    """没有评分标准的作业按单一总分项处理。"""
    max_points = assignment.total_points or get_settings().default_max_total
    return {"name": OVERALL_CRITERION, "max_points": max_points}


def _clamped_scores(criteria: List[Any], scores: Dict[str, Any]) -> Dict[str, float]:
    clamped: Dict[str, float] = {}
    for criterion in criteria:
        _name, key, max_points = criterion_identity(criterion)
        clamped[key] = clamp_score(scores.get(key), max_points or 0.0)
    return clamped


# === API 端点 ===

@router.post("/segment", response_model=SegmentResponse)
async def segment_ai_feedback(
    data: SegmentRequest,
    db: Session = Depends(get_db),
):
    """把一段 AI 反馈按评分项切分。"""
    criteria, _max_total = _resolve_criteria(db, data)
    return {
        "segments": segment_feedback(data.feedback, criteria),
        "suggested_scores": suggest_scores(data.feedback, criteria),
    }


@router.post("/score", response_model=ScoreSummary)
async def score_criteria(
    data: ScoreRequest,
    db: Session = Depends(get_db),
):
    """汇总各评分项得分，超出满分的输入会被截断。"""
    criteria, rubric_total = _resolve_criteria(db, data)
    max_total = data.max_total if data.max_total is not None else rubric_total
    return aggregate_scores(criteria, data.scores, max_total)


@router.get("/{submission_id}/feedback", response_model=SubmissionFeedbackResponse)
async def get_submission_feedback(
    submission_id: int,
    db: Session = Depends(get_db),
):
    """按评分项展示已保存的 AI 反馈及建议分数。"""
    submission, assignment = _submission_context(db, submission_id)
    if assignment.rubric_id is None:
        raise HTTPException(status_code=400, detail="assignment has no rubric")
    criteria, _total_points = _load_rubric_criteria(db, assignment.rubric_id)
    feedback = submission.ai_feedback or ""
    return {
        "submission_id": submission.id,
        "ai_score": submission.ai_score,
        "segments": segment_feedback(feedback, criteria),
        "suggested_scores": suggest_scores(feedback, criteria),
    }


@router.post("/{submission_id}/grade", response_model=GradeResponse)
async def grade_submission(
    submission_id: int,
    data: GradeRequest,
    db: Session = Depends(get_db),
):
    """教师确认评分，提交状态变为已评分。"""
    submission, assignment = _submission_context(db, submission_id)

    scores: Dict[str, Any] = dict(data.scores)
    if assignment.rubric_id is not None:
        criteria, total_points = _load_rubric_criteria(db, assignment.rubric_id)
        if not scores:
            scores = suggest_scores(submission.ai_feedback or "", criteria)
    else:
        overall = _overall_criterion(assignment)
        criteria, total_points = [overall], float(overall["max_points"])
        overall_score = data.score if data.score is not None else submission.ai_score
        if overall_score is None:
            raise HTTPException(status_code=400, detail="score is required")
        scores = {normalize_criterion_key(OVERALL_CRITERION): overall_score}

    attempt = SubmissionAttempt.model_validate(submission)
    try:
        graded = advance_status(attempt, SubmissionStatus.GRADED)
    except SubmissionStateError as exc:
        raise HTTPException(status_code=400, detail=exc.to_detail()) from exc

    summary = aggregate_scores(criteria, scores, total_points)
    submission.status = graded.status
    submission.graded_at = graded.graded_at
    submission.score = summary.total
    submission.criterion_scores_json = _clamped_scores(criteria, scores)
    db.commit()
    db.refresh(submission)

    return {
        "submission_id": submission.id,
        "version": submission.version,
        "status": submission.status,
        "criterion_scores": submission.criterion_scores_json,
        "summary": summary,
        "graded_at": submission.graded_at,
    }
