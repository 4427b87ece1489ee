"""评分标准 API：保存前必须通过校验，总分由服务端计算。"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from rubric_scoring.db import get_db
from rubric_scoring.models import Rubric as RubricRecord
from rubric_scoring.schemas.rubric import Rubric, RubricDraft
from rubric_scoring.services.rubric_validation import (
    RubricValidationError,
    criteria_by_key,
    rubric_from_record,
    rubric_to_record,
    validate_rubric,
)

router = APIRouter()


# === Schemas ===

class RubricResponse(Rubric):
    id: int
    criteria_by_key: Dict[str, Dict[str, Any]]
    created_at: datetime
    updated_at: datetime


# === Helpers ===

def _validate_or_400(draft: RubricDraft) -> Rubric:
    try:
        return validate_rubric(draft)
    except RubricValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.to_detail()) from exc


def _get_record_or_404(db: Session, rubric_id: int) -> RubricRecord:
    record = db.query(RubricRecord).filter(RubricRecord.id == rubric_id).first()
    if not record:
        raise HTTPException(status_code=404, detail="rubric not found")
    return record


def _apply(record: RubricRecord, rubric: Rubric) -> None:
    payload = rubric_to_record(rubric)
    record.name = payload["name"]
    record.description = payload["description"]
    record.criteria_json = payload["criteria"]
    record.total_points = payload["total_points"]


def _build_rubric_response(record: RubricRecord) -> RubricResponse:
    # 库中记录可能早于当前校验规则写入
    try:
        rubric = rubric_from_record(record.to_record())
    except RubricValidationError as exc:
        raise HTTPException(status_code=400, detail=exc.to_detail()) from exc
    return RubricResponse(
        id=record.id,
        criteria_by_key=criteria_by_key(rubric),
        created_at=record.created_at,
        updated_at=record.updated_at,
        **rubric.model_dump(),
    )


# === API 端点 ===

@router.post("/validate", response_model=Rubric)
async def validate_rubric_draft(data: RubricDraft):
    """只校验、不入库，供编辑器实时提示。"""
    return _validate_or_400(data)


@router.post("/", response_model=RubricResponse, status_code=status.HTTP_201_CREATED)
async def create_rubric(
    data: RubricDraft,
    db: Session = Depends(get_db),
):
    """创建评分标准。"""
    rubric = _validate_or_400(data)
    record = RubricRecord()
    _apply(record, rubric)
    db.add(record)
    db.commit()
    db.refresh(record)
    return _build_rubric_response(record)


@router.get("/{rubric_id}", response_model=RubricResponse)
async def get_rubric(
    rubric_id: int,
    db: Session = Depends(get_db),
):
    record = _get_record_or_404(db, rubric_id)
    return _build_rubric_response(record)


@router.put("/{rubric_id}", response_model=RubricResponse)
async def update_rubric(
    rubric_id: int,
    data: RubricDraft,
    db: Session = Depends(get_db),
):
    """整体替换评分标准，同样需要重新校验。"""
    record = _get_record_or_404(db, rubric_id)
    rubric = _validate_or_400(data)
    _apply(record, rubric)
    db.commit()
    db.refresh(record)
    return _build_rubric_response(record)


@router.delete("/{rubric_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_rubric(
    rubric_id: int,
    db: Session = Depends(get_db),
):
    record = _get_record_or_404(db, rubric_id)
    db.delete(record)
    db.commit()
