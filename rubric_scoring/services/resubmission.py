"""重新提交资格与提交状态流转。

提交状态只能 ``draft -> submitted -> graded`` 单向推进。一次尝试被评分后，
整条提交链即告结束：即使次数尚有剩余，也不再允许重新提交。
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Dict, Optional, Sequence

from rubric_scoring.models.enums import SubmissionStatus
from rubric_scoring.schemas.submission import (
    ResubmissionState,
    SubmissionAttempt,
    SubmissionHistory,
)


logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS: Dict[SubmissionStatus, SubmissionStatus] = {
    SubmissionStatus.DRAFT: SubmissionStatus.SUBMITTED,
    SubmissionStatus.SUBMITTED: SubmissionStatus.GRADED,
}


class SubmissionStateError(ValueError):
    """提交状态不允许当前操作。"""

    code = "invalid_submission_state"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_detail(self) -> Dict[str, str]:
        return {"code": self.code, "message": self.message}


class InvalidStatusTransition(SubmissionStateError):
    code = "invalid_status_transition"

    def __init__(self, current: SubmissionStatus, target: SubmissionStatus) -> None:
        super().__init__(f"Cannot move submission from {current.value} to {target.value}")
        self.current = current
        self.target = target


class ResubmissionNotAllowed(SubmissionStateError):
    code = "resubmission_not_allowed"

    def __init__(self, state: ResubmissionState) -> None:
        if state.remaining_attempts <= 0:
            message = f"All {state.max_attempts} attempts have been used"
        else:
            message = "The latest attempt has been graded"
        super().__init__(message)
        self.state = state


def resubmission_eligibility(
    max_resubmissions: int,
    attempts: Sequence[SubmissionAttempt],
) -> ResubmissionState:
    """根据作业允许的重新提交次数与已有尝试计算资格。

    首次提交不算重新提交，因此总次数为 ``max_resubmissions + 1``。
    ``attempts`` 须按版本升序排列。
    """

    if max_resubmissions < 0:
        raise ValueError("max_resubmissions must be non-negative")

    used_attempts = len(attempts)
    max_attempts = max_resubmissions + 1
    remaining_attempts = max(0, max_attempts - used_attempts)
    latest_graded = bool(attempts) and attempts[-1].status == SubmissionStatus.GRADED
    return ResubmissionState(
        max_attempts=max_attempts,
        used_attempts=used_attempts,
        remaining_attempts=remaining_attempts,
        can_resubmit=remaining_attempts > 0 and not latest_graded,
    )


def advance_status(
    attempt: SubmissionAttempt,
    target: SubmissionStatus,
    now: Optional[datetime] = None,
) -> SubmissionAttempt:
    """返回推进到 ``target`` 状态后的新尝试，并记录对应时间戳。"""

    if ALLOWED_TRANSITIONS.get(attempt.status) != target:
        raise InvalidStatusTransition(attempt.status, target)

    now = now or datetime.now(timezone.utc)
    update: Dict[str, object] = {"status": target}
    if target == SubmissionStatus.SUBMITTED:
        update["submitted_at"] = now
    else:
        update["graded_at"] = now
    return attempt.model_copy(update=update)


def start_next_attempt(
    max_resubmissions: int,
    attempts: Sequence[SubmissionAttempt],
) -> SubmissionAttempt:
    """在资格允许时创建下一次尝试（草稿状态，版本号顺延）。"""

    state = resubmission_eligibility(max_resubmissions, attempts)
    if not state.can_resubmit:
        logger.info(
            "Refused new attempt: used=%d max=%d", state.used_attempts, state.max_attempts
        )
        raise ResubmissionNotAllowed(state)

    version = max((attempt.version for attempt in attempts), default=0) + 1
    return SubmissionAttempt(version=version, status=SubmissionStatus.DRAFT)


def summarize_history(attempts: Sequence[SubmissionAttempt]) -> SubmissionHistory:
    versions = sorted(attempts, key=lambda attempt: attempt.version)
    graded = [attempt for attempt in versions if attempt.status == SubmissionStatus.GRADED]
    scored = [attempt for attempt in graded if attempt.score is not None]
    return SubmissionHistory(
        versions=versions,
        latest_score=scored[-1].score if scored else None,
        best_score=max(attempt.score for attempt in scored) if scored else None,
        graded_count=len(graded),
    )
