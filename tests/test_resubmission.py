from datetime import datetime, timezone

import pytest

from rubric_scoring.models.enums import SubmissionStatus
from rubric_scoring.schemas.submission import SubmissionAttempt
from rubric_scoring.services.resubmission import (
    InvalidStatusTransition,
    ResubmissionNotAllowed,
    advance_status,
    resubmission_eligibility,
    start_next_attempt,
    summarize_history,
)


def _attempt(version: int, status: str, score=None) -> SubmissionAttempt:
    return SubmissionAttempt(version=version, status=SubmissionStatus(status), score=score)


def test_eligibility_after_one_submitted_attempt() -> None:
    state = resubmission_eligibility(2, [_attempt(1, "submitted")])
    assert state.model_dump() == {
        "max_attempts": 3,
        "used_attempts": 1,
        "remaining_attempts": 2,
        "can_resubmit": True,
    }


def test_graded_attempt_blocks_resubmission() -> None:
    state = resubmission_eligibility(2, [_attempt(1, "graded", 70)])
    assert state.remaining_attempts == 2
    assert state.can_resubmit is False


def test_eligibility_without_attempts() -> None:
    state = resubmission_eligibility(0, [])
    assert state.max_attempts == 1
    assert state.used_attempts == 0
    assert state.remaining_attempts == 1
    assert state.can_resubmit is True


def test_remaining_attempts_never_negative() -> None:
    attempts = [_attempt(1, "submitted"), _attempt(2, "submitted"), _attempt(3, "draft")]
    state = resubmission_eligibility(1, attempts)
    assert state.remaining_attempts == 0
    assert state.can_resubmit is False


def test_negative_max_resubmissions_is_rejected() -> None:
    with pytest.raises(ValueError):
        resubmission_eligibility(-1, [])


def test_advance_status_follows_state_machine() -> None:
    now = datetime(2024, 5, 1, tzinfo=timezone.utc)
    draft = _attempt(1, "draft")
    submitted = advance_status(draft, SubmissionStatus.SUBMITTED, now=now)
    assert submitted.status == SubmissionStatus.SUBMITTED
    assert submitted.submitted_at == now
    assert draft.status == SubmissionStatus.DRAFT

    graded = advance_status(submitted, SubmissionStatus.GRADED, now=now)
    assert graded.status == SubmissionStatus.GRADED
    assert graded.graded_at == now


@pytest.mark.parametrize(
    ("current", "target"),
    [
        ("draft", "graded"),
        ("graded", "submitted"),
        ("graded", "draft"),
        ("submitted", "draft"),
        ("submitted", "submitted"),
    ],
)
def test_invalid_transitions(current: str, target: str) -> None:
    with pytest.raises(InvalidStatusTransition):
        advance_status(_attempt(1, current), SubmissionStatus(target))


def test_start_next_attempt_increments_version() -> None:
    attempt = start_next_attempt(2, [_attempt(1, "submitted")])
    assert attempt.version == 2
    assert attempt.status == SubmissionStatus.DRAFT
    assert start_next_attempt(0, []).version == 1


def test_start_next_attempt_refused_when_exhausted() -> None:
    with pytest.raises(ResubmissionNotAllowed) as excinfo:
        start_next_attempt(0, [_attempt(1, "submitted")])
    assert excinfo.value.state.remaining_attempts == 0


def test_start_next_attempt_refused_after_grading() -> None:
    with pytest.raises(ResubmissionNotAllowed):
        start_next_attempt(3, [_attempt(1, "graded", 90)])


def test_summarize_history() -> None:
    history = summarize_history(
        [_attempt(2, "graded", 72), _attempt(1, "graded", 85), _attempt(3, "submitted")]
    )
    assert [item.version for item in history.versions] == [1, 2, 3]
    assert history.latest_score == 72
    assert history.best_score == 85
    assert history.graded_count == 2


def test_summarize_empty_history() -> None:
    history = summarize_history([])
    assert history.versions == []
    assert history.latest_score is None
    assert history.best_score is None
