from fastapi.testclient import TestClient

from rubric_scoring.models import Assignment, Submission, SubmissionStatus


def _assignment(session, max_resubmissions: int = 1) -> Assignment:
    assignment = Assignment(title="Lab Report", max_resubmissions=max_resubmissions)
    session.add(assignment)
    session.commit()
    return assignment


def _eligibility(client: TestClient, assignment_id: int, student_id: int = 3):
    resp = client.get(
        "/api/v2/submissions/eligibility",
        params={"assignment_id": assignment_id, "student_id": student_id},
    )
    assert resp.status_code == 200
    return resp.json()


def test_attempt_lifecycle(client: TestClient, session):
    assignment = _assignment(session, max_resubmissions=1)
    assert _eligibility(client, assignment.id) == {
        "max_attempts": 2,
        "used_attempts": 0,
        "remaining_attempts": 2,
        "can_resubmit": True,
    }

    resp = client.post(
        "/api/v2/submissions/",
        json={"assignment_id": assignment.id, "student_id": 3, "content_json": {"text": "v1"}},
    )
    assert resp.status_code == 201
    first = resp.json()
    assert first["version"] == 1
    assert first["status"] == "draft"

    resp = client.post(f"/api/v2/submissions/{first['id']}/submit")
    assert resp.status_code == 200
    assert resp.json()["status"] == "submitted"
    assert resp.json()["submitted_at"] is not None

    resp = client.post(f"/api/v2/submissions/{first['id']}/submit")
    assert resp.status_code == 400

    resp = client.post("/api/v2/submissions/", json={"assignment_id": assignment.id, "student_id": 3})
    assert resp.status_code == 201
    assert resp.json()["version"] == 2

    state = _eligibility(client, assignment.id)
    assert state["remaining_attempts"] == 0
    assert state["can_resubmit"] is False

    resp = client.post("/api/v2/submissions/", json={"assignment_id": assignment.id, "student_id": 3})
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "resubmission_not_allowed"


def test_eligibility_is_recomputed_on_each_read(client: TestClient, session):
    assignment = _assignment(session, max_resubmissions=2)
    assert _eligibility(client, assignment.id)["used_attempts"] == 0

    # 提交记录由外部写入，资格应立即反映
    session.add(
        Submission(
            assignment_id=assignment.id,
            student_id=3,
            version=1,
            status=SubmissionStatus.GRADED,
            score=64,
        )
    )
    session.commit()

    state = _eligibility(client, assignment.id)
    assert state["used_attempts"] == 1
    assert state["remaining_attempts"] == 2
    assert state["can_resubmit"] is False


def test_attempts_are_scoped_per_student(client: TestClient, session):
    assignment = _assignment(session, max_resubmissions=0)
    client.post("/api/v2/submissions/", json={"assignment_id": assignment.id, "student_id": 3})
    assert _eligibility(client, assignment.id, student_id=3)["can_resubmit"] is False
    assert _eligibility(client, assignment.id, student_id=4)["can_resubmit"] is True


def test_history(client: TestClient, session):
    assignment = _assignment(session, max_resubmissions=3)
    for version, status, score in [(1, SubmissionStatus.GRADED, 55), (2, SubmissionStatus.SUBMITTED, None)]:
        session.add(
            Submission(
                assignment_id=assignment.id,
                student_id=3,
                version=version,
                status=status,
                score=score,
            )
        )
    session.commit()

    resp = client.get(
        "/api/v2/submissions/history",
        params={"assignment_id": assignment.id, "student_id": 3},
    )
    assert resp.status_code == 200
    data = resp.json()
    assert [item["version"] for item in data["versions"]] == [1, 2]
    assert data["best_score"] == 55
    assert data["graded_count"] == 1


def test_unknown_assignment(client: TestClient):
    resp = client.get("/api/v2/submissions/eligibility", params={"assignment_id": 1, "student_id": 1})
    assert resp.status_code == 404
