from fastapi.testclient import TestClient

from rubric_scoring.models import Rubric


def _payload(**overrides):
    payload = {
        "name": "Essay Rubric",
        "description": "Argumentative essay",
        "criteria": [
            {"name": "Thesis", "description": "Clear claim", "max_points": 30},
            {"name": "Organization", "description": "", "max_points": 70},
        ],
    }
    payload.update(overrides)
    return payload


def test_validate_endpoint_does_not_persist(client: TestClient, session):
    resp = client.post("/api/v2/rubrics/validate", json=_payload())
    assert resp.status_code == 200
    data = resp.json()
    assert data["total_points"] == 100
    assert [c["key"] for c in data["criteria"]] == ["thesis", "organization"]
    assert session.query(Rubric).count() == 0


def test_create_rubric_recomputes_total(client: TestClient, session):
    resp = client.post("/api/v2/rubrics/", json=_payload(total_points=12))
    assert resp.status_code == 201
    data = resp.json()
    assert data["total_points"] == 100
    assert data["criteria_by_key"]["organization"]["max_points"] == 70

    record = session.query(Rubric).filter(Rubric.id == data["id"]).one()
    assert record.total_points == 100
    assert record.criteria_json[0] == {"name": "Thesis", "description": "Clear claim", "max_points": 30}


def test_create_rubric_rejects_duplicate_keys(client: TestClient, session):
    criteria = [
        {"name": "Content Quality", "max_points": 10},
        {"name": "content quality", "max_points": 10},
    ]
    resp = client.post("/api/v2/rubrics/", json=_payload(criteria=criteria))
    assert resp.status_code == 400
    detail = resp.json()["detail"]
    assert detail["code"] == "duplicate_criterion_key"
    assert detail["second_name"] == "content quality"
    assert session.query(Rubric).count() == 0


def test_create_rubric_rejects_negative_points(client: TestClient):
    criteria = [{"name": "Thesis", "max_points": -5}]
    resp = client.post("/api/v2/rubrics/", json=_payload(criteria=criteria))
    assert resp.status_code == 422


def test_update_and_delete_rubric(client: TestClient):
    created = client.post("/api/v2/rubrics/", json=_payload()).json()

    resp = client.put(
        f"/api/v2/rubrics/{created['id']}",
        json=_payload(criteria=[{"name": "Thesis", "max_points": 0}]),
    )
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "zero_point_rubric"

    resp = client.put(
        f"/api/v2/rubrics/{created['id']}",
        json=_payload(criteria=[{"name": "Thesis", "max_points": 15}]),
    )
    assert resp.status_code == 200
    assert resp.json()["total_points"] == 15

    resp = client.get(f"/api/v2/rubrics/{created['id']}")
    assert resp.status_code == 200
    assert resp.json()["criteria"][0]["key"] == "thesis"

    resp = client.delete(f"/api/v2/rubrics/{created['id']}")
    assert resp.status_code == 204
    assert client.get(f"/api/v2/rubrics/{created['id']}").status_code == 404


def test_missing_criterion_name_detail(client: TestClient):
    criteria = [{"name": "Thesis", "max_points": 5}, {"name": "", "max_points": 5}]
    resp = client.post("/api/v2/rubrics/validate", json=_payload(criteria=criteria))
    assert resp.status_code == 400
    assert resp.json()["detail"] == {
        "code": "missing_criterion_name",
        "message": "Criterion #2 must have a name",
        "index": 1,
    }


def test_get_stored_rubric_that_fails_validation(client: TestClient, session):
    record = Rubric(name="Legacy", criteria_json=[{"name": "A", "max_points": 0}], total_points=0)
    session.add(record)
    session.commit()

    resp = client.get(f"/api/v2/rubrics/{record.id}")
    assert resp.status_code == 400
    assert resp.json()["detail"]["code"] == "zero_point_rubric"


def test_get_stored_rubric_with_negative_points(client: TestClient, session):
    record = Rubric(
        name="Legacy",
        criteria_json=[{"name": "A", "max_points": -5}, {"name": "B", "max_points": 10}],
        total_points=5,
    )
    session.add(record)
    session.commit()

    resp = client.get(f"/api/v2/rubrics/{record.id}")
    assert resp.status_code == 400
    assert resp.json()["detail"] == {
        "code": "invalid_criterion_points",
        "message": "Criterion #1 max_points -5 must be a non-negative number",
        "index": 0,
    }
