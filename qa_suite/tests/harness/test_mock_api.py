"""Bundled mock knowledge API: auth, CRUD errors and job progression."""
import pytest

from qa_suite.api_client import ApiClient, PollTimeoutError
from qa_suite.mock_knowledge_api import (
    JOB_PROGRESS_STEP,
    MOCK_API_TOKEN,
    MockApiServer,
    create_mock_api_app,
    reset_mock_state,
)

AUTH = {"Authorization": f"Bearer {MOCK_API_TOKEN}"}


@pytest.fixture
def client():
    reset_mock_state()
    app = create_mock_api_app()
    with app.test_client() as client:
        yield client
    reset_mock_state()


def create(client, **payload):
    body = {"name": "Mock Source", "type": "ONENOTE", "config": {"notebook": "X"}, **payload}
    return client.post("/api/sources", json=body, headers=AUTH)


def test_api_requires_bearer_token(client):
    assert client.get("/api/sources").status_code == 401
    assert client.get("/api/sources", headers={"Authorization": "Bearer wrong"}).status_code == 401
    assert client.get("/health").status_code == 200


def test_head_health_has_no_body(client):
    response = client.head("/health")

    assert response.status_code == 200
    assert response.content_type == "application/json"
    assert response.data == b""


def test_create_then_duplicate(client):
    first = create(client)
    second = create(client)

    assert first.status_code == 201
    assert first.get_json()["status"] == "configured"
    assert first.get_json()["documentCount"] == 0
    assert second.status_code == 409
    assert "already exists" in second.get_json()["error"]


def test_missing_fields_listed(client):
    response = client.post("/api/sources", json={}, headers=AUTH)

    assert response.status_code == 400
    assert response.get_json()["details"] == ["name", "type"]


def test_name_length_limit(client):
    response = create(client, name="a" * 256)

    assert response.status_code == 400
    assert "255" in response.get_json()["error"]


def test_list_filters_and_paginates(client):
    for index in range(3):
        create(client, name=f"note {index}")
    create(client, name="repo", type="GITHUB")

    github = client.get("/api/sources?type=GITHUB", headers=AUTH).get_json()
    assert [item["name"] for item in github["items"]] == ["repo"]

    page = client.get("/api/sources?limit=2&offset=2", headers=AUTH).get_json()
    assert page["total"] == 4
    assert len(page["items"]) == 2
    assert page["pagination"] == {"limit": 2, "offset": 2, "hasNext": False, "hasPrevious": True}

    assert client.get("/api/sources?limit=0", headers=AUTH).status_code == 400


def test_put_replaces_config(client):
    source = create(client, config={"notebook": "X", "section": "S"}).get_json()

    response = client.put(
        f"/api/sources/{source['id']}",
        json={"name": "Replaced", "type": "ONENOTE", "config": {"notebook": "Y"}},
        headers=AUTH,
    )

    assert response.status_code == 200
    assert response.get_json()["config"] == {"notebook": "Y"}


def test_job_progresses_to_completion(client):
    source = create(client).get_json()
    job = client.post(f"/api/extract/{source['id']}", headers=AUTH).get_json()

    assert job["status"] == "running"
    assert "stalled" not in job

    progress = []
    for _ in range(100 // JOB_PROGRESS_STEP):
        polled = client.get(f"/api/jobs/{job['jobId']}", headers=AUTH).get_json()
        progress.append(polled["progress"])

    assert progress == [25, 50, 75, 100]
    assert polled["status"] == "completed"
    refreshed = client.get(f"/api/sources/{source['id']}", headers=AUTH).get_json()
    assert refreshed["status"] == "active"
    assert refreshed["documentCount"] > 0


def test_failing_extraction_marks_source_error(client):
    source = create(client, config={"failExtraction": True}).get_json()
    job_id = client.post(f"/api/extract/{source['id']}", headers=AUTH).get_json()["jobId"]

    for _ in range(100 // JOB_PROGRESS_STEP):
        polled = client.get(f"/api/jobs/{job_id}", headers=AUTH).get_json()

    assert polled["status"] == "failed"
    assert client.get(f"/api/sources/{source['id']}", headers=AUTH).get_json()["status"] == "error"


@pytest.mark.asyncio
async def test_client_times_out_on_stalled_job():
    reset_mock_state()
    server = MockApiServer().start()
    try:
        async with ApiClient(base_url=server.url, token=MOCK_API_TOKEN) as api:
            source = (
                await api.post("/api/sources", {"name": "Stalled", "type": "ONENOTE", "config": {"stallExtraction": True}})
            ).json()
            job_id = (await api.post(f"/api/extract/{source['id']}")).json()["jobId"]

            with pytest.raises(PollTimeoutError) as excinfo:
                await api.wait_for_job_completion(job_id, max_attempts=3, interval_ms=10)

            assert excinfo.value.attempts == 3
            assert excinfo.value.last_result["progress"] == 0
    finally:
        server.stop()
        reset_mock_state()
