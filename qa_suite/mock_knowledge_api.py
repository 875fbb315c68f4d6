"""Mock knowledge API server for offline runs of the API tests.

Implements the REST surface the suite consumes:
- GET/HEAD /health: service health with dependency status
- GET/POST /api/sources: list (pagination, type/status filters) and create
- GET/PUT/PATCH/DELETE /api/sources/<id>: single source CRUD
- POST /api/sources/<id>/validate: connectivity check
- POST /api/extract/<id> and GET /api/jobs/<id>: extraction jobs

State lives in module-level dicts, reset with ``reset_mock_state()``. Jobs
advance by ``JOB_PROGRESS_STEP`` percent on every poll, so a client polling
``/api/jobs/<id>`` sees ``running`` a few times before ``completed``.
"""
from __future__ import annotations

import secrets
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from flask import Flask, jsonify, request
from werkzeug.serving import make_server

MOCK_API_TOKEN = "test-token"
MOCK_VERSION = "1.4.2"
MOCK_ENVIRONMENT = "development"

VALID_SOURCE_TYPES = ["ONENOTE", "GITHUB", "CODE_REPO", "AI_CHAT", "EMAIL"]
REQUIRED_FIELDS = ("name", "type")
MAX_NAME_LENGTH = 255
DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100
JOB_PROGRESS_STEP = 25

SOURCES: Dict[str, Dict[str, Any]] = {}  # source_id -> source record
JOBS: Dict[str, Dict[str, Any]] = {}  # job_id -> job record
_LOCK = threading.RLock()
_LAST_TIMESTAMP: Dict[str, datetime] = {}


def _now() -> datetime:
    """Strictly increasing UTC timestamp so updatedAt always moves on update."""
    now = datetime.now(timezone.utc)
    last = _LAST_TIMESTAMP.get("value")
    if last is not None and now <= last:
        now = last + timedelta(milliseconds=1)
    _LAST_TIMESTAMP["value"] = now
    return now


def _iso(moment: datetime) -> str:
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _error(message: str, status: int, **extra: Any):
    return jsonify({"error": message, **extra}), status


def _find_by_name(name: str, exclude_id: Optional[str] = None) -> Optional[Dict[str, Any]]:
    for source in SOURCES.values():
        if source["name"] == name and source["id"] != exclude_id:
            return source
    return None


def _validate_fields(payload: Dict[str, Any], partial: bool = False):
    """Return an error response tuple, or None when ``payload`` is acceptable."""
    if not partial:
        missing = [name for name in REQUIRED_FIELDS if not payload.get(name)]
        if missing:
            return _error("Validation failed: missing required fields", 400, details=missing)

    if "type" in payload and payload["type"] not in VALID_SOURCE_TYPES:
        return _error(f"Invalid source type: {payload['type']}", 400, validTypes=VALID_SOURCE_TYPES)

    if "name" in payload:
        name = payload["name"]
        if not isinstance(name, str) or not name.strip():
            return _error("Invalid name: must be a non-empty string", 400, details=["name"])
        if len(name) > MAX_NAME_LENGTH:
            return _error(f"Invalid name: must be less than {MAX_NAME_LENGTH} characters", 400, details=["name"])

    for key in ("config", "metadata"):
        if key in payload and not isinstance(payload[key], dict):
            return _error(f"Invalid {key}: must be an object", 400, details=[key])
    return None


def _advance_job(job: Dict[str, Any]) -> None:
    if job["status"] != "running" or job["stalled"]:
        return
    job["progress"] = min(100, job["progress"] + JOB_PROGRESS_STEP)
    if job["progress"] < 100:
        return

    source = SOURCES.get(job["sourceId"])
    if job["failing"]:
        job["status"] = "failed"
        job["error"] = "Extraction failed"
        if source:
            source["status"] = "error"
    else:
        job["status"] = "completed"
        if source:
            source["status"] = "active"
            source["documentCount"] = source.get("documentCount", 0) + 12
    job["completedAt"] = _iso(_now())
    if source:
        source["updatedAt"] = job["completedAt"]


def _public_job(job: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in job.items() if key not in ("stalled", "failing")}


def create_mock_api_app() -> Flask:
    """Create and configure the mock knowledge API Flask app."""
    app = Flask(__name__)
    app.config["TESTING"] = True
    started_at = datetime.now(timezone.utc)

    @app.before_request
    def require_bearer_token():
        if not request.path.startswith("/api/"):
            return None
        if request.headers.get("Authorization") != f"Bearer {MOCK_API_TOKEN}":
            return _error("Unauthorized: missing or invalid bearer token", 401)
        return None

    @app.route("/health", methods=["GET"])
    def health():
        now = datetime.now(timezone.utc)
        services = {
            "database": {"status": "healthy", "responseTime": 3},
            "vectorDb": {"status": "healthy", "responseTime": 7},
            "cache": {"status": "healthy", "responseTime": 1},
        }
        return jsonify({
            "status": "healthy",
            "timestamp": _iso(now),
            "startedAt": _iso(started_at),
            "uptime": max(0.001, round((now - started_at).total_seconds(), 3)),
            "version": MOCK_VERSION,
            "environment": MOCK_ENVIRONMENT,
            "services": services,
        }), 200

    @app.route("/api/sources", methods=["GET"])
    def list_sources():
        try:
            limit = int(request.args.get("limit", DEFAULT_PAGE_LIMIT))
            offset = int(request.args.get("offset", 0))
        except ValueError:
            return _error("Invalid pagination parameters", 400, details=["limit", "offset"])
        if limit < 1 or limit > MAX_PAGE_LIMIT or offset < 0:
            return _error("Invalid pagination parameters", 400, details=["limit", "offset"])

        source_type = request.args.get("type")
        status = request.args.get("status")
        query = (request.args.get("search") or "").lower()

        with _LOCK:
            items = [
                dict(source)
                for source in SOURCES.values()
                if (not source_type or source["type"] == source_type)
                and (not status or source["status"] == status)
                and (not query or query in source["name"].lower())
            ]
        page = items[offset:offset + limit]
        return jsonify({
            "items": page,
            "total": len(items),
            "pagination": {
                "limit": limit,
                "offset": offset,
                "hasNext": offset + limit < len(items),
                "hasPrevious": offset > 0,
            },
        }), 200

    @app.route("/api/sources", methods=["POST"])
    def create_source():
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _error("Invalid JSON payload", 400, details=["body"])
        invalid = _validate_fields(payload)
        if invalid:
            return invalid

        with _LOCK:
            if _find_by_name(payload["name"]):
                return _error(f"Source with name '{payload['name']}' already exists", 409)
            timestamp = _iso(_now())
            source = {
                "id": str(uuid.uuid4()),
                "name": payload["name"],
                "type": payload["type"],
                "status": "configured",
                "config": payload.get("config", {}),
                "metadata": payload.get("metadata", {}),
                "documentCount": 0,
                "createdAt": timestamp,
                "updatedAt": timestamp,
            }
            SOURCES[source["id"]] = source
        return jsonify(source), 201

    @app.route("/api/sources/<source_id>", methods=["GET"])
    def get_source(source_id: str):
        source = SOURCES.get(source_id)
        if source is None:
            return _error(f"Source {source_id} not found", 404)
        return jsonify(source), 200

    @app.route("/api/sources/<source_id>", methods=["PATCH", "PUT"])
    def update_source(source_id: str):
        payload = request.get_json(silent=True)
        if not isinstance(payload, dict):
            return _error("Invalid JSON payload", 400, details=["body"])
        invalid = _validate_fields(payload, partial=request.method == "PATCH")
        if invalid:
            return invalid

        with _LOCK:
            source = SOURCES.get(source_id)
            if source is None:
                return _error(f"Source {source_id} not found", 404)
            if "name" in payload and _find_by_name(payload["name"], exclude_id=source_id):
                return _error(f"Source with name '{payload['name']}' already exists", 409)
            if request.method == "PUT":
                source["config"] = {}
                source["metadata"] = {}
            for key in ("name", "type", "config", "metadata"):
                if key in payload:
                    source[key] = payload[key]
            source["updatedAt"] = _iso(_now())
        return jsonify(source), 200

    @app.route("/api/sources/<source_id>", methods=["DELETE"])
    def delete_source(source_id: str):
        with _LOCK:
            if SOURCES.pop(source_id, None) is None:
                return _error(f"Source {source_id} not found", 404)
        return "", 204

    @app.route("/api/sources/<source_id>/validate", methods=["POST"])
    def validate_source(source_id: str):
        with _LOCK:
            source = SOURCES.get(source_id)
            if source is None:
                return _error(f"Source {source_id} not found", 404)
            endpoint = str(source["config"].get("endpoint", ""))
            errors: List[str] = []
            if "unreachable" in endpoint:
                errors.append(f"Could not reach {endpoint}")
            is_valid = not errors
            source["status"] = "validated" if is_valid else "error"
            source["updatedAt"] = _iso(_now())
        return jsonify({
            "isValid": is_valid,
            "connectivity": "ok" if is_valid else "failed",
            "permissions": "granted" if is_valid else "unknown",
            "errors": errors,
        }), 200

    @app.route("/api/extract/<source_id>", methods=["POST"])
    def start_extraction(source_id: str):
        with _LOCK:
            source = SOURCES.get(source_id)
            if source is None:
                return _error(f"Source {source_id} not found", 404)
            config = source["config"]
            job = {
                "jobId": f"job-{secrets.token_hex(8)}",
                "sourceId": source_id,
                "status": "running",
                "progress": 0,
                "createdAt": _iso(_now()),
                "completedAt": None,
                "stalled": bool(config.get("stallExtraction")),
                "failing": bool(config.get("failExtraction")),
            }
            JOBS[job["jobId"]] = job
            source["status"] = "extracting"
        return jsonify(_public_job(job)), 202

    @app.route("/api/jobs/<job_id>", methods=["GET"])
    def get_job(job_id: str):
        with _LOCK:
            job = JOBS.get(job_id)
            if job is None:
                return _error(f"Job {job_id} not found", 404)
            _advance_job(job)
            return jsonify(_public_job(job)), 200

    return app


def reset_mock_state() -> None:
    """Forget every source and job."""
    with _LOCK:
        SOURCES.clear()
        JOBS.clear()


class MockApiServer:
    """Runs the mock app on an ephemeral port in a background thread."""

    def __init__(self, host: str = "127.0.0.1", port: int = 0) -> None:
        self.host = host
        self.app = create_mock_api_app()
        self.server = make_server(host, port, self.app, threaded=True)
        self.port = self.server.server_port
        self.thread: Optional[threading.Thread] = None

    def start(self) -> "MockApiServer":
        self.thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self.thread.start()
        return self

    def stop(self) -> None:
        self.server.shutdown()
        if self.thread:
            self.thread.join(timeout=5)

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


if __name__ == "__main__":
    print(f"Mock knowledge API running on http://localhost:8000 (token={MOCK_API_TOKEN})")
    create_mock_api_app().run(host="0.0.0.0", port=8000, debug=True)
