"""Fixture data for the knowledge source tests.

``TestData`` is a frozen value built by ``build_test_data()`` and handed to
tests through the ``test_data`` fixture. Generators always return fresh
copies so a test can mutate what it gets without affecting its neighbours.
"""
from __future__ import annotations

import random
import secrets
import time
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional

SOURCE_TYPES = ("ONENOTE", "GITHUB", "CODE_REPO", "AI_CHAT", "EMAIL")


def _default_sources() -> Dict[str, Dict[str, Any]]:
    return {
        "valid": {
            "name": "Test Knowledge Source",
            "type": "ONENOTE",
            "config": {
                "notebook": "Test Notebook",
                "section": "Test Section",
                "credentials": {
                    "clientId": "test-client-id",
                    "tenantId": "test-tenant-id",
                    "clientSecret": "test-secret",
                },
            },
            "metadata": {
                "owner": "qa-tester@example.com",
                "department": "QA",
                "tags": ["test", "automation", "qa"],
            },
        },
        "invalid": {
            "name": "",
            "type": "INVALID_TYPE",
            "config": {},
        },
        "github": {
            "name": "GitHub Test Source",
            "type": "GITHUB",
            "config": {
                "repository": "test-org/test-repo",
                "branch": "main",
                "token": "github-test-token",
            },
        },
    }


def _default_search_queries() -> Dict[str, str]:
    return {
        "simple": "test query",
        "complex": "scheduling AND (conflict OR overlap) NOT resolved",
        "semantic": "how to handle concurrent bookings",
        "empty": "",
        "special_chars": "test!@#$%^&*()",
        "sql_injection": "'; DROP TABLE users; --",
        "xss": '<script>alert("XSS")</script>',
        "long": "a" * 1000,
    }


def _default_users() -> Dict[str, Dict[str, str]]:
    return {
        "admin": {"email": "admin@example.com", "password": "Admin123!", "role": "admin", "token": "admin-test-token"},
        "regular": {"email": "user@example.com", "password": "User123!", "role": "user", "token": "user-test-token"},
        "unauthorized": {
            "email": "unauthorized@example.com",
            "password": "Invalid123!",
            "role": "none",
            "token": "invalid-token",
        },
    }


def _default_documents() -> Dict[str, Dict[str, Any]]:
    return {
        "sample": {
            "title": "Test Document",
            "content": "This is a test document for automated testing.",
            "source": "TEST",
            "metadata": {
                "author": "QA Team",
                "created": datetime.now(timezone.utc).isoformat(),
                "version": "1.0.0",
            },
        },
    }


def _freeze(value: Any) -> Any:
    """Read-only view of nested tables: dicts become mapping proxies, lists tuples."""
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(item) for item in value)
    return value


def _thaw(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, tuple):
        return [_thaw(item) for item in value]
    return value


@dataclass(frozen=True)
class TestData:
    """Immutable bundle of templates, queries, users and limits.

    Every table is frozen all the way down; ``source()`` and ``random_source()``
    hand out mutable copies.
    """

    __test__ = False  # not a pytest test class

    sources: Mapping[str, Mapping[str, Any]] = field(default_factory=_default_sources)
    search_queries: Mapping[str, str] = field(default_factory=_default_search_queries)
    users: Mapping[str, Mapping[str, str]] = field(default_factory=_default_users)
    documents: Mapping[str, Mapping[str, Any]] = field(default_factory=_default_documents)
    pagination: Mapping[str, Any] = field(
        default_factory=lambda: {"default_limit": 10, "max_limit": 100, "offsets": (0, 10, 20, 50, 100)}
    )
    timeouts: Mapping[str, int] = field(
        default_factory=lambda: {"short": 5000, "medium": 15000, "long": 30000, "extra_long": 60000}
    )
    errors: Mapping[str, int] = field(
        default_factory=lambda: {
            "bad_request": 400,
            "unauthorized": 401,
            "forbidden": 403,
            "not_found": 404,
            "conflict": 409,
            "server_error": 500,
        }
    )

    def __post_init__(self) -> None:
        for table in fields(self):
            object.__setattr__(self, table.name, _freeze(getattr(self, table.name)))

    def source(self, key: str) -> Dict[str, Any]:
        """Mutable deep copy of a source template."""
        return _thaw(self.sources[key])

    def random_source(self, overrides: Optional[Mapping[str, Any]] = None) -> Dict[str, Any]:
        """Valid source with a unique timestamped name, shallow-merged with ``overrides``."""
        timestamp = int(time.time() * 1000)
        return {
            **self.source("valid"),
            "name": f"Test Source {timestamp}-{secrets.token_hex(3)}",
            **(overrides or {}),
        }


def build_test_data() -> TestData:
    return TestData()


def generate_random_source(
    overrides: Optional[Mapping[str, Any]] = None,
    test_data: Optional[TestData] = None,
) -> Dict[str, Any]:
    return (test_data or build_test_data()).random_source(overrides)


SEARCH_QUERY_POOLS: Dict[str, List[str]] = {
    "simple": ["lesson", "schedule", "teacher", "student", "booking"],
    "complex": ["lesson AND teacher", "schedule OR availability", "conflict NOT resolved"],
    "semantic": ["how to book a lesson", "finding available teachers", "resolving scheduling conflicts"],
}


def generate_search_query(kind: str = "simple") -> str:
    if kind not in SEARCH_QUERY_POOLS:
        raise ValueError(f"Unknown query kind {kind!r}; expected one of {sorted(SEARCH_QUERY_POOLS)}")
    return random.choice(SEARCH_QUERY_POOLS[kind])


# Structural schemas: leaf values name the JSON type, nested dicts recurse.
SCHEMAS: Dict[str, Dict[str, Any]] = {
    "source": {
        "id": "string",
        "name": "string",
        "type": "string",
        "status": "string",
        "createdAt": "string",
        "updatedAt": "string",
    },
    "search_result": {
        "total": "number",
        "items": "array",
        "pagination": {
            "limit": "number",
            "offset": "number",
            "hasNext": "boolean",
            "hasPrevious": "boolean",
        },
    },
    "job": {
        "jobId": "string",
        "status": "string",
        "progress": "number",
        "createdAt": "string",
        "completedAt": "string",
    },
}


def _matches_json_type(value: Any, json_type: str) -> bool:
    if json_type == "string":
        return isinstance(value, str)
    if json_type == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if json_type == "boolean":
        return isinstance(value, bool)
    if json_type == "array":
        return isinstance(value, list)
    if json_type == "object":
        return isinstance(value, dict)
    raise ValueError(f"Unknown JSON type {json_type!r} in schema")


def expect_response_schema(body: Mapping[str, Any], schema: Mapping[str, Any], path: str = "") -> None:
    """Assert that ``body`` has every key of ``schema`` with the named JSON type."""
    for key, expected in schema.items():
        where = f"{path}.{key}" if path else key
        assert isinstance(body, Mapping) and key in body, f"Missing '{where}' in response: {body!r}"
        if isinstance(expected, Mapping):
            expect_response_schema(body[key], expected, where)
        else:
            assert _matches_json_type(body[key], expected), (
                f"'{where}' should be {expected}, got {type(body[key]).__name__}: {body[key]!r}"
            )
