"""Authenticated HTTP client for the knowledge API plus polling helpers.

Every request carries the JSON and bearer-token headers. Responses are
returned as-is whatever their status code; tests assert on
``response.status_code`` themselves. Transport failures propagate untouched.

Usage:
    async with ApiClient() as api:
        response = await api.post("/api/sources", generate_random_source())
        assert response.status_code == 201
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, TypeVar

import anyio
import httpx

from qa_suite.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

JOB_RUNNING = "running"


@dataclass
class PollTimeoutError(TimeoutError):
    """Raised when a polled condition is still unmet after its attempt budget."""

    message: str
    attempts: int
    last_result: Any = None

    def __str__(self) -> str:
        return self.message


def json_or_none(response: httpx.Response) -> Any:
    """Decode a JSON body, or ``None`` for empty bodies (HEAD, 204)."""
    if not response.content:
        return None
    return response.json()


class ApiClient:
    """Thin wrapper around ``httpx.AsyncClient`` bound to the API base URL."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = (base_url or settings.api_url).rstrip("/")
        self.token = token or settings.api_token
        self._client = httpx.AsyncClient(
            timeout=timeout if timeout is not None else settings.api_timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self, additional: Optional[Dict[str, str]] = None) -> Dict[str, str]:
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.token}",
            **(additional or {}),
        }

    async def request(
        self,
        method: str,
        endpoint: str,
        data: Any = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> httpx.Response:
        url = f"{self.base_url}{endpoint}"
        if data is not None:
            kwargs["json"] = data
        response = await self._client.request(method, url, headers=self._headers(headers), **kwargs)
        logger.debug("%s %s -> %s", method, endpoint, response.status_code)
        return response

    async def get(self, endpoint: str, headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", endpoint, headers=headers, **kwargs)

    async def head(self, endpoint: str, headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> httpx.Response:
        return await self.request("HEAD", endpoint, headers=headers, **kwargs)

    async def post(
        self, endpoint: str, data: Any = None, headers: Optional[Dict[str, str]] = None, **kwargs: Any
    ) -> httpx.Response:
        return await self.request("POST", endpoint, data=data, headers=headers, **kwargs)

    async def put(
        self, endpoint: str, data: Any = None, headers: Optional[Dict[str, str]] = None, **kwargs: Any
    ) -> httpx.Response:
        return await self.request("PUT", endpoint, data=data, headers=headers, **kwargs)

    async def patch(
        self, endpoint: str, data: Any = None, headers: Optional[Dict[str, str]] = None, **kwargs: Any
    ) -> httpx.Response:
        return await self.request("PATCH", endpoint, data=data, headers=headers, **kwargs)

    async def delete(self, endpoint: str, headers: Optional[Dict[str, str]] = None, **kwargs: Any) -> httpx.Response:
        return await self.request("DELETE", endpoint, headers=headers, **kwargs)

    async def wait_for_job_completion(
        self,
        job_id: str,
        max_attempts: int = 30,
        interval_ms: int = 2000,
    ) -> Dict[str, Any]:
        """Poll ``/api/jobs/<job_id>`` at a fixed interval until it leaves ``running``.

        Makes at most ``max_attempts`` polls and sleeps ``interval_ms`` after
        every poll that still reports ``running``.
        """
        attempts = 0
        status = JOB_RUNNING
        job: Dict[str, Any] = {}

        while status == JOB_RUNNING and attempts < max_attempts:
            response = await self.get(f"/api/jobs/{job_id}")
            job = json_or_none(response) or {}
            status = job.get("status")

            if status == JOB_RUNNING:
                await anyio.sleep(interval_ms / 1000)
                attempts += 1

        if status == JOB_RUNNING:
            raise PollTimeoutError(
                message=f"Job {job_id} did not complete within timeout",
                attempts=attempts,
                last_result=job,
            )

        logger.info("Job %s finished with status=%s after %d polls", job_id, status, attempts + 1)
        return job

    async def poll_until_condition(
        self,
        producer: Callable[[], Awaitable[T]],
        predicate: Callable[[T], bool],
        max_attempts: int = 30,
        interval_ms: int = 1000,
    ) -> T:
        """Call ``producer`` until ``predicate`` accepts its result."""
        attempts = 0
        result: Any = None

        while attempts < max_attempts:
            result = await producer()
            if predicate(result):
                return result
            await anyio.sleep(interval_ms / 1000)
            attempts += 1

        raise PollTimeoutError(
            message="Condition not met within timeout",
            attempts=attempts,
            last_result=result,
        )


class SourceTracker:
    """Ids of sources a test created, deleted again on teardown."""

    def __init__(self, api: ApiClient) -> None:
        self.api = api
        self.ids: list[str] = []

    def track(self, source_id: str) -> str:
        self.ids.append(source_id)
        return source_id

    async def create(self, payload: dict) -> httpx.Response:
        """POST a source and track it when the API accepted it."""
        response = await self.api.post("/api/sources", payload)
        if response.status_code == 201:
            self.track(response.json()["id"])
        return response

    async def cleanup(self) -> None:
        """Delete every tracked source; a failed delete is logged and the rest still run."""
        for source_id in self.ids:
            try:
                response = await self.api.delete(f"/api/sources/{source_id}")
            except httpx.HTTPError as exc:
                logger.warning("Cleanup of source %s failed: %s", source_id, exc)
                continue
            if response.status_code not in (204, 404):
                logger.warning("Cleanup of source %s returned %s", source_id, response.status_code)
        self.ids.clear()
