import json
import logging
from typing import Any, Callable, Dict, Tuple, Union
from urllib.parse import urlparse

import pytest_asyncio
from playwright.async_api import Request, Route

logger = logging.getLogger(__name__)

SITE_URL = "http://qa-suite.test"

Body = Union[str, dict, list, Callable[[Request], Any]]


class FakeSite:
    """Answers every request to ``SITE_URL`` from an in-memory table.

    Keys are ``(method, path)``. HTML bodies are served as ``text/html``,
    dicts and lists as JSON; a callable body receives the request and returns
    either of those.
    """

    def __init__(self) -> None:
        self.routes: Dict[Tuple[str, str], Tuple[int, Body]] = {}
        self.requests: list[Tuple[str, str]] = []

    def add(self, path: str, body: Body, status: int = 200, method: str = "GET") -> None:
        self.routes[(method, path)] = (status, body)

    async def handle(self, route: Route) -> None:
        request = route.request
        path = urlparse(request.url).path
        self.requests.append((request.method, path))

        if (request.method, path) not in self.routes:
            logger.debug("FakeSite: no route for %s %s", request.method, path)
            await route.fulfill(status=404, content_type="application/json", body=json.dumps({"error": "not found"}))
            return

        status, body = self.routes[(request.method, path)]
        if callable(body):
            body = body(request)
        if status == 204:
            await route.fulfill(status=204, body="")
        elif isinstance(body, str):
            await route.fulfill(status=status, content_type="text/html", body=body)
        else:
            await route.fulfill(status=status, content_type="application/json", body=json.dumps(body))


@pytest_asyncio.fixture()
async def site(page):
    fake = FakeSite()
    await page.route(f"{SITE_URL}/**", fake.handle)
    return fake
