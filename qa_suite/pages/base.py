"""Shared page-object primitives over a Playwright ``Page``."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional
from urllib.parse import urljoin, urlparse

from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Locator, Page, Response, Route

from qa_suite.config import settings

logger = logging.getLogger(__name__)

ERROR_MESSAGE_SELECTOR = '[data-testid="error-message"], .error, .alert-danger'
TOAST_CLOSE_SELECTOR = '[data-testid="toast-close"], .toast-close'


@dataclass
class PageActionError(Exception):
    """Raised when a page primitive fails (missing element, timeout, detached page)."""

    name: str
    payload: Dict[str, Any]
    message: str

    def __str__(self) -> str:  # pragma: no cover - human readable helper
        return f"{self.name} failed ({self.message}) with payload={self.payload}"


class BasePage:
    """Named primitive actions shared by every screen object.

    Each primitive performs one user-visible action or query and waits on
    element state, never on fixed sleeps. Failures are raised as
    ``PageActionError`` chained to the Playwright error; nothing is retried.
    """

    def __init__(self, page: Page, base_url: Optional[str] = None) -> None:
        self.page = page
        self.base_url = (base_url or settings.base_url).rstrip("/")

    def url_for(self, path: str = "") -> str:
        if urlparse(path).scheme:
            return path
        return urljoin(self.base_url + "/", path.lstrip("/"))

    # ---- navigation -------------------------------------------------------------
    async def navigate(self, path: str = "") -> None:
        url = self.url_for(path)
        try:
            await self.page.goto(url)
        except PlaywrightError as exc:
            raise PageActionError(name="navigate", payload={"url": url}, message=str(exc)) from exc

    async def wait_for_load_complete(self) -> None:
        try:
            await self.page.wait_for_load_state("networkidle")
            await self.page.wait_for_load_state("domcontentloaded")
        except PlaywrightError as exc:
            raise PageActionError(name="wait_for_load_complete", payload={"url": self.page.url}, message=str(exc)) from exc

    async def wait_for_navigation(self) -> None:
        await self.page.wait_for_url("**/*")

    async def get_title(self) -> str:
        return await self.page.title()

    async def take_screenshot(self, name: str) -> str:
        screenshot_dir = settings.artifact_dir("screenshots")
        screenshot_dir.mkdir(parents=True, exist_ok=True)
        path = str(screenshot_dir / f"{name}.png")
        await self.page.screenshot(path=path, full_page=True)
        return path

    # ---- element primitives -----------------------------------------------------
    async def wait_for_element(self, selector: str, timeout: int = 30000) -> None:
        try:
            await self.page.wait_for_selector(selector, timeout=timeout)
        except PlaywrightError as exc:
            raise PageActionError(
                name="wait_for_element", payload={"selector": selector, "timeout": timeout}, message=str(exc)
            ) from exc

    async def click_element(self, selector: str) -> None:
        try:
            await self.page.click(selector)
        except PlaywrightError as exc:
            raise PageActionError(name="click", payload={"selector": selector}, message=str(exc)) from exc

    async def fill_input(self, selector: str, value: str) -> None:
        try:
            await self.page.fill(selector, value)
        except PlaywrightError as exc:
            raise PageActionError(
                name="fill", payload={"selector": selector, "value": value}, message=str(exc)
            ) from exc

    async def select_option(self, selector: str, value: str) -> None:
        try:
            await self.page.select_option(selector, value)
        except PlaywrightError as exc:
            raise PageActionError(
                name="select", payload={"selector": selector, "value": value}, message=str(exc)
            ) from exc

    async def get_text(self, selector: str) -> str:
        try:
            return await self.page.text_content(selector) or ""
        except PlaywrightError as exc:
            raise PageActionError(name="text", payload={"selector": selector}, message=str(exc)) from exc

    async def get_element_text(self, selector: str) -> str:
        """Wait for ``selector`` to be visible, then return its text."""
        element = self.page.locator(selector)
        try:
            await element.wait_for()
            return await element.text_content() or ""
        except PlaywrightError as exc:
            raise PageActionError(name="element_text", payload={"selector": selector}, message=str(exc)) from exc

    async def is_element_visible(self, selector: str) -> bool:
        return await self.page.locator(selector).is_visible()

    async def is_enabled(self, selector: str) -> bool:
        return await self.page.is_enabled(selector)

    async def scroll_to_element(self, selector: str) -> None:
        await self.page.locator(selector).scroll_into_view_if_needed()

    # ---- feedback ---------------------------------------------------------------
    async def get_error_message(self) -> str:
        error = self.page.locator(ERROR_MESSAGE_SELECTOR).first
        if await error.is_visible():
            return await error.text_content() or ""
        return ""

    def toast(self, kind: str = "success") -> Locator:
        return self.page.locator(f'[data-testid="toast-{kind}"], .toast.{kind}').first

    async def wait_for_toast(self, kind: str = "success") -> str:
        toast = self.toast(kind)
        try:
            await toast.wait_for(state="visible")
        except PlaywrightError as exc:
            raise PageActionError(name="wait_for_toast", payload={"kind": kind}, message=str(exc)) from exc
        return await toast.text_content() or ""

    async def dismiss_toast(self) -> None:
        close_button = self.page.locator(TOAST_CLOSE_SELECTOR).first
        if await close_button.is_visible():
            await close_button.click()

    # ---- network ----------------------------------------------------------------
    async def wait_for_api_response(self, url_part: str, timeout: int = 30000) -> Any:
        """Wait for the next response whose URL contains ``url_part`` and return its JSON."""
        try:
            response: Response = await self.page.wait_for_event(
                "response", predicate=lambda r: url_part in r.url, timeout=timeout
            )
        except PlaywrightError as exc:
            raise PageActionError(
                name="wait_for_api_response", payload={"url": url_part, "timeout": timeout}, message=str(exc)
            ) from exc
        return await response.json()

    async def intercept_request(self, url: str, handler: Callable[[Route], Awaitable[None]]) -> None:
        await self.page.route(url, handler)

    async def mock_api_response(self, endpoint: str, data: Any, status: int = 200) -> None:
        """Answer every request to ``**/<endpoint>`` with ``data`` as JSON."""
        body = json.dumps(data)

        async def _fulfill(route: Route) -> None:
            await route.fulfill(status=status, content_type="application/json", body=body)

        await self.page.route(f"**/{endpoint.lstrip('/')}", _fulfill)
        logger.debug("Mocked %s -> HTTP %s", endpoint, status)

    # ---- storage ----------------------------------------------------------------
    async def get_local_storage_item(self, key: str) -> Optional[str]:
        return await self.page.evaluate("key => localStorage.getItem(key)", key)

    async def set_local_storage_item(self, key: str, value: str) -> None:
        await self.page.evaluate("([key, value]) => localStorage.setItem(key, value)", [key, value])

    async def clear_local_storage(self) -> None:
        await self.page.evaluate("() => localStorage.clear()")

    async def get_cookies(self) -> List[Dict[str, Any]]:
        return await self.page.context.cookies()

    async def set_cookie(self, name: str, value: str) -> None:
        await self.page.context.add_cookies(
            [{"name": name, "value": value, "domain": urlparse(self.base_url).hostname, "path": "/"}]
        )

    async def clear_cookies(self) -> None:
        await self.page.context.clear_cookies()
