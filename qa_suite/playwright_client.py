"""
Playwright driver lifecycle
===========================

Launches the browser engine of a run profile in-process and opens one
isolated context per client, configured from the profile's device
descriptor, viewport and extra HTTP headers.

Usage:
    from qa_suite.playwright_client import PlaywrightClient

    async with PlaywrightClient(settings.get_profile("firefox")) as client:
        await client.page.goto("/sources")
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from qa_suite.config import RunProfile, settings

logger = logging.getLogger(__name__)

BROWSER_TYPES = ("chromium", "firefox", "webkit")


class PlaywrightClient:
    """
    In-process Playwright client bound to one run profile.

    Example:
        async with PlaywrightClient(settings.get_profile("mobile")) as client:
            await client.page.goto("https://example.com")
    """

    def __init__(
        self,
        profile: Optional[RunProfile] = None,
        headless: Optional[bool] = None,
        base_url: Optional[str] = None,
        action_timeout: Optional[int] = None,
        navigation_timeout: Optional[int] = None,
        record_video_dir: Optional[Path] = None,
    ):
        """
        Args:
            profile: Run profile (browser engine, device, headers); defaults to the active one
            headless: Run headless (None = PLAYWRIGHT_HEADLESS)
            base_url: Base URL for relative navigation (None = BASE_URL)
            action_timeout: Default timeout for actions in milliseconds
            navigation_timeout: Default timeout for navigations in milliseconds
            record_video_dir: Directory for per-page videos (None = no video)
        """
        self.profile = profile or settings.profile
        if self.profile.browser_type not in BROWSER_TYPES:
            raise ValueError(f"Unsupported browser type {self.profile.browser_type!r}")
        self.headless = settings.playwright_headless if headless is None else headless
        self.base_url = base_url or settings.base_url
        self.action_timeout = action_timeout or settings.action_timeout
        self.navigation_timeout = navigation_timeout or settings.navigation_timeout
        self.record_video_dir = record_video_dir

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        # loop the driver runs on; artifact hooks outside a coroutine schedule onto it
        self.loop: Optional[asyncio.AbstractEventLoop] = None

    async def __aenter__(self) -> "PlaywrightClient":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def context_options(self, playwright: Playwright) -> Dict[str, Any]:
        """Keyword arguments for ``browser.new_context`` derived from the profile."""
        options: Dict[str, Any] = {}
        if self.profile.device:
            descriptor = dict(playwright.devices[self.profile.device])
            # engine choice comes from the profile, not the descriptor
            descriptor.pop("default_browser_type", None)
            options.update(descriptor)
        if self.profile.viewport:
            options["viewport"] = dict(self.profile.viewport)
        if self.profile.extra_http_headers:
            options["extra_http_headers"] = dict(self.profile.extra_http_headers)
        options["base_url"] = self.base_url
        if self.record_video_dir is not None:
            self.record_video_dir.mkdir(parents=True, exist_ok=True)
            options["record_video_dir"] = str(self.record_video_dir)
        return options

    async def connect(self) -> None:
        """Launch the profile's browser engine and open the default context and page."""
        self.loop = asyncio.get_running_loop()
        self._playwright = await async_playwright().start()
        try:
            launcher = getattr(self._playwright, self.profile.browser_type)
            self._browser = await launcher.launch(headless=self.headless)
            self._context = await self.new_context()
            self._page = await self._context.new_page()
        except Exception:
            await self.close()
            raise
        logger.debug(
            "Launched %s for profile %s (headless=%s)",
            self.profile.browser_type,
            self.profile.name,
            self.headless,
        )

    async def new_context(self, **overrides: Any) -> BrowserContext:
        """Create another isolated context with the profile defaults plus ``overrides``."""
        if not self._browser or not self._playwright:
            raise RuntimeError("Client not connected. Use 'async with' or call connect()")

        context = await self._browser.new_context(**{**self.context_options(self._playwright), **overrides})
        context.set_default_timeout(self.action_timeout)
        context.set_default_navigation_timeout(self.navigation_timeout)
        return context

    async def close(self) -> None:
        """Close page, context, browser and the Playwright driver."""
        if self._page:
            await self._page.close()
            self._page = None

        if self._context:
            await self._context.close()
            self._context = None

        if self._browser:
            await self._browser.close()
            self._browser = None

        if self._playwright:
            await self._playwright.stop()
            self._playwright = None

    @property
    def browser(self) -> Browser:
        if not self._browser:
            raise RuntimeError("Client not connected")
        return self._browser

    @property
    def context(self) -> BrowserContext:
        if not self._context:
            raise RuntimeError("Client not connected")
        return self._context

    @property
    def page(self) -> Page:
        if not self._page:
            raise RuntimeError("Client not connected or page not created")
        return self._page

    @property
    def is_connected(self) -> bool:
        return self._page is not None
