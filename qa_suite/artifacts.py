"""Failure artifacts for browser tests.

The screenshot is taken from ``pytest_runtest_makereport`` while the failed
phase is being reported, so it shows the page as the test left it. Fixture
teardown (cleanup navigation, row deletes) only runs afterwards.
"""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Optional

from playwright.async_api import Error as PlaywrightError

from qa_suite.config import settings

logger = logging.getLogger(__name__)

FAILURE_PHASES = ("setup", "call")


def artifact_name(nodeid: str) -> str:
    """File-system safe name for a test id."""
    return re.sub(r"[^\w.-]+", "_", nodeid).strip("_")


def record_report(item, report, screenshot_dir: Optional[Path] = None) -> Optional[Path]:
    """Keep ``report`` on the item as ``rep_<phase>`` and screenshot a failed setup or call."""
    setattr(item, f"rep_{report.when}", report)
    if report.when == "setup":
        # a rerun starts a fresh attempt on the same item
        item.failure_screenshot = None
    if report.when in FAILURE_PHASES and report.failed:
        return capture_failure_screenshot(item, screenshot_dir)
    return None


def capture_failure_screenshot(item, screenshot_dir: Optional[Path] = None) -> Optional[Path]:
    """Full-page screenshot of the item's browser page, once per test.

    Runs outside the test coroutine, so the screenshot is driven on the
    event loop the client was connected on.
    """
    client = getattr(item, "funcargs", {}).get("playwright_client")
    if client is None or not client.is_connected or getattr(item, "failure_screenshot", None):
        return None
    if client.loop is None or client.loop.is_running() or client.loop.is_closed():
        logger.warning("No idle event loop to capture failure screenshot for %s", item.nodeid)
        return None

    screenshot_dir = screenshot_dir or settings.artifact_dir("screenshots")
    screenshot_dir.mkdir(parents=True, exist_ok=True)
    path = screenshot_dir / f"{artifact_name(item.nodeid)}.png"
    try:
        client.loop.run_until_complete(client.page.screenshot(path=str(path), full_page=True))
    except PlaywrightError as exc:
        logger.warning("Could not capture failure screenshot for %s: %s", item.nodeid, exc)
        return None

    item.failure_screenshot = path
    logger.info("Failure screenshot for %s saved to %s", item.nodeid, path)
    return path
