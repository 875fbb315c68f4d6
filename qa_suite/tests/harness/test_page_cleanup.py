"""Teardown paths of the page objects, driven by a page stand-in (no browser needed)."""
from types import SimpleNamespace

import pytest
from playwright.async_api import Error as PlaywrightError

from qa_suite.pages import BasePage, PageActionError, SourcesPage

pytestmark = pytest.mark.asyncio

SITE_URL = "http://qa-suite.test"
CLOSED = "Target page, context or browser has been closed"


class OfflinePage:
    """Inert locators; navigation is recorded and load-state waits fail on demand."""

    url = f"{SITE_URL}/sources"

    def __init__(self, load_failures=0):
        self.load_failures = load_failures
        self.visited = []

    def locator(self, selector):
        return SimpleNamespace(selector=selector, first=None)

    async def goto(self, url):
        self.visited.append(url)

    async def wait_for_load_state(self, state):
        if self.load_failures:
            self.load_failures -= 1
            raise PlaywrightError(CLOSED)


@pytest.fixture
def deleted(monkeypatch):
    """Names passed to ``SourcesPage.delete_source``; names starting with 'gone' fail."""
    names = []

    async def fake_delete_source(self, source_name):
        if source_name.startswith("gone"):
            raise PageActionError(name="delete_source", payload={"name": source_name}, message="no such row")
        names.append(source_name)

    monkeypatch.setattr(SourcesPage, "delete_source", fake_delete_source)
    return names


async def test_wait_for_load_complete_wraps_playwright_error():
    base = BasePage(OfflinePage(load_failures=1), base_url=SITE_URL)

    with pytest.raises(PageActionError) as excinfo:
        await base.wait_for_load_complete()

    assert excinfo.value.name == "wait_for_load_complete"
    assert excinfo.value.payload == {"url": f"{SITE_URL}/sources"}
    assert isinstance(excinfo.value.__cause__, PlaywrightError)


async def test_delete_sources_continues_after_failed_reload(deleted, caplog):
    page = OfflinePage(load_failures=1)
    sources_page = SourcesPage(page, base_url=SITE_URL)

    with caplog.at_level("INFO", logger="qa_suite.pages.sources"):
        leftovers = await sources_page.delete_sources(["first", "second"])

    assert leftovers == ["first"]
    assert deleted == ["second"]
    assert page.visited == [f"{SITE_URL}/sources", f"{SITE_URL}/sources"]
    assert "Cleanup skipped for source 'first'" in caplog.text


async def test_delete_sources_skips_rows_already_removed(deleted):
    sources_page = SourcesPage(OfflinePage(), base_url=SITE_URL)

    leftovers = await sources_page.delete_sources(["gone-1", "kept", "gone-2", "also-kept"])

    assert leftovers == ["gone-1", "gone-2"]
    assert deleted == ["kept", "also-kept"]


async def test_delete_sources_with_nothing_to_clean(deleted):
    page = OfflinePage()

    assert await SourcesPage(page, base_url=SITE_URL).delete_sources([]) == []
    assert page.visited == []
