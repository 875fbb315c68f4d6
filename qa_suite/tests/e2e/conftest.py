import logging

import pytest
import pytest_asyncio

from qa_suite.config import settings

logger = logging.getLogger(__name__)


@pytest.fixture(autouse=True)
def _require_ui(ui_available):
    """Every test in this directory needs a reachable UI at BASE_URL."""
    return ui_available


@pytest_asyncio.fixture()
async def opened_sources_page(sources_page):
    await sources_page.goto()
    return sources_page


@pytest_asyncio.fixture()
async def created_source_names(opened_sources_page):
    """Names of sources created through the UI; deleted again after the test."""
    names: list[str] = []
    yield names
    leftovers = await opened_sources_page.delete_sources(names)
    if leftovers:
        logger.warning("Sources left behind after cleanup: %s", ", ".join(leftovers))


@pytest_asyncio.fixture()
async def logged_in(login_page, dashboard_page):
    """Log in with TEST_USER_EMAIL / TEST_USER_PASSWORD and land on the dashboard."""
    if not settings.has_test_user:
        pytest.skip("TEST_USER_EMAIL and TEST_USER_PASSWORD must be set for the onboarding tests")

    await login_page.open()
    await login_page.login(settings.test_user_email, settings.test_user_password)
    assert await dashboard_page.is_dashboard_visible(), "dashboard did not render after login"
    return dashboard_page
