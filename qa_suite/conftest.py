import logging
import sys
from pathlib import Path

import httpx
import pytest
import pytest_asyncio
from playwright.async_api import Error as PlaywrightError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from qa_suite.api_client import ApiClient, SourceTracker
from qa_suite.artifacts import FAILURE_PHASES, artifact_name, record_report
from qa_suite.config import RunProfile, settings
from qa_suite.pages import (
    DashboardPage,
    LoginPage,
    SourcesPage,
    StudentDetailsPage,
    StudentFormPage,
    StudentListPage,
)
from qa_suite.playwright_client import PlaywrightClient
from qa_suite.testdata import build_test_data

logger = logging.getLogger(__name__)

TESTS_DIR = Path(__file__).resolve().parent / "tests"

MARKERS = {
    "api": "REST API test (profile: api)",
    "e2e": "browser test against the deployed UI (profiles: chromium, firefox, webkit, mobile)",
    "integration": "test crossing the API and the UI (profile: integration)",
}


def pytest_configure(config):
    for name, description in MARKERS.items():
        config.addinivalue_line("markers", f"{name}: {description}")

    # pytest-rerunfailures reads the option when each test runs
    if config.pluginmanager.hasplugin("rerunfailures"):
        config.option.reruns = settings.reruns(config.getoption("reruns") or 0)


def pytest_collection_modifyitems(config, items):
    """Keep only the directory owned by TEST_PROFILE, when one is selected."""
    if not settings.selected_profile:
        return
    profile = settings.profile
    selected, deselected = [], []
    for item in items:
        try:
            relative = Path(str(item.path)).resolve().relative_to(TESTS_DIR)
        except ValueError:
            deselected.append(item)
            continue
        (selected if profile.owns(str(relative)) else deselected).append(item)
    if deselected:
        config.hook.pytest_deselected(items=deselected)
        items[:] = selected


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Expose each phase's report as ``item.rep_<phase>``; screenshot failures before teardown."""
    outcome = yield
    record_report(item, outcome.get_result())


def _failed(request) -> bool:
    return any(
        getattr(getattr(request.node, f"rep_{phase}", None), "failed", False)
        for phase in FAILURE_PHASES
    )


# ============================================================================
# Configuration and data
# ============================================================================

@pytest.fixture(scope="session")
def suite_settings():
    return settings


@pytest.fixture(scope="session")
def run_profile() -> RunProfile:
    return settings.profile


@pytest.fixture()
def test_data():
    """Fresh immutable fixture data for one test."""
    return build_test_data()


# ============================================================================
# API fixtures
# ============================================================================

@pytest.fixture(scope="session")
def mock_api_server():
    """Bundled mock knowledge API on an ephemeral port."""
    from qa_suite.mock_knowledge_api import MockApiServer, reset_mock_state

    reset_mock_state()
    server = MockApiServer().start()
    logger.info("Mock knowledge API listening on %s", server.url)

    yield server

    server.stop()
    reset_mock_state()


@pytest.fixture(scope="session")
def api_target(request):
    """(base_url, token) of the API under test.

    Uses API_URL/API_TOKEN when API_URL is configured, otherwise the bundled
    mock server.
    """
    if settings.api_url_configured:
        return settings.api_url, settings.api_token

    from qa_suite.mock_knowledge_api import MOCK_API_TOKEN

    server = request.getfixturevalue("mock_api_server")
    print(f"[CONFIG] API_URL not set, running API tests against mock at {server.url}")
    return server.url, MOCK_API_TOKEN


@pytest_asyncio.fixture()
async def api_client(api_target):
    base_url, token = api_target
    async with ApiClient(base_url=base_url, token=token) as client:
        yield client


@pytest_asyncio.fixture()
async def created_sources(api_client):
    tracker = SourceTracker(api_client)
    yield tracker
    await tracker.cleanup()


# ============================================================================
# Browser fixtures
# ============================================================================

def _browser_missing(exc: PlaywrightError) -> bool:
    message = str(exc)
    return "Executable doesn't exist" in message or "playwright install" in message


@pytest_asyncio.fixture()
async def playwright_client(request):
    """Launch the active profile's browser; keep video and trace on failure."""
    video_dir = settings.artifact_dir("videos") if settings.video_mode != "off" else None
    client = PlaywrightClient(profile=settings.profile, record_video_dir=video_dir)
    try:
        await client.connect()
    except PlaywrightError as exc:
        if _browser_missing(exc):
            pytest.skip(f"{client.profile.browser_type} is not installed - run: playwright install {client.profile.browser_type}")
        raise

    if settings.trace_mode != "off":
        await client.context.tracing.start(screenshots=True, snapshots=True)

    yield client

    failed = _failed(request)
    name = artifact_name(request.node.nodeid)
    video = client.page.video
    try:
        if settings.trace_mode != "off":
            if failed or settings.trace_mode == "on":
                trace_dir = settings.artifact_dir("traces")
                trace_dir.mkdir(parents=True, exist_ok=True)
                await client.context.tracing.stop(path=str(trace_dir / f"{name}.zip"))
            else:
                await client.context.tracing.stop()
    finally:
        await client.close()

    if video is not None:
        video_path = Path(await video.path())
        if settings.video_mode == "retain-on-failure" and not failed:
            video_path.unlink(missing_ok=True)
        else:
            logger.info("Video for %s kept at %s", name, video_path)


@pytest.fixture()
def page(playwright_client):
    return playwright_client.page


@pytest.fixture(scope="session")
def ui_available():
    """Skip UI tests when nothing answers at BASE_URL."""
    try:
        httpx.get(settings.base_url, timeout=5.0, follow_redirects=True)
    except httpx.HTTPError as exc:
        pytest.skip(f"UI not reachable at {settings.base_url} ({exc}) - set BASE_URL to a running deployment")
    return settings.base_url


# ============================================================================
# Page object fixtures
# ============================================================================

@pytest.fixture()
def sources_page(page):
    return SourcesPage(page)


@pytest.fixture()
def login_page(page):
    return LoginPage(page)


@pytest.fixture()
def dashboard_page(page):
    return DashboardPage(page)


@pytest.fixture()
def student_form_page(page):
    return StudentFormPage(page)


@pytest.fixture()
def student_list_page(page):
    return StudentListPage(page)


@pytest.fixture()
def student_details_page(page):
    return StudentDetailsPage(page)
