import pytest

from qa_suite.config import settings


@pytest.fixture(autouse=True)
def _require_deployment(ui_available):
    """The UI only lists what its own API stores, so the bundled mock is no use here."""
    if not settings.api_url_configured:
        pytest.skip("API_URL must point at the API behind BASE_URL for integration tests")
    return ui_available
