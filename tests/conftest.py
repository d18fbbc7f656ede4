"""
Marketplace Dialog Agent Test Configuration

Shared fixtures and configuration for pytest.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Callable, Dict, List
from unittest.mock import MagicMock

import httpx
import pytest

# Keep log files out of the working tree; must happen before the logger is imported
os.environ.setdefault("MARKETPLACE_LOGS_PATH", tempfile.mkdtemp(prefix="marketplace-logs-"))

PROJECT_ROOT = Path(__file__).parent.parent


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: fast isolated tests")
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )


# =============================================================================
# Configuration Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def make_resolver():
    """Build a ConfigResolver isolated from the real environment and config.yml."""
    from marketplace_agent.core.config import ConfigResolver

    def _make(overrides: Dict[str, str] = None, environ: Dict[str, str] = None,
              default_properties: Dict[str, str] = None) -> ConfigResolver:
        return ConfigResolver(
            overrides=overrides or {},
            default_properties=default_properties or {},
            environ=environ or {},
        )

    return _make


@pytest.fixture
def empty_resolver(make_resolver):
    """Resolver with no credentials at all."""
    return make_resolver()


# =============================================================================
# HTTP Fixtures
# =============================================================================

class RecordingTransport:
    """httpx MockTransport wrapper that records every request it sees."""

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]):
        self.handler = handler
        self.requests: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def json_body(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def recording_transport():
    """Factory: recording_transport(handler) -> RecordingTransport."""
    return RecordingTransport


@pytest.fixture
def offline_transport():
    """Transport where every request fails with a connection error."""
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("network unreachable", request=request)

    return RecordingTransport(handler)


# =============================================================================
# Collaborator Fixtures
# =============================================================================

@pytest.fixture
def dialog_store(tmp_path: Path):
    """SQLite dialog store in a temporary directory."""
    from marketplace_agent.services.storage import SQLiteDialogStore

    return SQLiteDialogStore(db_path=str(tmp_path / "dialog.db"))


@pytest.fixture
def mock_marketplace():
    """Mock business service client."""
    mock = MagicMock()
    mock.create_listing.return_value = {"listing_id": "L-1"}
    mock.find_matches.return_value = {"matches": []}
    mock.search_listings.return_value = {"listings": [], "total_count": 0}
    mock.get_marketplace_stats.return_value = {"total_listings": 0}
    mock.find_active_listings.return_value = []
    return mock
