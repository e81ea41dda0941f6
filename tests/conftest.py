"""
Shared pytest fixtures for all test modules.

IMPORTANT: environment overrides must be set before `aiguard` is imported,
because `settings` and the Gemini client are created at import time.
"""

import json
import os

# Gemini client is instantiated at module import time; a non-empty stub prevents
# the SDK from raising ValueError before our mocks are in place.
# Real API calls never happen in tests — request_forensic_report is always mocked.
os.environ.setdefault("GEMINI_API_KEY", "stub-key-for-tests")
os.environ["HISTORY_BACKEND"] = "memory"

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from tests.mocks.firebase_mock import MockFirestore

# App import happens AFTER the environment overrides above.
from aiguard.core.dependencies import get_history_store  # noqa: E402
from aiguard.history.backends import MemoryHistoryBackend  # noqa: E402
from aiguard.history.store import HistoryStore  # noqa: E402
from aiguard.main import app  # noqa: E402


# ---------------------------------------------------------------------------
# Core infrastructure fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_firebase(monkeypatch):
    """Replace firebase.db with an in-memory MockFirestore."""
    from aiguard.integrations import firebase as fb

    mock_db = MockFirestore()
    monkeypatch.setattr(fb, "db", mock_db)
    return mock_db


@pytest.fixture
def history_store():
    return HistoryStore(MemoryHistoryBackend(), capacity=10)


@pytest.fixture
def client(history_store):
    """
    FastAPI TestClient whose routes share the `history_store` fixture.

    firebase.initialize() is patched to a no-op so the lifespan never attempts
    a real connection.
    """
    app.dependency_overrides[get_history_store] = lambda: history_store
    try:
        with patch("aiguard.integrations.firebase.initialize"):
            with TestClient(app, raise_server_exceptions=False) as c:
                yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def fast_progress(monkeypatch):
    """Shrink the progress cadence so feed ticks are observable within a test."""
    from aiguard.config import settings

    monkeypatch.setattr(settings, "progress_interval_sec", 0.01)
    return 0.01


# ---------------------------------------------------------------------------
# Shared test-data helpers
# ---------------------------------------------------------------------------


def gemini_payload(score=12.34, summary="ok", markers=None) -> str:
    """Engine response text using the wire field names."""
    return json.dumps({
        "confidenceScore": score,
        "executiveSummary": summary,
        "forensicMarkers": markers if markers is not None else [],
    })


def patch_gemini(return_value=None, side_effect=None):
    """Patch the single remote call made by the orchestrator."""
    return patch(
        "aiguard.integrations.gemini.client.request_forensic_report",
        new_callable=AsyncMock,
        return_value=return_value if return_value is not None else gemini_payload(),
        side_effect=side_effect,
    )


def make_mock_session(status=200, content=b"media_bytes", content_type="video/mp4"):
    """Build a mock aiohttp session whose .get() returns a context-manager response."""
    mock_resp = MagicMock()
    mock_resp.__aenter__ = AsyncMock(return_value=mock_resp)
    mock_resp.__aexit__ = AsyncMock(return_value=None)
    mock_resp.status = status
    mock_resp.read = AsyncMock(return_value=content)
    mock_resp.headers = {"Content-Type": content_type} if content_type else {}

    mock_session = MagicMock()
    mock_session.get = MagicMock(return_value=mock_resp)
    return mock_session


def patch_session(mock_session):
    """
    Patch http_client.request_session to yield mock_session directly,
    bypassing aiohttp.ClientSession construction entirely.
    """
    @asynccontextmanager
    async def _fake_request_session():
        yield mock_session

    return patch(
        "aiguard.integrations.http_client.request_session",
        side_effect=_fake_request_session,
    )


HIGH_MARKER = {
    "timestamp": "00:04",
    "label": "[Stage 1] Facial boundary warping",
    "severity": "high",
    "description": "Jawline blends into the background between frames.",
}
