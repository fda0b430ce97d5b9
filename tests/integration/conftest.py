"""
Integration test fixtures for FocusLog.

Provides fixtures specific to integration testing:
- A FastAPI app wired to an isolated SQLite store
- A fixed clock shared by both services
- A scripted fake text generator in place of the Anthropic adapter
"""

from collections.abc import Generator

import pytest


# Handle optional dependencies gracefully
try:
    from fastapi.testclient import TestClient

    HAS_FASTAPI = True
except ImportError:
    HAS_FASTAPI = False


# Skip markers for tests requiring optional dependencies
requires_fastapi = pytest.mark.skipif(not HAS_FASTAPI, reason="FastAPI not installed")


# ─────────────────────────────────────────────────────────────────────────────
# App Fixtures
# ─────────────────────────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def no_api_key(monkeypatch):
    """Tests opt in to bearer auth explicitly."""
    monkeypatch.delenv("FOCUSLOG_API_KEY", raising=False)


@pytest.fixture
def build_app(clock, no_sleep, fake_generator):
    """Factory for an app around a given store."""
    from focuslog.api.main import create_app
    from focuslog.config_models import FocusLogConfig
    from focuslog.services.routine_service import RoutineService
    from focuslog.services.summary_service import SummaryService

    def _build(store, generator=fake_generator):
        return create_app(
            config=FocusLogConfig(),
            store=store,
            generator=generator,
            routine_service=RoutineService(store, generator=generator, now_fn=clock, sleep=no_sleep),
            summary_service=SummaryService(store, generator=generator, now_fn=clock, sleep=no_sleep),
            configure_logging=False,
        )

    return _build


@pytest.fixture
def test_client(build_app, store) -> Generator["TestClient", None, None]:
    """TestClient over an app with a fresh database."""
    if not HAS_FASTAPI:
        pytest.skip("FastAPI not installed")

    with TestClient(build_app(store)) as client:
        yield client


@pytest.fixture
def auth_headers(mock_user_id) -> dict[str, str]:
    return {"X-User-Id": mock_user_id}


@pytest.fixture
def seed_week(test_client, auth_headers):
    """Log seven 09:00-11:00 Deep Work blocks through the API."""

    def _seed(days: int = 7):
        for day in range(6, 6 + days):
            response = test_client.post(
                "/api/insights/activities",
                json={
                    "activity": "Focus block",
                    "start_time": f"2024-05-{day:02d}T09:00:00",
                    "end_time": f"2024-05-{day:02d}T11:00:00",
                    "category": "Deep Work",
                },
                headers=auth_headers,
            )
            assert response.status_code == 201

    return _seed
