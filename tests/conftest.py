from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from linkpost.dependencies import reset_cached_dependencies
from linkpost.main import create_app

SYNC_SECRET = "test-sync-secret"
GHOST_ADMIN_API_KEY = "6489a1b2c3d4e5f6a7b8c9d0:" + "ab" * 32


@pytest.fixture(autouse=True)
def _linkpost_env_defaults(  # pyright: ignore[reportUnusedFunction]
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> Iterator[None]:
    monkeypatch.setenv("LINKPOST_DATA_DIR", str(tmp_path / "runtime-data"))
    monkeypatch.setenv("LINKPOST_SYNC_SECRET", SYNC_SECRET)
    monkeypatch.setenv("LINKPOST_RAINDROP_API_KEY", "test-raindrop-key")
    monkeypatch.setenv("LINKPOST_GHOST_API_URL", "http://127.0.0.1:9")
    monkeypatch.setenv("LINKPOST_GHOST_ADMIN_API_KEY", GHOST_ADMIN_API_KEY)
    monkeypatch.setenv("LINKPOST_TELEMETRY_SINK", "none")
    reset_cached_dependencies()
    yield
    reset_cached_dependencies()


@pytest.fixture
def client() -> Iterator[TestClient]:
    app = create_app()
    with TestClient(app) as test_client:
        yield test_client
