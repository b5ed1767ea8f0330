from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import pytest
from pydantic import ValidationError

from linkpost.config import AppSettings, load_settings
from linkpost.logging_config import (
    LOG_FILE_NAME,
    REDACTED,
    CredentialMasker,
    configure_application_logging,
    sync_log_context,
)
from linkpost.models.post_contracts import SyncResponse
from linkpost.services.ghost_client import GhostApiError
from linkpost.telemetry import TelemetryClient, build_telemetry_client

GHOST_ADMIN_API_KEY = "6489a1b2c3d4e5f6a7b8c9d0:" + "ab" * 32


def test_load_settings_reads_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINKPOST_GHOST_API_URL", "https://blog.example.com/")
    monkeypatch.setenv("LINKPOST_RAINDROP_TAG", " publish ")
    monkeypatch.setenv("LINKPOST_TELEMETRY_ENABLED", "off")

    settings = load_settings()

    assert settings.ghost_api_url == "https://blog.example.com"
    assert settings.raindrop_tag == "publish"
    assert settings.raindrop_base_url == "https://api.raindrop.io/rest/v1"
    assert settings.ghost_tag_filter == "links"
    assert settings.display_timezone == "America/Los_Angeles"
    assert settings.telemetry_enabled is False


def test_load_settings_lists_every_missing_secret(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINKPOST_SYNC_SECRET", "  ")
    monkeypatch.delenv("LINKPOST_RAINDROP_API_KEY", raising=False)
    monkeypatch.setenv("LINKPOST_GHOST_ADMIN_API_KEY", "missing-separator")

    with pytest.raises(ValueError) as excinfo:
        load_settings()

    message = str(excinfo.value)
    assert "LINKPOST_SYNC_SECRET" in message
    assert "LINKPOST_RAINDROP_API_KEY" in message
    assert "<id>:<secret>" in message

    assert load_settings(validate_secrets=False).sync_secret is None


def test_settings_reject_unknown_timezone(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINKPOST_DISPLAY_TIMEZONE", "Mars/Olympus")
    with pytest.raises(ValidationError):
        AppSettings()


def test_logging_writes_to_data_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LINKPOST_DATA_DIR", str(tmp_path / "data"))
    settings = load_settings()

    log_file = configure_application_logging(settings)

    assert log_file == (tmp_path / "data" / "logs" / LOG_FILE_NAME).resolve()
    assert log_file.exists()


def test_log_file_carries_sync_context_and_masks_credentials() -> None:
    log_file = configure_application_logging(load_settings())
    logger = logging.getLogger("linkpost.ghost")

    with sync_log_context(sync_trigger="cli", bookmark_id="42"):
        logger.warning("ghost rejected key=%s", GHOST_ADMIN_API_KEY)
    logger.info("outside sync")
    logger.info("raindrop token=%s", "test-raindrop-key")

    records = [json.loads(line) for line in log_file.read_text(encoding="utf-8").splitlines()]
    rejected = next(record for record in records if record["event"].startswith("ghost rejected"))
    outside = next(record for record in records if record["event"] == "outside sync")
    token_line = next(record for record in records if record["event"].startswith("raindrop token"))

    assert rejected["sync_trigger"] == "cli"
    assert rejected["bookmark_id"] == "42"
    assert rejected["event"] == f"ghost rejected key={REDACTED}"
    assert "bookmark_id" not in outside
    assert token_line["event"] == f"raindrop token={REDACTED}"


def test_credential_masker_masks_admin_key_secret_half() -> None:
    masker = CredentialMasker.from_settings(load_settings())
    secret_half = GHOST_ADMIN_API_KEY.partition(":")[2]

    assert masker.mask(f"signing with {secret_half}") == f"signing with {REDACTED}"
    assert masker.mask(GHOST_ADMIN_API_KEY) == REDACTED


class _CaptureSink:
    def __init__(self) -> None:
        self.events: list[tuple[str, dict[str, Any]]] = []

    def emit(self, *, event_name: str, attributes: Mapping[str, Any]) -> None:
        self.events.append((event_name, dict(attributes)))


def test_sync_events_carry_outcome_and_upstream_status() -> None:
    sink = _CaptureSink()
    client = TelemetryClient(enabled=True, sink=sink)

    client.sync_finished(
        SyncResponse(outcome="updated", message="Updated post p1", bookmark_id="42", post_id="p1"),
        trigger="http",
        duration_ms=12,
    )
    client.sync_failed(
        GhostApiError("Ghost API request failed: boom", status_code=503),
        trigger="cli",
        bookmark_id="42",
        duration_ms=5,
    )

    assert sink.events == [
        (
            "sync.run.finish",
            {
                "trigger": "http",
                "outcome": "updated",
                "bookmark_id": "42",
                "post_id": "p1",
                "duration_ms": 12,
            },
        ),
        (
            "sync.run.error",
            {
                "trigger": "cli",
                "bookmark_id": "42",
                "error_type": "GhostApiError",
                "upstream_status": 503,
                "duration_ms": 5,
            },
        ),
    ]


def test_http_events_bound_caller_supplied_strings() -> None:
    sink = _CaptureSink()
    client = TelemetryClient(enabled=True, sink=sink)

    client.http_request_finished(
        request_id="r" * 300,
        method="POST",
        path="/sync",
        status_code=200,
        duration_ms=3,
    )

    event_name, attributes = sink.events[0]
    assert event_name == "http.request.finish"
    assert attributes["request_id"].endswith("...")
    assert len(attributes["request_id"]) < 300


def test_disabled_telemetry_client_does_not_emit() -> None:
    sink = _CaptureSink()
    TelemetryClient(enabled=False, sink=sink).sync_finished(
        SyncResponse(outcome="no_bookmark", message="No bookmarks to process"),
        trigger="http",
        duration_ms=1,
    )
    assert sink.events == []
    assert build_telemetry_client(enabled=True, sink="none").enabled is False
    assert build_telemetry_client(enabled=True, sink="log").enabled is True
