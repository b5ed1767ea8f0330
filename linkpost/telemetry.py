from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Literal, Protocol

import structlog

from linkpost.models.post_contracts import SyncResponse

TelemetryValue = bool | int | float | str | None
SyncTrigger = Literal["http", "cli"]

# Request ids and paths come from the caller; keep them bounded.
_MAX_STRING_LENGTH = 120


class TelemetryEvent(str, Enum):
    SYNC_FINISH = "sync.run.finish"
    SYNC_ERROR = "sync.run.error"
    HTTP_REQUEST_FINISH = "http.request.finish"
    HTTP_REQUEST_ERROR = "http.request.error"


class TelemetrySink(Protocol):
    def emit(self, *, event_name: str, attributes: Mapping[str, TelemetryValue]) -> None:
        ...


class NoOpTelemetrySink:
    def emit(self, *, event_name: str, attributes: Mapping[str, TelemetryValue]) -> None:
        _ = (event_name, attributes)


class StructuredLogTelemetrySink:
    """Writes events through the `linkpost.telemetry` logger into the application log."""

    def __init__(self) -> None:
        self._logger = structlog.get_logger("linkpost.telemetry")

    def emit(self, *, event_name: str, attributes: Mapping[str, TelemetryValue]) -> None:
        self._logger.info("telemetry", telemetry_event=event_name, **dict(attributes))


@dataclass(frozen=True)
class TelemetryClient:
    """
    Emits the fixed set of sync and request events.

    Each event has its own method taking only identifiers and timings, so
    note text and credentials never reach a sink.
    """

    enabled: bool
    sink: TelemetrySink

    @classmethod
    def disabled(cls) -> TelemetryClient:
        return cls(enabled=False, sink=NoOpTelemetrySink())

    def sync_finished(
        self,
        response: SyncResponse,
        *,
        trigger: SyncTrigger,
        duration_ms: int,
    ) -> None:
        self._emit(
            TelemetryEvent.SYNC_FINISH,
            trigger=trigger,
            outcome=response.outcome,
            bookmark_id=response.bookmark_id,
            post_id=response.post_id,
            duration_ms=duration_ms,
        )

    def sync_failed(
        self,
        error: Exception,
        *,
        trigger: SyncTrigger,
        bookmark_id: str | None,
        duration_ms: int,
    ) -> None:
        status_code = getattr(error, "status_code", None)
        self._emit(
            TelemetryEvent.SYNC_ERROR,
            trigger=trigger,
            bookmark_id=bookmark_id,
            error_type=type(error).__name__,
            upstream_status=status_code if isinstance(status_code, int) else None,
            duration_ms=duration_ms,
        )

    def http_request_finished(
        self,
        *,
        request_id: str,
        method: str,
        path: str,
        status_code: int,
        duration_ms: int,
    ) -> None:
        self._emit(
            TelemetryEvent.HTTP_REQUEST_FINISH,
            request_id=request_id,
            method=method,
            path=path,
            status_code=status_code,
            duration_ms=duration_ms,
        )

    def http_request_failed(
        self,
        error: Exception,
        *,
        request_id: str,
        method: str,
        path: str,
        duration_ms: int,
    ) -> None:
        self._emit(
            TelemetryEvent.HTTP_REQUEST_ERROR,
            request_id=request_id,
            method=method,
            path=path,
            error_type=type(error).__name__,
            duration_ms=duration_ms,
        )

    def _emit(self, event: TelemetryEvent, **attributes: TelemetryValue) -> None:
        if not self.enabled:
            return
        self.sink.emit(
            event_name=event.value,
            attributes={key: _bounded(value) for key, value in attributes.items()},
        )


def build_telemetry_client(*, enabled: bool, sink: Literal["none", "log"]) -> TelemetryClient:
    if not enabled or sink == "none":
        return TelemetryClient.disabled()
    return TelemetryClient(enabled=True, sink=StructuredLogTelemetrySink())


def _bounded(value: TelemetryValue) -> TelemetryValue:
    if not isinstance(value, str):
        return value
    compact = " ".join(value.split())
    if len(compact) <= _MAX_STRING_LENGTH:
        return compact
    return f"{compact[:_MAX_STRING_LENGTH]}..."
