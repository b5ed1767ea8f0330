from __future__ import annotations

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path

import structlog
from structlog.contextvars import bind_contextvars, reset_contextvars
from structlog.processors import CallsiteParameter, CallsiteParameterAdder
from structlog.typing import EventDict, Processor

from linkpost.config import AppSettings

LOG_FILE_NAME = "linkpost.log"
REDACTED = "[redacted]"


def configure_application_logging(settings: AppSettings) -> Path:
    """
    Route every `linkpost.*` logger to stdout and to `linkpost.log`.

    Telemetry events share the same file; they are told apart by their
    `telemetry_event` field. Values of the configured credentials are masked
    in both outputs.
    """
    log_dir = settings.resolved_log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    masker = CredentialMasker.from_settings(settings)

    logger = logging.getLogger("linkpost")
    logger.setLevel(logging.DEBUG)
    logger.propagate = False
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    console_handler = logging.StreamHandler(stream=sys.stdout)
    console_handler.setLevel(_resolve_log_level(settings.log_level))
    console_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_foreign_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                masker,
                structlog.dev.ConsoleRenderer(colors=_is_terminal(sys.stdout)),
            ],
        )
    )

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=_foreign_pre_chain(),
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                structlog.processors.format_exc_info,
                masker,
                structlog.processors.JSONRenderer(sort_keys=True),
            ],
        )
    )

    logger.addHandler(console_handler)
    logger.addHandler(file_handler)
    logger.info(
        "logging configured console_level=%s path=%s",
        settings.log_level.upper(),
        log_file,
    )
    return log_file


@contextmanager
def sync_log_context(**fields: str | None) -> Iterator[None]:
    """Attach sync identifiers (trigger, bookmark id) to every record logged inside the block."""
    context_tokens = bind_contextvars(
        **{key: value for key, value in fields.items() if value is not None}
    )
    try:
        yield
    finally:
        reset_contextvars(**context_tokens)


@dataclass(frozen=True)
class CredentialMasker:
    """structlog processor replacing configured secret values in string fields."""

    secrets: tuple[str, ...]

    @classmethod
    def from_settings(cls, settings: AppSettings) -> CredentialMasker:
        candidates = [
            settings.sync_secret,
            settings.raindrop_api_key,
            settings.ghost_admin_api_key,
        ]
        if settings.ghost_admin_api_key and ":" in settings.ghost_admin_api_key:
            candidates.append(settings.ghost_admin_api_key.partition(":")[2])
        # Longest first so a full admin key is masked before its secret half.
        unique = {value for value in candidates if value}
        return cls(secrets=tuple(sorted(unique, key=len, reverse=True)))

    def mask(self, text: str) -> str:
        for secret in self.secrets:
            text = text.replace(secret, REDACTED)
        return text

    def __call__(
        self,
        _logger: logging.Logger,
        _method_name: str,
        event_dict: EventDict,
    ) -> EventDict:
        if not self.secrets:
            return event_dict
        for key, value in event_dict.items():
            if isinstance(value, str):
                event_dict[key] = self.mask(value)
        return event_dict


def _foreign_pre_chain() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True, key="timestamp"),
        CallsiteParameterAdder(
            [
                CallsiteParameter.MODULE,
                CallsiteParameter.FUNC_NAME,
                CallsiteParameter.LINENO,
            ]
        ),
    ]


def _resolve_log_level(raw_level: str) -> int:
    resolved = logging.getLevelName(raw_level.strip().upper())
    if isinstance(resolved, int):
        return resolved
    return logging.INFO


def _is_terminal(stream: object) -> bool:
    isatty = getattr(stream, "isatty", None)
    try:
        return callable(isatty) and bool(isatty())
    except (OSError, ValueError):
        return False
