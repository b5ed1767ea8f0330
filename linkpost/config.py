from __future__ import annotations

from pathlib import Path
from typing import Any, Literal
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DATA_DIR = ".linkpost"
_BOOLEAN_COERCION_FIELDS: tuple[str, ...] = ("telemetry_enabled",)


def _resolve_path(value: str | Path) -> Path:
    return Path(value).expanduser().resolve()


def _parse_bool_with_default(value: Any, *, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        if value == 1:
            return True
        if value == 0:
            return False
        return default
    if not isinstance(value, str):
        return default

    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default


def _normalize_optional_text(value: Any) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    normalized = value.strip()
    if normalized:
        return normalized
    return None


class AppSettings(BaseSettings):
    """
    Canonical runtime configuration.

    Every option is read from a `LINKPOST_*` environment variable (or `.env`).
    Secrets default to `None` and are checked together by `load_settings`.
    """

    model_config = SettingsConfigDict(
        env_prefix="LINKPOST_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # Inbound trigger.
    sync_secret: str | None = Field(
        default=None,
        description="Shared secret expected as `Authorization: Bearer <secret>` on /sync.",
    )

    # Raindrop bookmark source.
    raindrop_api_key: str | None = Field(
        default=None,
        description="Raindrop.io API token used to read bookmarks.",
    )
    raindrop_base_url: str = Field(
        default="https://api.raindrop.io/rest/v1",
        description="Raindrop REST API base URL.",
    )
    raindrop_tag: str = Field(
        default="1",
        description="Only bookmarks carrying this tag are published.",
    )
    raindrop_page_size: int = Field(
        default=10,
        ge=1,
        le=50,
        description="Number of newest bookmarks inspected when looking for the tagged one.",
    )

    # Ghost content system.
    ghost_api_url: str | None = Field(
        default=None,
        description="Ghost site URL, e.g. https://blog.example.com.",
    )
    ghost_admin_api_key: str | None = Field(
        default=None,
        description="Ghost Admin API key in `<id>:<hex secret>` form.",
    )
    ghost_api_version: str = Field(
        default="v5.0",
        description="Value sent as the Ghost `Accept-Version` header.",
    )
    ghost_tag_filter: str = Field(
        default="links",
        description="Tag every synced post carries; also used to scope the lookup of existing posts.",
    )

    # Rendering.
    display_timezone: str = Field(
        default="America/Los_Angeles",
        description="Timezone used to render the bookmark creation date.",
    )

    http_timeout_seconds: float = Field(
        default=20.0,
        description="Timeout applied to every Raindrop and Ghost request.",
    )

    # Logging.
    data_dir: Path = Field(
        default=Path(DEFAULT_DATA_DIR),
        description="Root runtime directory for logs.",
    )
    log_dir: Path | None = Field(
        default=None,
        description="Directory for log files. Defaults to `${LINKPOST_DATA_DIR}/logs`.",
    )
    log_level: str = Field(
        default="INFO",
        description="Console log level (stdout).",
    )

    # Telemetry.
    telemetry_enabled: bool = Field(
        default=True,
        description="Enable lightweight internal telemetry events.",
    )
    telemetry_sink: Literal["none", "log"] = Field(
        default="log",
        description=(
            "Telemetry sink backend. `log` emits structured telemetry locally; "
            "`none` disables sink output."
        ),
    )

    @property
    def resolved_log_dir(self) -> Path:
        if self.log_dir is not None:
            return self.log_dir
        return self.data_dir / "logs"

    @field_validator("telemetry_sink", mode="before")
    @classmethod
    def _normalize_telemetry_sink(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("LINKPOST_TELEMETRY_SINK must be a string.")
        normalized = value.strip().lower()
        if normalized in {"none", "log"}:
            return normalized
        raise ValueError("LINKPOST_TELEMETRY_SINK must be set to: none, log.")

    @field_validator("raindrop_base_url", mode="before")
    @classmethod
    def _normalize_raindrop_base_url(cls, value: Any) -> str:
        if not isinstance(value, str):
            raise ValueError("LINKPOST_RAINDROP_BASE_URL must be a string.")
        normalized = value.strip().rstrip("/")
        if not normalized:
            raise ValueError("LINKPOST_RAINDROP_BASE_URL must not be empty.")
        return normalized

    @field_validator("ghost_api_url", mode="before")
    @classmethod
    def _normalize_ghost_api_url(cls, value: Any) -> str | None:
        normalized = _normalize_optional_text(value)
        if normalized is None:
            return None
        return normalized.rstrip("/")

    @field_validator("raindrop_tag", "ghost_tag_filter", "ghost_api_version", mode="before")
    @classmethod
    def _normalize_required_text(cls, value: Any, info: ValidationInfo) -> str:
        normalized = _normalize_optional_text(value)
        if normalized is None:
            raise ValueError(f"LINKPOST_{str(info.field_name).upper()} must not be empty.")
        return normalized

    @field_validator("display_timezone")
    @classmethod
    def _validate_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except ZoneInfoNotFoundError as exc:
            raise ValueError("LINKPOST_DISPLAY_TIMEZONE must be a valid IANA timezone") from exc
        return value

    @field_validator("data_dir", "log_dir", mode="before")
    @classmethod
    def _normalize_paths(cls, value: Any) -> Any:
        if value is None:
            return None
        return _resolve_path(value)

    @field_validator(*_BOOLEAN_COERCION_FIELDS, mode="before")
    @classmethod
    def _normalize_booleans(cls, value: Any, info: ValidationInfo) -> bool:
        field_name = info.field_name
        assert field_name is not None
        default_value = cls.model_fields[field_name].default
        assert isinstance(default_value, bool)
        return _parse_bool_with_default(value, default=default_value)

    @field_validator(
        "sync_secret",
        "raindrop_api_key",
        "ghost_admin_api_key",
        mode="before",
    )
    @classmethod
    def _normalize_optional_strings(cls, value: Any) -> str | None:
        return _normalize_optional_text(value)


def _validate_sync_configuration(settings: AppSettings) -> None:
    errors: list[str] = []

    if settings.sync_secret is None:
        errors.append("LINKPOST_SYNC_SECRET is required to authorize sync requests.")
    if settings.raindrop_api_key is None:
        errors.append("LINKPOST_RAINDROP_API_KEY is required to read bookmarks.")
    if settings.ghost_api_url is None:
        errors.append("LINKPOST_GHOST_API_URL is required to publish posts.")
    if settings.ghost_admin_api_key is None:
        errors.append("LINKPOST_GHOST_ADMIN_API_KEY is required to publish posts.")
    elif ":" not in settings.ghost_admin_api_key:
        errors.append("LINKPOST_GHOST_ADMIN_API_KEY must use the `<id>:<secret>` format.")

    if errors:
        bullets = "\n".join(f"- {message}" for message in errors)
        raise ValueError(f"Invalid sync configuration:\n{bullets}")


def load_settings(*, validate_secrets: bool = True) -> AppSettings:
    settings = AppSettings()
    if validate_secrets:
        _validate_sync_configuration(settings)
    return settings
