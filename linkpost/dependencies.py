from __future__ import annotations

from functools import lru_cache

from linkpost.config import AppSettings, load_settings
from linkpost.services.ghost_client import GhostClient
from linkpost.services.raindrop_client import RaindropClient
from linkpost.services.sync_service import SyncService
from linkpost.telemetry import TelemetryClient, build_telemetry_client


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    return load_settings()


@lru_cache(maxsize=1)
def get_telemetry() -> TelemetryClient:
    settings = get_settings()
    return build_telemetry_client(
        enabled=settings.telemetry_enabled,
        sink=settings.telemetry_sink,
    )


@lru_cache(maxsize=1)
def get_sync_service() -> SyncService:
    settings = get_settings()
    return SyncService(
        bookmark_source=RaindropClient(
            api_key=settings.raindrop_api_key,
            base_url=settings.raindrop_base_url,
            tag=settings.raindrop_tag,
            page_size=settings.raindrop_page_size,
            http_timeout_seconds=settings.http_timeout_seconds,
        ),
        content_system=GhostClient(
            api_url=settings.ghost_api_url,
            admin_api_key=settings.ghost_admin_api_key,
            api_version=settings.ghost_api_version,
            http_timeout_seconds=settings.http_timeout_seconds,
        ),
        display_timezone=settings.display_timezone,
        tag_filter=settings.ghost_tag_filter,
        telemetry=get_telemetry(),
    )


def reset_cached_dependencies() -> None:
    get_sync_service.cache_clear()
    get_telemetry.cache_clear()
    get_settings.cache_clear()
