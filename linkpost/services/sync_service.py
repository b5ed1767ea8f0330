from __future__ import annotations

import logging
from time import perf_counter
from typing import Protocol

from linkpost.logging_config import sync_log_context
from linkpost.models.bookmark import Bookmark
from linkpost.models.post_contracts import SyncResponse
from linkpost.services.post_builder import (
    DEFAULT_DISPLAY_TIMEZONE,
    build_post,
    should_process_bookmark,
)
from linkpost.services.upsert import DEFAULT_TAG_FILTER, ContentSystem, upsert_post
from linkpost.telemetry import SyncTrigger, TelemetryClient

LOGGER = logging.getLogger("linkpost.sync")


class BookmarkSource(Protocol):
    def get_latest_bookmark(self) -> Bookmark | None:
        ...


class SyncService:
    def __init__(
        self,
        *,
        bookmark_source: BookmarkSource,
        content_system: ContentSystem,
        display_timezone: str = DEFAULT_DISPLAY_TIMEZONE,
        tag_filter: str = DEFAULT_TAG_FILTER,
        telemetry: TelemetryClient | None = None,
    ) -> None:
        self._bookmark_source = bookmark_source
        self._content_system = content_system
        self._display_timezone = display_timezone
        self._tag_filter = tag_filter
        self._telemetry = telemetry if telemetry is not None else TelemetryClient.disabled()

    def run(self, *, trigger: SyncTrigger = "http") -> SyncResponse:
        """
        Publish the latest tagged bookmark.

        Fetch, gate, search and write run strictly in sequence. Failures
        propagate to the caller after a `sync.run.error` event; nothing is
        retried and nothing is written unless every earlier step succeeded.
        """
        started_at = perf_counter()
        bookmark_id: str | None = None
        with sync_log_context(sync_trigger=trigger):
            LOGGER.info("sync started")
            try:
                bookmark = self._bookmark_source.get_latest_bookmark()
                if bookmark is not None:
                    bookmark_id = bookmark.bookmark_id
                with sync_log_context(bookmark_id=bookmark_id):
                    response = self._publish(bookmark)
            except Exception as exc:
                self._telemetry.sync_failed(
                    exc,
                    trigger=trigger,
                    bookmark_id=bookmark_id,
                    duration_ms=_elapsed_ms(started_at),
                )
                raise
        self._telemetry.sync_finished(
            response,
            trigger=trigger,
            duration_ms=_elapsed_ms(started_at),
        )
        return response

    def _publish(self, bookmark: Bookmark | None) -> SyncResponse:
        if bookmark is None:
            LOGGER.info("no tagged bookmark found")
            return SyncResponse(outcome="no_bookmark", message="No bookmarks to process")

        LOGGER.info(
            "bookmark found title=%s tags=%s",
            bookmark.title,
            ",".join(bookmark.tags),
        )

        if not should_process_bookmark(bookmark):
            LOGGER.info("bookmark has nothing to publish")
            return SyncResponse(
                outcome="skipped",
                message="Bookmark skipped - no content to process",
                bookmark_id=bookmark.bookmark_id,
            )

        built = build_post(
            bookmark,
            timezone=self._display_timezone,
            base_tag=self._tag_filter,
        )
        result = upsert_post(
            bookmark.bookmark_id,
            built.payload,
            self._content_system,
            tag_filter=self._tag_filter,
        )
        verb = "Created new" if result.action == "created" else "Updated"
        return SyncResponse(
            outcome=result.action,
            message=f"{verb} post {result.post_id}",
            bookmark_id=bookmark.bookmark_id,
            post_id=result.post_id,
        )


def _elapsed_ms(started_at: float) -> int:
    return int((perf_counter() - started_at) * 1000)
