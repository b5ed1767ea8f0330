from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from linkpost.models.post_contracts import ExistingPost, PostPayload, UpsertResult
from linkpost.services.markup import identifier_marker

LOGGER = logging.getLogger("linkpost.upsert")

DEFAULT_TAG_FILTER = "links"


class ContentSystem(Protocol):
    def browse_posts(self, *, tag_filter: str) -> Sequence[ExistingPost]:
        ...

    def create_post(self, payload: PostPayload) -> str:
        ...

    def update_post(self, *, post_id: str, updated_at: str | None, payload: PostPayload) -> str:
        ...


def find_existing_post(
    bookmark_id: str,
    content_system: ContentSystem,
    *,
    tag_filter: str = DEFAULT_TAG_FILTER,
) -> ExistingPost | None:
    marker = identifier_marker(bookmark_id)
    for post in content_system.browse_posts(tag_filter=tag_filter):
        if post.html and marker in post.html:
            return post
    return None


def upsert_post(
    bookmark_id: str,
    payload: PostPayload,
    content_system: ContentSystem,
    *,
    tag_filter: str = DEFAULT_TAG_FILTER,
) -> UpsertResult:
    existing = find_existing_post(bookmark_id, content_system, tag_filter=tag_filter)
    if existing is not None:
        LOGGER.info("updating existing post post_id=%s bookmark_id=%s", existing.id, bookmark_id)
        post_id = content_system.update_post(
            post_id=existing.id,
            updated_at=existing.updated_at,
            payload=payload,
        )
        return UpsertResult(action="updated", post_id=post_id)

    LOGGER.info("creating new post bookmark_id=%s", bookmark_id)
    post_id = content_system.create_post(payload)
    return UpsertResult(action="created", post_id=post_id)
