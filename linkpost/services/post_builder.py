from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from linkpost.models.bookmark import Bookmark
from linkpost.models.post_contracts import PostPayload
from linkpost.services.annotation_converter import convert_annotation
from linkpost.services.markup import (
    Blockquote,
    Divider,
    Embed,
    Fragment,
    MarkupDocument,
    MetadataContainer,
)
from linkpost.services.media_links import MediaLink, detect_media, render_embed

LOGGER = logging.getLogger("linkpost.post_builder")

BASE_TAG = "links"
DEFAULT_DISPLAY_TIMEZONE = "America/Los_Angeles"
UNTITLED = "Untitled"


@dataclass(frozen=True)
class BuiltPost:
    document: MarkupDocument
    payload: PostPayload
    media: MediaLink | None


def format_display_date(created: str, *, timezone: str = DEFAULT_DISPLAY_TIMEZONE) -> str:
    """Render an ISO-8601 timestamp as e.g. `January 5, 2024` in `timezone`."""
    parsed = _parse_iso_datetime(created)
    if parsed is None:
        return ""
    local = parsed.astimezone(ZoneInfo(timezone))
    return f"{local.strftime('%B')} {local.day}, {local.year}"


def should_process_bookmark(bookmark: Bookmark) -> bool:
    has_highlights = len(bookmark.highlights) > 0
    has_highlight_notes = any(highlight.has_note for highlight in bookmark.highlights)
    has_media = detect_media(bookmark.link) is not None
    return bookmark.has_note or has_highlights or has_highlight_notes or has_media


def build_tags(
    bookmark: Bookmark,
    media: MediaLink | None,
    *,
    base_tag: str = BASE_TAG,
) -> tuple[str, ...]:
    candidates = [base_tag]
    if media is not None:
        candidates.append(media.tag)
    candidates.extend(bookmark.tags)
    return tuple(dict.fromkeys(candidates))


def build_document(
    bookmark: Bookmark,
    *,
    media: MediaLink | None,
    timezone: str = DEFAULT_DISPLAY_TIMEZONE,
) -> MarkupDocument:
    metadata = MetadataContainer(
        bookmark_id=bookmark.bookmark_id,
        title=bookmark.title or "",
        link=bookmark.link,
        display_date=format_display_date(bookmark.created, timezone=timezone),
        tags=tuple(bookmark.tags),
    )

    blocks: list[Fragment] = []
    if bookmark.has_note:
        blocks.extend(convert_annotation(bookmark.note))

    if media is not None:
        if blocks:
            blocks.append(Divider())
        blocks.append(Embed(render_embed(media)))

    rendered_highlights = 0
    for highlight in bookmark.highlights:
        if not highlight.has_text:
            continue
        if rendered_highlights == 0 and blocks:
            blocks.append(Divider())
        blocks.append(Blockquote(highlight.text))
        if highlight.has_note:
            blocks.extend(convert_annotation(highlight.note))
        rendered_highlights += 1

    return MarkupDocument(metadata=metadata, blocks=tuple(blocks))


def build_post(
    bookmark: Bookmark,
    *,
    timezone: str = DEFAULT_DISPLAY_TIMEZONE,
    base_tag: str = BASE_TAG,
) -> BuiltPost:
    media = detect_media(bookmark.link)
    document = build_document(bookmark, media=media, timezone=timezone)
    title = bookmark.title or UNTITLED
    excerpt = bookmark.excerpt or ""
    payload = PostPayload(
        title=title,
        html=document.render(),
        tags=build_tags(bookmark, media, base_tag=base_tag),
        canonical_url=bookmark.link,
        custom_excerpt=excerpt,
        meta_title=title,
        meta_description=excerpt,
    )
    LOGGER.debug(
        "post built bookmark_id=%s media=%s blocks=%s tags=%s",
        bookmark.bookmark_id,
        media.kind if media is not None else None,
        len(document.blocks),
        ",".join(payload.tags),
    )
    return BuiltPost(document=document, payload=payload, media=media)


def _parse_iso_datetime(raw_value: str) -> datetime | None:
    candidate = raw_value.strip()
    if not candidate:
        return None
    try:
        parsed = datetime.fromisoformat(candidate.replace("Z", "+00:00"))
    except ValueError:
        LOGGER.warning("unparseable bookmark timestamp value=%s", candidate)
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=UTC)
    return parsed
