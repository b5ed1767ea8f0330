from __future__ import annotations

from typing import Any

from linkpost.models.bookmark import Bookmark
from linkpost.services.markup import Blockquote, BulletList, Divider, Embed, Paragraph
from linkpost.services.post_builder import (
    build_post,
    build_tags,
    format_display_date,
    should_process_bookmark,
)
from linkpost.services.media_links import detect_media


def _bookmark(**overrides: Any) -> Bookmark:
    raw: dict[str, Any] = {
        "_id": 42,
        "title": "Interesting article",
        "link": "https://example.com/articles/interesting",
        "created": "2024-03-10T18:30:00.000Z",
        "tags": ["1", "reading"],
        "note": "",
        "highlights": [],
        "excerpt": "A short excerpt.",
    }
    raw.update(overrides)
    return Bookmark.model_validate(raw)


def test_format_display_date_uses_pacific_time() -> None:
    assert format_display_date("2024-03-10T18:30:00.000Z") == "March 10, 2024"
    assert format_display_date("2024-01-01T05:00:00Z") == "December 31, 2023"
    assert format_display_date("2024-01-01T05:00:00Z", timezone="Europe/Bucharest") == (
        "January 1, 2024"
    )
    assert format_display_date("not a date") == ""
    assert format_display_date("") == ""


def test_gate_skips_bookmark_without_content() -> None:
    assert should_process_bookmark(_bookmark()) is False
    assert should_process_bookmark(_bookmark(note="   ")) is False


def test_gate_accepts_notes_highlights_and_media() -> None:
    assert should_process_bookmark(_bookmark(note="thoughts")) is True
    assert should_process_bookmark(_bookmark(highlights=[{"text": "quoted"}])) is True
    assert should_process_bookmark(_bookmark(highlights=[{"text": "", "note": "n"}])) is True
    assert should_process_bookmark(_bookmark(link="https://youtu.be/abc123")) is True
    assert should_process_bookmark(_bookmark(link="https://open.spotify.com/track/T1")) is True


def test_tags_put_base_and_media_first_without_duplicates() -> None:
    bookmark = _bookmark(link="https://www.youtube.com/watch?v=xyz", tags=["a", "links"])
    assert build_tags(bookmark, detect_media(bookmark.link)) == ("links", "youtube", "a")
    assert build_post(bookmark).payload.tags == ("links", "youtube", "a")


def test_tags_use_spotify_for_audio_links() -> None:
    bookmark = _bookmark(link="https://open.spotify.com/album/AAA111", tags=["spotify", "music"])
    assert build_post(bookmark).payload.tags == ("links", "spotify", "music")


def test_build_post_orders_note_embed_and_highlights() -> None:
    bookmark = _bookmark(
        link="https://youtu.be/abc123",
        note="- first\n- second\n\nClosing thought",
        highlights=[
            {"text": "  "},
            {"text": "A quoted <passage>", "note": "My `take`"},
            {"text": "Second quote"},
        ],
    )

    built = build_post(bookmark)
    blocks = built.document.blocks

    assert blocks[0] == BulletList(("first", "second"))
    assert blocks[1] == Paragraph("Closing thought")
    assert blocks[2] == Divider()
    assert isinstance(blocks[3], Embed)
    assert blocks[4] == Divider()
    assert blocks[5] == Blockquote("A quoted <passage>")
    assert blocks[6] == Paragraph("My `take`")
    assert blocks[7] == Blockquote("Second quote")
    assert len(blocks) == 8

    html = built.payload.html
    assert html.startswith("<!--kg-card-begin: html-->\n<div class=\"link-item\" raindrop-id=\"42\"")
    assert html.endswith("</div>\n<!--kg-card-end: html-->")
    assert "<blockquote><p>A quoted &lt;passage&gt;</p></blockquote>" in html
    assert "<p>My <code>take</code></p>" in html


def test_media_only_bookmark_has_no_divider() -> None:
    built = build_post(_bookmark(link="https://youtu.be/abc123"))
    assert len(built.document.blocks) == 1
    assert isinstance(built.document.blocks[0], Embed)


def test_highlights_only_bookmark_has_no_divider() -> None:
    built = build_post(_bookmark(highlights=[{"text": "one"}, {"text": "two"}]))
    assert built.document.blocks == (Blockquote("one"), Blockquote("two"))


def test_payload_fields_and_fallbacks() -> None:
    built = build_post(_bookmark(title=None, excerpt=None, note="hello"))
    payload = built.payload

    assert payload.title == "Untitled"
    assert payload.meta_title == "Untitled"
    assert payload.custom_excerpt == ""
    assert payload.meta_description == ""
    assert payload.status == "published"
    assert payload.visibility == "public"
    assert payload.canonical_url == "https://example.com/articles/interesting"
    assert 'raindrop-title=""' in payload.html
    assert 'raindrop-created="March 10, 2024"' in payload.html
    assert 'raindrop-tags="1,reading"' in payload.html


def test_metadata_escapes_title_and_link_but_not_identifier() -> None:
    built = build_post(
        _bookmark(
            _id="abc-123",
            title="<Tom & Jerry>",
            link="https://example.com/?a=1&b=2",
            note="n",
        )
    )
    html = built.payload.html
    assert 'raindrop-id="abc-123"' in html
    assert 'raindrop-title="&lt;Tom &amp; Jerry&gt;"' in html
    assert 'raindrop-link="https://example.com/?a=1&amp;b=2"' in html
    assert built.payload.canonical_url == "https://example.com/?a=1&b=2"


def test_ghost_post_payload_uses_named_tags() -> None:
    built = build_post(_bookmark(note="n"))
    post = built.payload.to_ghost_post()
    assert post["tags"] == [{"name": "links"}, {"name": "1"}, {"name": "reading"}]
    assert post["status"] == "published"
    assert post["html"] == built.payload.html
