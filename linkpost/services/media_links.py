from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Literal
from urllib.parse import parse_qs, urlsplit

from linkpost.services.markup import escape_html

MediaKind = Literal["youtube", "spotify"]

YOUTUBE_HOSTS: frozenset[str] = frozenset({"youtube.com", "www.youtube.com", "m.youtube.com"})
YOUTUBE_SHORT_HOST = "youtu.be"
SPOTIFY_HOST = "open.spotify.com"
SPOTIFY_KINDS: frozenset[str] = frozenset({"album", "track", "episode", "show", "playlist"})
SPOTIFY_TALL_KINDS: frozenset[str] = frozenset({"album", "playlist", "show"})

_YOUTUBE_PATH_PATTERNS = (
    re.compile(r"^/shorts/([\w-]+)"),
    re.compile(r"^/embed/([\w-]+)"),
)
_SPOTIFY_PATH_PATTERN = re.compile(r"^/(?:intl-[a-z]{2}(?:-[a-z]{2})?/)?([a-z]+)/([A-Za-z0-9]+)")


@dataclass(frozen=True)
class MediaLink:
    kind: MediaKind
    embed_id: str

    @property
    def tag(self) -> str:
        return self.kind


def youtube_video_id(url: str | None) -> str | None:
    parsed = _split_absolute_url(url)
    if parsed is None:
        return None
    hostname, path, query = parsed

    if hostname == YOUTUBE_SHORT_HOST:
        first = path.lstrip("/").split("/", maxsplit=1)[0]
        return _truncate_identifier(first)

    if hostname not in YOUTUBE_HOSTS:
        return None

    if path == "/watch":
        values = parse_qs(query).get("v")
        if not values:
            return None
        return _truncate_identifier(values[0])

    for pattern in _YOUTUBE_PATH_PATTERNS:
        match = pattern.match(path)
        if match:
            return _truncate_identifier(match.group(1))
    return None


def spotify_embed_path(url: str | None) -> str | None:
    parsed = _split_absolute_url(url)
    if parsed is None:
        return None
    hostname, path, _query = parsed
    if hostname != SPOTIFY_HOST:
        return None

    match = _SPOTIFY_PATH_PATTERN.match(path)
    if match is None:
        return None
    kind, item_id = match.group(1), match.group(2)
    if kind not in SPOTIFY_KINDS:
        return None
    return f"{kind}/{item_id}"


def detect_media(url: str | None) -> MediaLink | None:
    video_id = youtube_video_id(url)
    if video_id is not None:
        return MediaLink(kind="youtube", embed_id=video_id)
    embed_path = spotify_embed_path(url)
    if embed_path is not None:
        return MediaLink(kind="spotify", embed_id=embed_path)
    return None


def spotify_embed_height(embed_path: str) -> int:
    kind = embed_path.split("/", maxsplit=1)[0]
    return 352 if kind in SPOTIFY_TALL_KINDS else 152


def render_embed(media: MediaLink) -> str:
    if media.kind == "youtube":
        return (
            '<div class="youtube-embed"><iframe width="560" height="315" '
            f'src="https://www.youtube.com/embed/{escape_html(media.embed_id)}" '
            'frameborder="0" allow="accelerometer; autoplay; clipboard-write; '
            'encrypted-media; gyroscope; picture-in-picture; web-share" '
            "allowfullscreen></iframe></div>"
        )
    return (
        '<div class="spotify-embed"><iframe style="border-radius:12px" '
        f'src="https://open.spotify.com/embed/{escape_html(media.embed_id)}" '
        f'width="100%" height="{spotify_embed_height(media.embed_id)}" frameborder="0" '
        'allow="autoplay; clipboard-write; encrypted-media; fullscreen; picture-in-picture" '
        'loading="lazy"></iframe></div>'
    )


def _split_absolute_url(url: str | None) -> tuple[str, str, str] | None:
    if url is None:
        return None
    candidate = url.strip()
    if not candidate:
        return None
    try:
        parsed = urlsplit(candidate)
        hostname = parsed.hostname
    except ValueError:
        return None
    if parsed.scheme not in {"http", "https"} or not hostname:
        return None
    return hostname, parsed.path, parsed.query


def _truncate_identifier(value: str) -> str | None:
    identifier = value.split("&", maxsplit=1)[0].strip()
    return identifier or None
