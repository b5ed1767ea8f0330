from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Protocol

GHOST_CARD_BEGIN = "<!--kg-card-begin: html-->"
GHOST_CARD_END = "<!--kg-card-end: html-->"
IDENTIFIER_ATTRIBUTE = "raindrop-id"

_HTML_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#039;",
    }
)

# Only these tags survive sanitizing; everything else is escaped as text.
_ALLOWED_TAG_PATTERN = re.compile(
    r"<(?P<simple>/?(?:b|strong|i|em))>"
    r'|<a href="(?P<href>[^"]+)">'
    r"|</a>",
    re.IGNORECASE,
)
_INLINE_CODE_PATTERN = re.compile(r"`([^`]+)`")


def escape_html(value: str | None) -> str:
    if not value:
        return ""
    return value.translate(_HTML_ESCAPE_TABLE)


def sanitize_basic_html(value: str | None) -> str:
    """
    Render free text as HTML, keeping a fixed set of formatting tags.

    `<b>`, `<strong>`, `<i>`, `<em>` (open and close), `<a href="...">` and `</a>`
    are emitted from fixed templates. Any other text, including tags outside the
    list and attributes other than the href value, is escaped.
    """
    if not value:
        return ""

    parts: list[str] = []
    cursor = 0
    for match in _ALLOWED_TAG_PATTERN.finditer(value):
        parts.append(escape_html(value[cursor : match.start()]))
        parts.append(_render_allowed_tag(match))
        cursor = match.end()
    parts.append(escape_html(value[cursor:]))
    return "".join(parts)


def _render_allowed_tag(match: re.Match[str]) -> str:
    simple = match.group("simple")
    if simple is not None:
        return f"<{simple.lower()}>"
    href = match.group("href")
    if href is not None:
        return f'<a href="{escape_html(href)}" target="_blank" rel="noopener noreferrer">'
    return "</a>"


def render_inline(text: str) -> str:
    """Inline code spans become escaped `<code>`; the rest goes through the sanitizer."""
    parts: list[str] = []
    cursor = 0
    for match in _INLINE_CODE_PATTERN.finditer(text):
        parts.append(sanitize_basic_html(text[cursor : match.start()]))
        parts.append(f"<code>{escape_html(match.group(1))}</code>")
        cursor = match.end()
    parts.append(sanitize_basic_html(text[cursor:]))
    return "".join(parts)


class Fragment(Protocol):
    def render(self) -> str:
        ...


@dataclass(frozen=True)
class Paragraph:
    text: str

    def render(self) -> str:
        return f"<p>{render_inline(self.text)}</p>"


@dataclass(frozen=True)
class BulletList:
    items: tuple[str, ...]

    def render(self) -> str:
        rendered_items = "".join(f"<li>{render_inline(item)}</li>" for item in self.items)
        return f"<ul>{rendered_items}</ul>"


@dataclass(frozen=True)
class CodeBlock:
    code: str
    language: str = ""

    def render(self) -> str:
        class_attribute = f' class="language-{escape_html(self.language)}"' if self.language else ""
        return f"<pre><code{class_attribute}>{escape_html(self.code)}</code></pre>"


@dataclass(frozen=True)
class Blockquote:
    text: str

    def render(self) -> str:
        return f"<blockquote><p>{escape_html(self.text)}</p></blockquote>"


@dataclass(frozen=True)
class Embed:
    """Pre-rendered player markup produced by `media_links.render_embed`."""

    markup: str

    def render(self) -> str:
        return self.markup


@dataclass(frozen=True)
class Divider:
    def render(self) -> str:
        return "<br>"


@dataclass(frozen=True)
class MetadataContainer:
    bookmark_id: str
    title: str
    link: str
    display_date: str
    tags: tuple[str, ...]

    def render(self) -> str:
        # The identifier is written unescaped so that lookups can match it verbatim.
        return (
            '<div class="link-item" '
            f'{IDENTIFIER_ATTRIBUTE}="{self.bookmark_id}" '
            f'raindrop-title="{escape_html(self.title)}" '
            f'raindrop-link="{escape_html(self.link)}" '
            f'raindrop-created="{escape_html(self.display_date)}" '
            f'raindrop-tags="{escape_html(",".join(self.tags))}">'
        )


@dataclass(frozen=True)
class MarkupDocument:
    metadata: MetadataContainer
    blocks: tuple[Fragment, ...]

    def render(self) -> str:
        lines = [self.metadata.render()]
        lines.extend(block.render() for block in self.blocks)
        lines.append("</div>")
        body = "\n".join(lines)
        return f"{GHOST_CARD_BEGIN}\n{body}\n{GHOST_CARD_END}"


def identifier_marker(bookmark_id: str) -> str:
    return f'{IDENTIFIER_ATTRIBUTE}="{bookmark_id}"'
