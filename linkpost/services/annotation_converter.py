from __future__ import annotations

import re
from enum import Enum

from linkpost.services.markup import BulletList, CodeBlock, Fragment, Paragraph

FENCE = "```"
_LINE_SPLIT_PATTERN = re.compile(r"\r?\n")
_FENCE_OPEN_PATTERN = re.compile(r"^```(\w*)$")
_BULLET_PATTERN = re.compile(r"^[-*](?:\s+|$)")


class ScanState(Enum):
    NORMAL = "normal"
    IN_BULLET_LIST = "in_bullet_list"
    IN_CODE_BLOCK = "in_code_block"


class _AnnotationScanner:
    """
    Single-pass line classifier for bookmark notes.

    Transitions:
      NORMAL / IN_BULLET_LIST + fence open   -> IN_CODE_BLOCK (pending list flushed)
      IN_CODE_BLOCK + closing fence          -> NORMAL (code block flushed)
      IN_CODE_BLOCK + fence with language    -> IN_CODE_BLOCK (line dropped, language replaced)
      IN_CODE_BLOCK + any other line         -> IN_CODE_BLOCK (line kept raw)
      NORMAL / IN_BULLET_LIST + bullet       -> IN_BULLET_LIST
      IN_BULLET_LIST + text or blank line    -> NORMAL (list flushed)
    """

    def __init__(self) -> None:
        self.state = ScanState.NORMAL
        self.fragments: list[Fragment] = []
        self._bullets: list[str] = []
        self._code_lines: list[str] = []
        self._code_language = ""

    def feed(self, line: str) -> None:
        trimmed = line.strip()

        fence_open = _FENCE_OPEN_PATTERN.match(trimmed)
        if self.state is ScanState.IN_CODE_BLOCK:
            if trimmed == FENCE:
                self._flush_code_block()
                self.state = ScanState.NORMAL
            elif fence_open:
                self._code_language = fence_open.group(1)
            else:
                self._code_lines.append(line)
            return

        if fence_open:
            self._flush_bullets()
            self._code_language = fence_open.group(1)
            self.state = ScanState.IN_CODE_BLOCK
            return

        bullet = _BULLET_PATTERN.match(trimmed)
        if bullet:
            self._bullets.append(trimmed[bullet.end() :])
            self.state = ScanState.IN_BULLET_LIST
            return

        self._flush_bullets()
        if trimmed:
            self.fragments.append(Paragraph(trimmed))

    def finish(self) -> list[Fragment]:
        self._flush_bullets()
        if self.state is ScanState.IN_CODE_BLOCK:
            # Unterminated fences still render whatever was captured.
            self._flush_code_block()
        self.state = ScanState.NORMAL
        return self.fragments

    def _flush_bullets(self) -> None:
        if self._bullets:
            self.fragments.append(BulletList(tuple(self._bullets)))
            self._bullets = []
        if self.state is ScanState.IN_BULLET_LIST:
            self.state = ScanState.NORMAL

    def _flush_code_block(self) -> None:
        if self._code_lines:
            self.fragments.append(
                CodeBlock(code="\n".join(self._code_lines), language=self._code_language)
            )
        self._code_lines = []
        self._code_language = ""


def convert_annotation(text: str | None) -> list[Fragment]:
    if not text:
        return []
    scanner = _AnnotationScanner()
    for line in _LINE_SPLIT_PATTERN.split(text):
        scanner.feed(line)
    return scanner.finish()


def convert_annotation_html(text: str | None) -> str:
    return "".join(fragment.render() for fragment in convert_annotation(text))
