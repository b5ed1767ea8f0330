from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _default_tags() -> list[str]:
    return []


def _default_highlights() -> list[Highlight]:
    return []


def _normalize_optional_text(value: object) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    return value


class Highlight(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    text: str = ""
    note: str | None = None

    @field_validator("text", mode="before")
    @classmethod
    def _coerce_text(cls, value: object) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("note", mode="before")
    @classmethod
    def _coerce_note(cls, value: object) -> str | None:
        return _normalize_optional_text(value)

    @property
    def has_text(self) -> bool:
        return bool(self.text.strip())

    @property
    def has_note(self) -> bool:
        return bool(self.note and self.note.strip())


class Bookmark(BaseModel):
    """A Raindrop item, reduced to the fields the post renderer reads."""

    model_config = ConfigDict(extra="ignore", frozen=True, populate_by_name=True)

    bookmark_id: str = Field(alias="_id")
    title: str | None = None
    link: str = ""
    created: str = ""
    tags: list[str] = Field(default_factory=_default_tags)
    note: str | None = None
    highlights: list[Highlight] = Field(default_factory=_default_highlights)
    excerpt: str | None = None

    @field_validator("bookmark_id", mode="before")
    @classmethod
    def _coerce_identifier(cls, value: object) -> str:
        if isinstance(value, bool) or value is None:
            raise ValueError("bookmark identifier must be a string or integer")
        if isinstance(value, int | str):
            normalized = str(value).strip()
            if normalized:
                return normalized
        raise ValueError("bookmark identifier must not be empty")

    @field_validator("link", "created", mode="before")
    @classmethod
    def _coerce_required_text(cls, value: object) -> str:
        return value if isinstance(value, str) else ""

    @field_validator("title", "note", "excerpt", mode="before")
    @classmethod
    def _coerce_optional_text(cls, value: object) -> str | None:
        return _normalize_optional_text(value)

    @field_validator("tags", mode="before")
    @classmethod
    def _coerce_tags(cls, value: object) -> list[str]:
        if not isinstance(value, list):
            return []
        return [tag for tag in value if isinstance(tag, str)]

    @field_validator("highlights", mode="before")
    @classmethod
    def _coerce_highlights(cls, value: object) -> list[object]:
        if not isinstance(value, list):
            return []
        return [item for item in value if isinstance(item, dict | Highlight)]

    @property
    def has_note(self) -> bool:
        return bool(self.note and self.note.strip())
