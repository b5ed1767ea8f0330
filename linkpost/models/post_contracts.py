from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict

PostStatus = Literal["published"]
PostVisibility = Literal["public"]
UpsertAction = Literal["created", "updated"]
SyncOutcome = Literal["no_bookmark", "skipped", "created", "updated"]


class PostPayload(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    title: str
    html: str
    tags: tuple[str, ...]
    status: PostStatus = "published"
    visibility: PostVisibility = "public"
    canonical_url: str
    custom_excerpt: str = ""
    meta_title: str
    meta_description: str = ""

    def to_ghost_post(self) -> dict[str, Any]:
        post = self.model_dump()
        post["tags"] = [{"name": tag} for tag in self.tags]
        return post


class ExistingPost(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str
    updated_at: str | None = None
    html: str | None = None


class UpsertResult(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    action: UpsertAction
    post_id: str


class SyncResponse(BaseModel):
    model_config = ConfigDict(extra="forbid")

    outcome: SyncOutcome
    message: str
    bookmark_id: str | None = None
    post_id: str | None = None
