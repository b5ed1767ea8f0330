from __future__ import annotations

import logging
import time
from typing import Any, cast

import jwt
from pydantic import ValidationError

from linkpost.models.post_contracts import ExistingPost, PostPayload
from linkpost.services.upstream import ConfigurationError, UpstreamServiceError, request_json

LOGGER = logging.getLogger("linkpost.ghost")

ADMIN_API_PATH = "/ghost/api/admin"
ADMIN_TOKEN_AUDIENCE = "/admin/"
ADMIN_TOKEN_TTL_SECONDS = 5 * 60


class GhostApiError(UpstreamServiceError):
    pass


def build_admin_token(admin_api_key: str, *, now: int | None = None) -> str:
    """Sign a short-lived Admin API JWT from an `<id>:<hex secret>` key."""
    key_id, separator, secret_hex = admin_api_key.partition(":")
    if not separator or not key_id or not secret_hex:
        raise ConfigurationError("Ghost admin API key must use the `<id>:<secret>` format.")
    try:
        secret = bytes.fromhex(secret_hex)
    except ValueError as exc:
        raise ConfigurationError("Ghost admin API key secret must be hex encoded.") from exc

    issued_at = int(time.time()) if now is None else now
    return jwt.encode(
        {
            "iat": issued_at,
            "exp": issued_at + ADMIN_TOKEN_TTL_SECONDS,
            "aud": ADMIN_TOKEN_AUDIENCE,
        },
        secret,
        algorithm="HS256",
        headers={"kid": key_id},
    )


class GhostClient:
    def __init__(
        self,
        *,
        api_url: str | None,
        admin_api_key: str | None,
        api_version: str,
        http_timeout_seconds: float,
    ) -> None:
        self._api_url = api_url.rstrip("/") if isinstance(api_url, str) else None
        self._admin_api_key = admin_api_key
        self._api_version = api_version
        self._http_timeout_seconds = max(1.0, float(http_timeout_seconds))

    def browse_posts(self, *, tag_filter: str) -> list[ExistingPost]:
        response = self._request(
            method="GET",
            path="/posts/",
            params={"filter": f"tag:{tag_filter}", "formats": "html", "limit": "all"},
            payload=None,
        )
        posts: list[ExistingPost] = []
        for raw_post in _posts_from_response(response):
            try:
                posts.append(ExistingPost.model_validate(raw_post))
            except ValidationError:
                LOGGER.warning("skipping unreadable ghost post in browse response")
        LOGGER.debug("ghost posts browsed filter=tag:%s count=%s", tag_filter, len(posts))
        return posts

    def create_post(self, payload: PostPayload) -> str:
        response = self._request(
            method="POST",
            path="/posts/",
            params={"source": "html"},
            payload={"posts": [payload.to_ghost_post()]},
        )
        return _first_post_id(response)

    def update_post(self, *, post_id: str, updated_at: str | None, payload: PostPayload) -> str:
        post = payload.to_ghost_post()
        post["updated_at"] = updated_at
        response = self._request(
            method="PUT",
            path=f"/posts/{post_id}/",
            params={"source": "html"},
            payload={"posts": [post]},
        )
        return _first_post_id(response)

    def _request(
        self,
        *,
        method: str,
        path: str,
        params: dict[str, str],
        payload: dict[str, object] | None,
    ) -> dict[str, object]:
        if self._api_url is None or self._admin_api_key is None:
            raise ConfigurationError("Ghost Admin API is not configured.")
        token = build_admin_token(self._admin_api_key)
        return request_json(
            method=method,
            url=f"{self._api_url}{ADMIN_API_PATH}{path}",
            headers={
                "Authorization": f"Ghost {token}",
                "Accept-Version": self._api_version,
            },
            params=params,
            payload=payload,
            timeout_seconds=self._http_timeout_seconds,
            service_name="Ghost",
            error_class=GhostApiError,
        )


def _posts_from_response(response: dict[str, object]) -> list[dict[str, Any]]:
    posts = response.get("posts")
    if not isinstance(posts, list):
        return []
    return [
        cast(dict[str, Any], post) for post in cast(list[object], posts) if isinstance(post, dict)
    ]


def _first_post_id(response: dict[str, object]) -> str:
    for post in _posts_from_response(response):
        post_id = post.get("id")
        if isinstance(post_id, str) and post_id:
            return post_id
    raise GhostApiError("Ghost response missing post id.", status_code=None)
