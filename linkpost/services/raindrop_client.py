from __future__ import annotations

import logging
from typing import cast

from pydantic import ValidationError

from linkpost.models.bookmark import Bookmark
from linkpost.services.upstream import ConfigurationError, UpstreamServiceError, request_json

LOGGER = logging.getLogger("linkpost.raindrop")


class RaindropApiError(UpstreamServiceError):
    pass


class RaindropClient:
    def __init__(
        self,
        *,
        api_key: str | None,
        base_url: str,
        tag: str,
        page_size: int,
        http_timeout_seconds: float,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._tag = tag
        self._page_size = max(1, int(page_size))
        self._http_timeout_seconds = max(1.0, float(http_timeout_seconds))

    def get_latest_bookmark(self) -> Bookmark | None:
        """Return the newest bookmark that carries the configured tag, if any."""
        if self._api_key is None:
            raise ConfigurationError("Raindrop API key is not configured.")

        response = request_json(
            method="GET",
            url=f"{self._base_url}/raindrops/0",
            headers={"Authorization": f"Bearer {self._api_key}"},
            params={
                "tag": self._tag,
                "sort": "-created",
                "perpage": str(self._page_size),
            },
            timeout_seconds=self._http_timeout_seconds,
            service_name="Raindrop",
            error_class=RaindropApiError,
        )

        items = response.get("items")
        if not isinstance(items, list):
            LOGGER.info("raindrop response carried no items tag=%s", self._tag)
            return None

        for item in cast(list[object], items):
            if not isinstance(item, dict):
                continue
            item_dict = cast(dict[str, object], item)
            tags = item_dict.get("tags")
            if not isinstance(tags, list) or self._tag not in cast(list[object], tags):
                continue
            try:
                return Bookmark.model_validate(item_dict)
            except ValidationError as exc:
                raise RaindropApiError(
                    f"Raindrop returned an unreadable bookmark: {exc.error_count()} validation errors",
                    status_code=None,
                ) from exc

        LOGGER.info("no raindrop bookmark found tag=%s inspected=%s", self._tag, len(items))
        return None
