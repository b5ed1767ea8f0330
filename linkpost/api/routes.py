from __future__ import annotations

import logging
import secrets
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException

from linkpost.config import AppSettings
from linkpost.dependencies import get_settings, get_sync_service
from linkpost.models.post_contracts import SyncResponse
from linkpost.services.sync_service import SyncService

LOGGER = logging.getLogger("linkpost.api")

router = APIRouter()


def _is_authorized(authorization: str | None, sync_secret: str | None) -> bool:
    if authorization is None or sync_secret is None:
        return False
    expected = f"Bearer {sync_secret}"
    return secrets.compare_digest(authorization.encode("utf-8"), expected.encode("utf-8"))


def require_sync_secret(
    settings: Annotated[AppSettings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
) -> None:
    if not _is_authorized(authorization, settings.sync_secret):
        LOGGER.warning("unauthorized sync request - invalid secret")
        raise HTTPException(status_code=401, detail="Unauthorized")


@router.post(
    "/sync",
    response_model=SyncResponse,
    tags=["sync"],
    operation_id="sync_latest_bookmark",
    dependencies=[Depends(require_sync_secret)],
)
def sync_latest_bookmark(
    service: Annotated[SyncService, Depends(get_sync_service)],
) -> SyncResponse:
    try:
        return service.run(trigger="http")
    except Exception as exc:
        LOGGER.exception("sync failed")
        raise HTTPException(status_code=500, detail=str(exc)) from exc
