"""Shared-code authentication for the API."""

import logging

from fastapi import Depends, HTTPException, Query

from marquee.config import Settings, settings

logger = logging.getLogger(__name__)


def get_settings() -> Settings:
    return settings


async def require_auth_code(
    code: str | None = Query(default=None),
    config: Settings = Depends(get_settings),
) -> None:
    """Reject requests whose ``code`` query parameter doesn't match the configured one."""
    if code != config.auth_code:
        logger.warning("Rejected request with invalid auth code")
        raise HTTPException(status_code=403)
