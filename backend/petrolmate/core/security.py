"""
Security utilities for the crawl trigger
"""
import logging
from typing import Optional

from fastapi import Header, HTTPException, status

from petrolmate.core.config import settings

logger = logging.getLogger(__name__)


async def verify_cron_secret(
    x_cron_secret: Optional[str] = Header(None, alias="X-Cron-Secret")
) -> None:
    """
    Verify X-Cron-Secret header matches CRON_SECRET when one is configured.

    Without CRON_SECRET the trigger stays open, matching the deployments that
    call /craw-data from an external scheduler with no headers.

    Raises:
        HTTPException: If a secret is configured and the header is missing or wrong
    """
    if not settings.CRON_SECRET:
        return

    if not x_cron_secret:
        logger.warning("Missing X-Cron-Secret header for crawl trigger")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header"
        )

    if x_cron_secret != settings.CRON_SECRET:
        logger.warning("Invalid X-Cron-Secret header for crawl trigger")
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization"
        )
