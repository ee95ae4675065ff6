import hmac
import logging

from fastapi import Header, HTTPException
from typing import Optional

from app.config.settings import settings

logger = logging.getLogger(__name__)


def verify_internal_secret(x_internal_secret: Optional[str] = Header(default=None)) -> None:
    """
    Dependency for internal endpoints called by the voice server.
    Compares the X-Internal-Secret header in constant time.
    """
    expected = settings.internal_api_secret
    if not expected:
        logger.error("INTERNAL_API_SECRET is not configured; rejecting internal call.")
        raise HTTPException(status_code=401, detail="Unauthorized")
    if not x_internal_secret or not hmac.compare_digest(
        x_internal_secret.encode("utf-8"), expected.encode("utf-8")
    ):
        logger.warning("Rejected internal call with missing or wrong X-Internal-Secret.")
        raise HTTPException(status_code=401, detail="Unauthorized")
