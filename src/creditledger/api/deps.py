"""FastAPI dependencies for database sessions, the gateway and bot authentication."""
import hmac
from typing import Optional

import structlog
from fastapi import Header

from creditledger.adapters.razorpay_adapter import RazorpayAdapter
from creditledger.config import settings
from creditledger.database import get_db
from creditledger.exceptions import AuthError

logger = structlog.get_logger(__name__)

__all__ = ["get_db", "get_razorpay_adapter", "require_bot_secret"]


async def get_razorpay_adapter() -> RazorpayAdapter:
    """Get Razorpay adapter instance."""
    return RazorpayAdapter()


async def require_bot_secret(
    x_bot_secret: Optional[str] = Header(default=None, alias="x-bot-secret"),
) -> None:
    """
    Guard for the bot routes: the caller must present the shared secret.

    Without a configured secret, calls are refused unless
    ``BOT_AUTH_DISABLED`` is set, which is only honoured outside production.

    Raises:
        AuthError: If the header is missing or wrong, or auth is not configured
    """
    expected = settings.bot_secret

    if not expected:
        if settings.bot_auth_disabled:
            logger.warning("bot_auth_disabled")
            return
        logger.error("bot_auth_not_configured")
        raise AuthError("Bot authentication is not configured")

    if not x_bot_secret:
        logger.warning("bot_auth_missing_secret")
        raise AuthError("Missing x-bot-secret header")

    if not hmac.compare_digest(x_bot_secret.encode("utf-8"), expected.encode("utf-8")):
        logger.warning("bot_auth_invalid_secret")
        raise AuthError("Invalid bot secret")
