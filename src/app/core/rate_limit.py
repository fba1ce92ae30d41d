"""Rate limiting for the credential endpoints.

Limits are kept in process memory, so they apply per worker. Endpoint
decorators declare the limits; ``configure_limiter`` switches them on or off
for the running application.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.app.core.config import Settings
from src.app.core.logging import get_logger

logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """Generate rate limit key from client IP only.

    Never include user-controlled headers in the key: rotating them would
    create unlimited fresh buckets.
    """
    return get_remote_address(request) or "unknown"


limiter = Limiter(key_func=get_rate_limit_key)


def configure_limiter(settings: Settings) -> Limiter:
    """Enable or disable the shared limiter. Disabled in testing environment."""
    limiter.enabled = settings.rate_limit_enabled and not settings.is_testing
    if limiter.enabled:
        logger.info("Rate limiter using in-memory backend (not distributed)")
    else:
        logger.info("Rate limiter disabled")
    return limiter
