"""Rate limiting for public endpoints."""

import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from iplstats.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Rate limiter using client IP
limiter = Limiter(key_func=get_remote_address)

HEALTH_RATE_LIMIT = settings.RATE_LIMIT_PER_MINUTE
