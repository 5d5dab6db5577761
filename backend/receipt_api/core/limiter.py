"""
Shared slowapi limiter, imported by main and the routers that throttle.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from receipt_api.config import settings

limiter = Limiter(key_func=get_remote_address, enabled=settings.RATE_LIMIT_ENABLED)
