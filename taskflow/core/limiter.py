"""Shared slowapi limiter so routers and main use one instance."""

from slowapi import Limiter
from slowapi.util import get_remote_address

from taskflow.core.config import get_settings

settings = get_settings()

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

limit_auth = limiter.limit(settings.auth_rate_limit)
