"""
Process-wide request limiter.

Every route gets the same fixed-window cap through ``SlowAPIMiddleware``.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from insurance_analyzer.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.RATE_LIMIT_DEFAULT],
    strategy="fixed-window",
)
