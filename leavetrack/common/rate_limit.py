"""Rate limiting configuration using slowapi.

Provides a module-level Limiter instance that can be imported by routers
for per-endpoint rate limiting, and wired into the FastAPI app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Keyed by client IP. No SlowAPIMiddleware is installed, so only routes
# decorated with @limiter.limit(...) are limited (currently POST /auth/login).
limiter = Limiter(key_func=get_remote_address)
