"""Rate limiting configuration using slowapi.

Module-level Limiter shared by routers (per-endpoint limits) and wired into
the FastAPI app in main.py.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Default: 60 requests/minute per client IP for all endpoints.
# Credential endpoints tighten this with @limiter.limit(AUTH_RATE_LIMIT).
AUTH_RATE_LIMIT = "10/minute"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["60/minute"],
)
