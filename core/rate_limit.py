"""Rate limiting for API endpoints (slowapi, keyed by client address)."""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import get_settings
from core.exceptions import api_error

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_settings.RATE_LIMIT_DEFAULT],
    enabled=_settings.RATE_LIMIT_ENABLED,
)

AUTH_LIMIT = _settings.RATE_LIMIT_AUTH


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    message = "Too many attempts, please try again later" if request.url.path.startswith("/auth") else (
        "Too many requests, please try again later"
    )
    return JSONResponse(status_code=429, content=api_error("RATE_LIMIT_EXCEEDED", message))
