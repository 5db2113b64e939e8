"""Rate limiting for login and public form endpoints"""
from fastapi import Request
from slowapi import Limiter
from slowapi.util import get_remote_address

from formsdesk.config import settings


def get_identifier(request: Request) -> str:
    """
    Get identifier for rate limiting

    Priority:
    1. Client IP forwarded by the edge proxy (only with TRUST_PROXY_HEADERS)
    2. Socket peer address
    """
    if not settings.TRUST_PROXY_HEADERS:
        return get_remote_address(request)

    forwarded = request.headers.get("cf-connecting-ip") or request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_identifier,
    default_limits=settings.RATE_LIMIT_DEFAULT,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
    enabled=settings.RATE_LIMIT_ENABLED,
)


# Rate limit configurations for different endpoints
RATE_LIMITS = {
    # Credential guessing
    "login": "10/minute",
    "change_password": "10/minute",

    # Public forms
    "contact": "20/hour",
    "apply": "10/hour",
}


def get_rate_limit(endpoint: str) -> str:
    """Get rate limit for specific endpoint"""
    return RATE_LIMITS.get(endpoint, settings.RATE_LIMIT_DEFAULT[0])
