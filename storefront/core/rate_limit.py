"""Rate limiting for the public search endpoints using slowapi."""

from slowapi import Limiter
from starlette.requests import Request

from storefront.core.config import settings


def client_ip(request: Request) -> str:
    """Shopper IP as seen behind the CDN / reverse proxy."""
    forwarded = request.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    return (
        request.headers.get("CF-Connecting-IP")
        or request.headers.get("X-Real-IP")
        or forwarded
        or (request.client.host if request.client else "127.0.0.1")
    )


limiter = Limiter(key_func=client_ip, enabled=settings.rate_limit_enabled)

# Limits shared by the search routers
SEARCH_LIMIT = settings.search_rate_limit
SUGGESTIONS_LIMIT = settings.suggestions_rate_limit
