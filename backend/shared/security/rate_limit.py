"""
Rate limiting of diner-facing endpoints (slowapi).

Diners at every table usually share the restaurant's network address, so
the limit is keyed by the X-Device-ID header the menu app sends and falls
back to the client address.

Limited endpoints need a `request: Request` parameter:

    @router.post("/table")
    @limiter.limit(settings.order_submit_rate_limit)
    def submit_table_order(request: Request, ...):
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from shared.config.logging import get_logger

logger = get_logger(__name__)

DEVICE_ID_HEADER = "X-Device-ID"


def device_or_address(request: Request) -> str:
    device_id = request.headers.get(DEVICE_ID_HEADER, "").strip()
    if device_id:
        return f"device:{device_id[:64]}"
    return get_remote_address(request)


limiter = Limiter(key_func=device_or_address)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the same {"detail", "code"} shape as every other API error."""
    logger.warning(
        "Order submission rate limited",
        path=request.url.path,
        key=device_or_address(request),
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many orders submitted ({exc.detail}). Please wait a moment.",
            "code": "rate_limited",
        },
        headers={"Retry-After": "60"},
    )
