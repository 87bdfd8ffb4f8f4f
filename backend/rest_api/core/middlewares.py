"""
HTTP middlewares for the FastAPI application.
Request correlation and content-type validation.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.infrastructure.correlation import CorrelationIdMiddleware


class ContentTypeValidationMiddleware(BaseHTTPMiddleware):
    """
    Reject POST/PATCH requests whose body is not JSON (415).
    A request without Content-Type (no body) is let through.
    """

    METHODS_WITH_BODY = {"POST", "PUT", "PATCH"}

    async def dispatch(self, request: Request, call_next):
        if request.method in self.METHODS_WITH_BODY:
            content_type = request.headers.get("content-type", "")
            if content_type and not content_type.startswith("application/json"):
                return JSONResponse(
                    status_code=415,
                    content={
                        "detail": "Unsupported Media Type. Use application/json",
                        "code": "unsupported_media_type",
                    },
                )
        return await call_next(request)


def register_middlewares(app: FastAPI) -> None:
    """
    Register middlewares on the FastAPI application.

    Middlewares run in reverse order of registration: the correlation id is
    set before content-type validation so rejected requests are traceable.
    """
    app.add_middleware(ContentTypeValidationMiddleware)
    app.add_middleware(CorrelationIdMiddleware)
