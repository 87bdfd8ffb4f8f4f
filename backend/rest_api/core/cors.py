"""
CORS (Cross-Origin Resource Sharing) configuration.
Configures allowed origins, methods, and headers for the API.
"""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shared.config.settings import settings


# Default origins for development: diner menu, kitchen display, manager dashboard
DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:5174",
    "http://localhost:5175",
    "http://127.0.0.1:5173",
    "http://127.0.0.1:5174",
    "http://127.0.0.1:5175",
]

ALLOWED_METHODS = ["GET", "POST", "PATCH", "OPTIONS"]

ALLOWED_HEADERS = [
    "Content-Type",
    "X-Request-ID",
    "Accept",
    "Accept-Language",
]


def get_cors_origins() -> list[str]:
    """
    ALLOWED_ORIGINS from settings (comma-separated) when set,
    the development origins otherwise.
    """
    if settings.allowed_origins:
        return [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
    return DEFAULT_CORS_ORIGINS


def configure_cors(app: FastAPI) -> None:
    # Short preflight cache in development
    max_age = 0 if settings.environment == "development" else 600

    app.add_middleware(
        CORSMiddleware,
        allow_origins=get_cors_origins(),
        allow_credentials=True,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=["X-Request-ID"],
        max_age=max_age,
    )
