"""
Dine-in orders REST API.

Run locally with:
    uvicorn rest_api.main:app --reload
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from rest_api.core.cors import configure_cors
from rest_api.core.lifespan import lifespan
from rest_api.core.middlewares import register_middlewares
from rest_api.routers.kitchen import router as kitchen_router
from rest_api.routers.orders import router as orders_router
from rest_api.routers.tables import router as tables_router
from shared.config.settings import settings
from shared.security.rate_limit import limiter, rate_limit_exceeded_handler
from shared.utils.exceptions import AppException


app = FastAPI(
    title="Dine-in Orders REST API",
    description="Table orders, kitchen readiness and table closure",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(AppException)
async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Domain errors as {"detail", "code", ...extra}."""
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_payload(),
        headers=exc.headers,
    )


register_middlewares(app)
configure_cors(app)


@app.get("/api/health", tags=["health"])
def health_check():
    return {
        "status": "healthy",
        "service": "rest-api",
        "environment": settings.environment,
    }


app.include_router(orders_router)
app.include_router(kitchen_router)
app.include_router(tables_router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("rest_api.main:app", host="0.0.0.0", port=settings.rest_api_port)
