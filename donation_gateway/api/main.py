"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.exceptions import HTTPException
from starlette.responses import Response

from donation_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from donation_gateway.api.v1 import payment_intents, subscriptions, webhook
from donation_gateway.infrastructure.database.session import init_db
from donation_gateway.infrastructure.observability.logging import setup_logging
from donation_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Render errors as {"error": message}, the shape the donation form reads"""
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request"})


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Donation Gateway",
        description="Donation charges and follow-up recurring billing on Stripe",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    app.add_exception_handler(HTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(payment_intents.router, prefix="/api", tags=["donations"])
    app.include_router(subscriptions.router, prefix="/api", tags=["subscriptions"])
    app.include_router(webhook.router, prefix="/api", tags=["webhooks"])

    return app


app = create_app()
