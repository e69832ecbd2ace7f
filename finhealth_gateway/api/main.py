"""FastAPI application factory"""

from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from finhealth_gateway.api.middleware import RequestIDMiddleware, MetricsMiddleware
from finhealth_gateway.api.v1 import analytics, fin_health, more, rates
from finhealth_gateway.domain.currency import RateTable
from finhealth_gateway.domain.exceptions import AuthenticationMissing
from finhealth_gateway.infrastructure.clients.rates import RateProviderClient
from finhealth_gateway.infrastructure.observability.logging import setup_logging
from finhealth_gateway.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app(rate_table: Optional[RateTable] = None) -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Financial Health Gateway",
        description="Currency-normalized financial health indicators",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Shared rate snapshot, populated on first conversion
    if rate_table is None:
        rate_table = RateTable(loader=RateProviderClient().fetch_rates)
    app.state.rate_table = rate_table

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    @app.exception_handler(AuthenticationMissing)
    def authentication_missing(request: Request, exc: AuthenticationMissing):
        return JSONResponse(status_code=401, content={"detail": "Not authenticated"})

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(fin_health.router, prefix="/v1", tags=["financial health"])
    app.include_router(analytics.router, prefix="/v1", tags=["analytics"])
    app.include_router(more.router, prefix="/v1", tags=["more"])
    app.include_router(rates.router, prefix="/v1", tags=["rates"])

    return app


app = create_app()
