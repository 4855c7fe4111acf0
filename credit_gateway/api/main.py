"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from credit_gateway.api.errors import register_exception_handlers
from credit_gateway.api.middleware import MetricsMiddleware, RequestIDMiddleware
from credit_gateway.api.routes import lending, sync
from credit_gateway.config import settings
from credit_gateway.infrastructure.observability.logging import setup_logging

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Credit Gateway",
        description="Trading-activity credit score sync and lending eligibility service",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name, "dataSource": settings.data_source_mode}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(sync.router, tags=["sync"])
    app.include_router(lending.router, tags=["lending"])

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve on the configured host and port"""
    import uvicorn

    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
