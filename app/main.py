"""
FastAPI application with notification service lifecycle management.
"""

import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.infrastructure.observability.logging import get_logger, setup_logging
from app.routes import health, operations
from app.services.container import NotificationServices, build_services

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


def create_app(services: NotificationServices | None = None) -> FastAPI:
    """
    Build the application. Services are constructed at startup unless
    provided, and always started and closed by the lifespan.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Application starting", environment=settings.environment, debug=settings.debug)

        app.state.services = services if services is not None else build_services(settings)
        try:
            await app.state.services.start()
        except Exception as e:
            logger.error("Failed to start notification services", error=str(e))
            await app.state.services.close()
            raise

        yield

        logger.info("Application shutting down")
        await app.state.services.close()

    app = FastAPI(
        title="Rental Notification Backend",
        description="Scheduled and on-demand WhatsApp notifications for tenants",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(health.router)
    app.include_router(operations.router)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log HTTP requests with timing."""
        start_time = time.time()
        response = await call_next(request)
        process_time = (time.time() - start_time) * 1000

        logger.info(
            "HTTP request completed",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=round(process_time, 2),
        )
        return response

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8080)
