"""
Browsing insights API with database pool lifecycle management.
"""

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request

from app.config import settings
from app.db.pool import db_pool
from app.features.browsing_insights import insights_router
from app.infrastructure.observability.logging import (
    bind_request_context,
    get_logger,
    setup_logging,
)
from app.routes import health

# Setup logging before creating the app
setup_logging(log_level=settings.LOG_LEVEL)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the database pool on startup and close it on shutdown."""
    logger.info("Application starting", environment=settings.environment, debug=settings.debug)

    try:
        logger.info("Initializing database pool")
        await db_pool.initialize()
    except Exception as e:
        logger.error("Failed to initialize database pool", error=str(e))
        raise

    yield

    logger.info("Application shutting down")
    try:
        await db_pool.close()
        logger.info("Database pool closed")
    except Exception as e:
        logger.error("Error closing database pool", error=str(e))


app = FastAPI(
    title="Browsing Insights",
    description="Behavioural insights over synced browsing activity",
    version="0.1.0",
    lifespan=lifespan,
)

# Include routers
app.include_router(health.router)
app.include_router(insights_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log HTTP requests with timing under a per-request id."""
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    bind_request_context(request_id, request.method, request.url.path)

    start_time = time.time()
    response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    process_time = (time.time() - start_time) * 1000

    logger.info(
        "HTTP request completed",
        status_code=response.status_code,
        duration_ms=round(process_time, 2),
    )
    return response


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
