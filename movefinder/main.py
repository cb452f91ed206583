from fastapi import FastAPI, Request, Depends
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware
from datetime import datetime, timezone
from movefinder.api import quotes, upload
from movefinder.core.config import settings
from movefinder.core.redis import init_redis, close_redis
from movefinder.core.metrics import request_count, request_duration, db_connected, redis_connected, get_metrics_text
from movefinder.db.session import get_db, init_db, close_db
from movefinder.services.detection import ObjectDetectionService, get_detection_service
from movefinder.services.email import EmailService, get_email_service
import time
import logging

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


class MetricsMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        status = 500

        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            # templated route path keeps label cardinality bounded
            endpoint = getattr(request.scope.get("route"), "path", request.url.path)
            request_count.labels(method=request.method, endpoint=endpoint, status=status).inc()
            request_duration.labels(method=request.method, endpoint=endpoint).observe(time.time() - start_time)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    logger.info(f"Austin Move Finder API starting ({settings.ENVIRONMENT})")

    try:
        await init_db()
        db_connected.set(1)
        logger.info("Database connected")
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")
        db_connected.set(0)
        raise

    if settings.REDIS_URL:
        try:
            await init_redis()
            redis_connected.set(1)
        except Exception as e:
            logger.error(f"Redis connection failed: {e}")
            redis_connected.set(0)

    yield

    logger.info("Application shutting down...")
    await close_redis()
    redis_connected.set(0)
    await close_db()
    db_connected.set(0)
    logger.info("Shutdown complete")


app = FastAPI(
    title=settings.API_TITLE,
    description=settings.API_DESCRIPTION,
    version=settings.API_VERSION,
    lifespan=lifespan
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(quotes.router)
app.include_router(upload.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "message": "Something went wrong" if settings.is_production else str(exc),
        },
    )


@app.get("/metrics", tags=["monitoring"])
async def metrics():
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8"
    )


@app.get("/api/health", tags=["monitoring"])
async def health_check(
    db: AsyncSession = Depends(get_db),
    email_service: EmailService = Depends(get_email_service),
    detector: ObjectDetectionService = Depends(get_detection_service),
):
    try:
        await db.execute(text("SELECT 1"))
        db_connected.set(1)
    except Exception as e:
        logger.error(f"Health check database failure: {e}")
        db_connected.set(0)
        return JSONResponse(
            status_code=503,
            content={
                "status": "unhealthy",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "error": "Database connection failed",
            },
        )

    email_status = await email_service.test_connection()
    ai_status = await detector.health_check()

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.API_VERSION,
        "services": {
            "database": "connected",
            "email": email_status.status,
            "ai_detection": ai_status.status,
        },
    }


@app.get("/api", tags=["root"])
async def root():
    return {
        "message": "Austin Move Finder API",
        "version": settings.API_VERSION,
        "docs": "/docs",
        "endpoints": {
            "health": "GET /api/health",
            "create_quote": "POST /api/quotes",
            "list_quotes": "GET /api/quotes",
            "get_quote": "GET /api/quotes/{id}",
            "update_quote": "PUT /api/quotes/{id}",
            "quote_history": "GET /api/quotes/{id}/history",
            "add_items": "POST /api/quotes/{id}/items",
            "submit_quote": "POST /api/quotes/{id}/submit",
            "estimate": "POST /api/quotes/estimate",
            "upload_media": "POST /api/upload/{quote_id}",
            "list_media": "GET /api/upload/{quote_id}/files",
            "get_file": "GET /api/upload/file/{filename}",
            "delete_file": "DELETE /api/upload/file/{filename}",
            "metrics": "GET /metrics",
        },
    }
