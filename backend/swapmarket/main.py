"""FastAPI application entry point"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from swapmarket.api.auth import router as auth_router
from swapmarket.api.dashboard import router as dashboard_router
from swapmarket.api.moderation import router as moderation_router
from swapmarket.api.notifications import router as notifications_router
from swapmarket.api.products import router as products_router
from swapmarket.api.reports import router as reports_router
from swapmarket.api.shoutouts import router as shoutouts_router
from swapmarket.api.swaps import router as swaps_router
from swapmarket.core.config import get_settings
from swapmarket.core.database import close_db
from swapmarket.core.exceptions import AppError
from swapmarket.core.redis import close_redis
from swapmarket.middleware.rate_limit import cleanup_task

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Start the limiter cleanup loop; release pools on shutdown"""
    cleanup_task_handle = asyncio.create_task(cleanup_task())
    logger.info(f"{settings.app_name} {settings.app_version} started")

    yield

    cleanup_task_handle.cancel()
    await close_db()
    await close_redis()


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="Product swapping marketplace API",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


app.include_router(auth_router)
app.include_router(products_router)
app.include_router(moderation_router)
app.include_router(swaps_router)
app.include_router(shoutouts_router)
app.include_router(notifications_router)
app.include_router(dashboard_router)
app.include_router(reports_router)


@app.get("/health")
async def health_check() -> dict:
    return {"status": "healthy", "version": settings.app_version}


@app.get("/")
async def root() -> dict:
    return {"message": f"Welcome to the {settings.app_name} API", "docs": "/docs"}
