"""
FastAPI application entry point.
Configures routes, middleware, and lifecycle events.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from citycard.config import settings
from citycard.exceptions import UpstreamUnavailable
from citycard.logging_config import configure_logging
from citycard.redis import RedisClient

from citycard.api.image import router as image_router
from citycard.api.geocode import router as geocode_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifecycle manager."""
    # Startup
    configure_logging()
    logging.info(
        f"Starting up {settings.app_name} "
        f"(prompt {settings.card_prompt_version}, storage {settings.storage_backend})"
    )

    if RedisClient.is_configured():
        try:
            RedisClient.get_client()
        except Exception as e:
            logging.warning(f"Failed to initialize Redis: {e}")
    else:
        logging.info("REDIS_URL not set, generation lease disabled")

    yield

    # Shutdown
    await RedisClient.close()
    logging.info("Shutting down...")


app = FastAPI(
    title="City Card",
    description="Daily AI weather cards per city",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.debug,
)


@app.exception_handler(UpstreamUnavailable)
async def upstream_unavailable_handler(request: Request, exc: UpstreamUnavailable):
    logging.error(f"Upstream not configured: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Service is not configured"},
    )


# Global Exception Handler
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logging.error(f"Global exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"error": "Internal Server Error"},
    )


# CORS middleware
origins = list(settings.cors_origins)
if settings.is_development:
    origins.append("*")

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {
        "status": "healthy",
        "app": settings.app_name,
        "env": settings.app_env,
        "prompt_version": settings.card_prompt_version,
    }


app.include_router(image_router)
app.include_router(geocode_router)
