"""ReApply - job application email pipeline with Gmail delivery and follow-ups."""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reapply.core.redis_client import close_redis
from reapply.core.storage import init_models
from reapply.routers import applications_router, auth_router, pipeline_router

log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    logger.info("Initializing application...")
    await init_models()
    logger.info("Application initialized")

    yield

    logger.info("Shutting down...")
    await close_redis()
    logger.info("Shutdown complete")


app = FastAPI(
    title="ReApply",
    description="Compose, send and follow up on job application emails",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth_router)
app.include_router(pipeline_router)
app.include_router(applications_router)


@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "message": "ReApply API",
        "version": "1.0.0",
        "docs": "/docs",
        "status": "active",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "service": "reapply"}
