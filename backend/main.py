"""FastAPI application entry point."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api import health_checks, push, sync, tenant_configs, webhooks
from config import settings
from database import init_db
from logging_config import setup_logging

setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Apply pending migrations on startup."""
    try:
        init_db()
    except Exception:
        logger.error("Database initialization failed on startup", exc_info=True)
        raise
    logger.info("Practice sync service started (environment=%s)", settings.ENVIRONMENT)
    yield


app = FastAPI(
    title="Practice Sync",
    description="Keeps local practice records in step with the upstream practice-management system",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API routers
app.include_router(tenant_configs.router)
app.include_router(sync.router)
app.include_router(webhooks.router)
app.include_router(push.router)
app.include_router(health_checks.router)


@app.get("/health")
def health_check():
    """Health check endpoint."""
    return {"status": "ok"}
