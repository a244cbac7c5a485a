"""
FastAPI application entry point.

This module initializes the FastAPI application, configures middleware,
and registers the API routers.
"""
import logging
import os
from datetime import datetime
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.config import settings
from .core.logging_config import configure_logging
from .api.routers import imports
from .domain.imports.entities import validate_mapping_tables

# Ensure logging is configured before the application starts serving requests.
configure_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Validate import mappings and create tables on startup."""
    validate_mapping_tables()
    logger.info("Import mapping tables validated")

    if os.getenv("SKIP_DB_INIT") == "1":
        logger.info("SKIP_DB_INIT=1 detected; skipping database bootstrap during startup")
        yield
        return

    from .core.security import init_auth_tables
    from .db.models import create_entity_tables
    from .db.session import get_engine

    engine = get_engine()
    init_auth_tables(engine)
    create_entity_tables(engine)
    logger.info("Database tables ready")

    yield


app = FastAPI(
    title="SupplyHub API",
    version="1.0.0",
    description="Procurement records backend with batch CSV import",
    lifespan=lifespan
)

allowed_origins = [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Register routers
app.include_router(imports.router)


@app.get("/")
async def root():
    """Root endpoint returning API information."""
    return {"message": "SupplyHub API", "version": app.version}


@app.get("/health")
async def health_check():
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "service": "supplyhub-api"
    }
