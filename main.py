"""FastAPI application factory and main entry point."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

import config
import logging_config
from api import router as api_router
from api.v1 import fallback
from db import close_db, init_db
from services import events
from services.catalog_urlables import register_catalog_urlables

# Setup logging
logging_config.setup_logging(config.settings.LOG_LEVEL, config.settings.URL_ENGINE_LOG_LEVEL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for startup and shutdown events.

    Urlable types are registered first: a type without a url builder stops startup.
    """
    # Startup
    register_catalog_urlables()
    if config.settings.REGISTER_FALLBACK:
        events.listen(events.UrlMatched, fallback.respond_with_owner)
    await init_db()
    yield
    # Shutdown
    events.forget(events.UrlMatched)
    await close_db()


# Create FastAPI app
app = FastAPI(
    title="Slugpath Backend",
    description="Slugs and versioned full URLs for catalog entities",
    version="0.1.0",
    lifespan=lifespan,
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router.api_router, prefix=config.settings.API_PREFIX)


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "message": "Slugpath Backend API",
        "version": "0.1.0",
    }


# Catch-all must stay last
if config.settings.REGISTER_FALLBACK:
    app.include_router(fallback.router)
