"""Awoof API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery — ExMA anti-pattern)
    - Global error handlers map AwoofError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database and key-value store initialized on startup, closed on shutdown

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
      (ADR: FastAPI 0.128)
    - Error handlers live in api/error_handlers.py (ADR: ExMA import fan-out < 10)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from awoof.api.dependencies import close_clients
from awoof.api.error_handlers import register_error_handlers
from awoof.api.routes import (
    admin, auth, health, products, students, universities, vendors, verification,
)
from awoof.config import get_settings
from awoof.infrastructure.database import close_db, init_db
from awoof.infrastructure.observability import setup_logging
from awoof.infrastructure.redis_store import close_kv_store, init_kv_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    init_kv_store(settings.redis_url)
    logger.info("Awoof API started")
    yield
    logger.info("Awoof API shutting down")
    await close_clients()
    await close_kv_store()
    await close_db()


app = FastAPI(title="Awoof API", version="1.0.0", lifespan=lifespan)

# CORS: configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes: explicit registration (ExMA: no convention-over-config)
app.include_router(health.router)
app.include_router(auth.router)
app.include_router(verification.router)
app.include_router(universities.router)
app.include_router(products.router)
app.include_router(students.router)
app.include_router(vendors.router)
app.include_router(admin.router)

register_error_handlers(app)
