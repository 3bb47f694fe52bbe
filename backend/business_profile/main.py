"""Business Profile API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ProfileEditorError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager; open editing
      sessions are closed on shutdown so no background result lands afterwards

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py (three layers: domain, validation,
      catch-all), never leaking internal details
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from business_profile import __version__
from business_profile.api.error_handlers import register_error_handlers
from business_profile.api.routes import editor, health
from business_profile.config import get_settings
from business_profile.infrastructure import database
from business_profile.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    if database.db_manager is None:
        database.init_db(
            settings.database_url,
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    logger.info("Business Profile API started")
    yield
    for session in list(editor._editor_sessions.values()):
        session.close()
    editor._editor_sessions.clear()
    if database.db_manager is not None:
        await database.db_manager.dispose()
    logger.info("Business Profile API shutting down")


app = FastAPI(
    title="Business Profile API", version=__version__, lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(editor.router)

register_error_handlers(app)
