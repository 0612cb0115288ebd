"""
Main application module for the Study Deck API.

Sets up the FastAPI application with lifespan management, the MongoDB
connection, manager composition and routing.
"""

from contextlib import asynccontextmanager
import time
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import uvicorn

from study_deck.config import Settings, settings
from study_deck.database import DatabaseManager
from study_deck.managers.auth_manager import AuthManager
from study_deck.managers.deck_manager import DeckManager
from study_deck.managers.logging_manager import get_logger
from study_deck.routes import auth_router, decks_router
from study_deck.stores import DeckStore, MongoDeckStore
from study_deck.utils.datetime_utils import Clock, utc_now
from study_deck.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger()


def _compose_managers(app: FastAPI, config: Settings, store: DeckStore, clock: Clock) -> None:
    app.state.store = store
    app.state.deck_manager = DeckManager(
        store,
        clock=clock,
        queue_limit=config.REVIEW_QUEUE_LIMIT,
        max_retries=config.REVIEW_UPDATE_MAX_RETRIES,
    )
    app.state.auth_manager = AuthManager(store, config)


def create_app(config: Settings = settings, store: Optional[DeckStore] = None, clock: Clock = utc_now) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Settings to run with.
        store: Pre-built store. When omitted, the lifespan connects to MongoDB.
        clock: Source of the current time for review scheduling.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        startup_start_time = time.time()
        log_application_lifecycle(
            "startup_initiated",
            {"app_name": config.APP_NAME, "environment": config.ENV, "debug_mode": config.DEBUG},
        )

        db_manager: Optional[DatabaseManager] = None
        active_store = store
        if active_store is None:
            db_manager = DatabaseManager(config)
            try:
                await db_manager.connect()
                await db_manager.create_indexes()
            except Exception as e:
                log_error_with_context(e, {"operation": "application_startup", "phase": "database_connection"})
                raise
            log_application_lifecycle("database_connected", {"database_name": config.MONGODB_DATABASE})
            active_store = MongoDeckStore(db_manager)

        app.state.db_manager = db_manager
        _compose_managers(app, config, active_store, clock)
        log_application_lifecycle(
            "startup_completed", {"startup_duration": f"{time.time() - startup_start_time:.3f}s"}
        )

        yield

        log_application_lifecycle("shutdown_initiated")
        if db_manager is not None:
            await db_manager.disconnect()
        log_application_lifecycle("shutdown_completed")

    app = FastAPI(
        title="Study Deck API",
        description="Flashcard decks with spaced-repetition review scheduling.",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(auth_router)
    app.include_router(decks_router)

    @app.get("/health", tags=["health"])
    async def health() -> dict:
        db_manager = getattr(app.state, "db_manager", None)
        database_ok = True if db_manager is None else await db_manager.health_check()
        return {"status": "ok" if database_ok else "degraded", "database": database_ok}

    return app


app = create_app()


if __name__ == "__main__":
    uvicorn.run("study_deck.main:app", host=settings.HOST, port=settings.PORT, reload=settings.DEBUG, log_level="info")
