"""Routes package initialization."""

from study_deck.routes.auth import router as auth_router
from study_deck.routes.decks import router as decks_router

__all__ = ["auth_router", "decks_router"]
