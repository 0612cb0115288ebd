"""
FastAPI dependencies shared by the route modules.

Managers are composed once at startup and kept on ``app.state``; routes
receive them through these functions so tests can swap them with
``app.dependency_overrides``.
"""

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer

from study_deck.errors import AuthenticationError, StudyDeckError
from study_deck.managers.auth_manager import AuthManager
from study_deck.managers.deck_manager import DeckManager
from study_deck.managers.logging_manager import get_logger
from study_deck.models.deck_models import Identity

logger = get_logger(prefix="[Dependencies]")

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login")


async def get_deck_manager(request: Request) -> DeckManager:
    return request.app.state.deck_manager


async def get_auth_manager(request: Request) -> AuthManager:
    return request.app.state.auth_manager


async def get_current_identity(
    token: str = Depends(oauth2_scheme), auth_manager: AuthManager = Depends(get_auth_manager)
) -> Identity:
    """Resolve the bearer token of the request into the caller's identity."""
    try:
        return auth_manager.resolve_identity(token)
    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=e.to_dict(),
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


def to_http_exception(error: StudyDeckError) -> HTTPException:
    """Translate a domain error into the HTTP error returned to the client."""
    if error.status_code >= 500:
        logger.error("Internal failure: %s (%s)", error.message, error.error_code)
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "Internal server error", "error_code": error.error_code, "details": {}},
        )

    logger.warning("Request rejected: %s (%s)", error.message, error.error_code)
    return HTTPException(status_code=error.status_code, detail=error.to_dict())
