"""Registration and login routes."""

from fastapi import APIRouter, Depends, status

from study_deck.errors import StudyDeckError
from study_deck.managers.auth_manager import AuthManager
from study_deck.models.deck_models import LoginRequest, RegisterRequest, TokenResponse, UserResponse
from study_deck.routes.dependencies import get_auth_manager, to_http_exception

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, auth_manager: AuthManager = Depends(get_auth_manager)) -> UserResponse:
    """Register a new user."""
    try:
        user = await auth_manager.register(payload.username, payload.password)
    except StudyDeckError as e:
        raise to_http_exception(e) from e
    return UserResponse.from_document(user)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, auth_manager: AuthManager = Depends(get_auth_manager)) -> TokenResponse:
    """Log in and receive a bearer token."""
    try:
        user, token = await auth_manager.login(payload.username, payload.password)
    except StudyDeckError as e:
        raise to_http_exception(e) from e
    return TokenResponse(access_token=token, user=UserResponse.from_document(user))
