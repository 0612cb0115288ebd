"""
Authentication for the study service: registration, login and bearer tokens.

Passwords are hashed with bcrypt; access tokens are HS256 JWTs whose ``sub``
claim is the user id. The deck manager only ever sees the resulting
`Identity`.
"""

from datetime import timedelta
from typing import Any, Dict, Optional, Tuple

import bcrypt
from jose import JWTError, jwt

from study_deck.config import Settings
from study_deck.errors import AuthenticationError, UserNotFoundError, ValidationError
from study_deck.managers.logging_manager import get_logger
from study_deck.models.deck_models import Identity, UserDocument
from study_deck.stores.base import DeckStore
from study_deck.utils.datetime_utils import Clock, utc_now


class AuthManager:
    def __init__(self, store: DeckStore, config: Settings, clock: Clock = utc_now, logging_manager: Any = None):
        self.store = store
        self.config = config
        self.clock = clock
        self.logging_manager = logging_manager or get_logger(prefix="[Auth]")

    def _secret_key(self) -> str:
        secret_key = self.config.SECRET_KEY.get_secret_value()
        if not secret_key:
            self.logging_manager.error("JWT secret key is missing or invalid. Check your settings.SECRET_KEY.")
            raise RuntimeError("JWT secret key is missing or invalid. Check your settings.SECRET_KEY.")
        return secret_key

    async def register(self, username: str, password: str) -> UserDocument:
        """
        Create a user with a bcrypt-hashed password.

        Raises:
            ValidationError: Missing username or too short password.
            UsernameTakenError: The username is already registered.
        """
        username = (username or "").strip()
        if not username or not password:
            raise ValidationError("You must provide username and password", "REGISTRATION_INVALID")
        if len(password) < self.config.MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password length must be atleast {self.config.MIN_PASSWORD_LENGTH} characters long",
                "REGISTRATION_INVALID",
                {"min_length": self.config.MIN_PASSWORD_LENGTH},
            )

        hashed_pw = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")
        user = await self.store.insert_user(
            UserDocument(username=username, password_hash=hashed_pw, decks=[], created_at=self.clock())
        )
        self.logging_manager.info("User registered: %s", username)
        return user

    async def login(self, username: str, password: str) -> Tuple[UserDocument, str]:
        """Check credentials and return the user with a fresh access token."""
        if not username or not password:
            raise ValidationError("You must provide username and password", "LOGIN_INVALID")

        user = await self.store.find_user_by_username(username)
        if user is None:
            raise UserNotFoundError(username)

        if not bcrypt.checkpw(password.encode("utf-8"), user.password_hash.encode("utf-8")):
            self.logging_manager.warning("Invalid credentials for user: %s", username)
            raise AuthenticationError("Invalid credentials")

        token = self.create_access_token({"sub": user.id, "username": user.username})
        self.logging_manager.info("User logged in: %s", username)
        return user, token

    def create_access_token(self, data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        now = self.clock()
        expire = now + (expires_delta or timedelta(minutes=self.config.ACCESS_TOKEN_EXPIRE_MINUTES))
        to_encode = data.copy()
        to_encode.update({"exp": expire, "iat": now, "type": "access"})
        return jwt.encode(to_encode, self._secret_key(), algorithm=self.config.ALGORITHM)

    def resolve_identity(self, token: str) -> Identity:
        """
        Decode a bearer token into the caller's identity.

        Raises:
            AuthenticationError: Invalid, expired or malformed token.
        """
        try:
            payload = jwt.decode(token, self._secret_key(), algorithms=[self.config.ALGORITHM])
        except JWTError as e:
            self.logging_manager.warning("Invalid token: %s", e)
            raise AuthenticationError(f"Can't authenticate : {e}") from e

        user_id = payload.get("sub")
        if not user_id:
            self.logging_manager.warning("JWT payload missing 'sub' claim")
            raise AuthenticationError()
        return Identity(user_id=user_id, username=payload.get("username"))
