"""Configuration module for the Study Deck service.

The config file is discovered in the following order: (1) via the
`STUDY_DECK_CONFIG_PATH` environment variable, (2) `.env` in the project
root, (3) fallback to environment variables only. This lets the service run
with just environment variables in containers and CI.

All values are loaded through Pydantic's `BaseSettings`. Secrets (JWT key,
MongoDB password) are never hardcoded and must come from the environment or
the config file; this is enforced when `ENV=production`.

How to extend/maintain:
-----------------------
- Add new config fields to the `Settings` class and document them.
- If you change the config discovery logic, update this docstring.
"""

import os
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# --- Constants ---
DEFAULT_ENV_FILENAME: str = ".env"
CONFIG_ENV_VAR: str = "STUDY_DECK_CONFIG_PATH"
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent


# --- Config file discovery (no logging) ---
def get_config_path() -> Optional[str]:
    """Determine the config file path to use, in order of precedence:
    1. Environment variable STUDY_DECK_CONFIG_PATH
    2. .env in project root
    3. None (fallback to environment variables only)

    Returns:
        Optional[str]: Path to config file, or None if not found.
    """
    env_path: Optional[str] = os.environ.get(CONFIG_ENV_VAR)
    if env_path and os.path.exists(env_path):
        return env_path
    env_path_file: Path = PROJECT_ROOT / DEFAULT_ENV_FILENAME
    if env_path_file.exists():
        return str(env_path_file)
    return None


CONFIG_PATH: Optional[str] = get_config_path()
if CONFIG_PATH:
    load_dotenv(dotenv_path=CONFIG_PATH, override=True)


class Settings(BaseSettings):
    """Application settings with environment variable support.
    All fields are loaded from the environment or the .env file.
    """

    model_config = SettingsConfigDict(
        env_file=CONFIG_PATH if CONFIG_PATH else None,
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="allow",  # Allow extra env vars not defined as fields
    )

    # Server configuration
    HOST: str = "127.0.0.1"
    PORT: int = 8000
    DEBUG: bool = True
    ENV: str = "dev"
    APP_NAME: str = "Study_Deck"
    CORS_ORIGINS: List[str] = ["*"]

    # JWT configuration
    SECRET_KEY: SecretStr = SecretStr("")  # Must be set in .env or environment
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 180

    # MongoDB configuration
    MONGODB_URL: str = "mongodb://localhost:27017"
    MONGODB_DATABASE: str = "study_deck"
    MONGODB_CONNECTION_TIMEOUT: int = 10000
    MONGODB_SERVER_SELECTION_TIMEOUT: int = 5000
    MONGODB_USERNAME: Optional[str] = None
    MONGODB_PASSWORD: Optional[SecretStr] = None

    # Logging
    LOG_LEVEL: str = "INFO"

    # Review scheduling
    REVIEW_QUEUE_LIMIT: int = 20
    REVIEW_UPDATE_MAX_RETRIES: int = 3

    # Registration
    MIN_PASSWORD_LENGTH: int = 6

    @field_validator("SECRET_KEY", mode="before")
    @classmethod
    def no_placeholder_secrets(cls, v, info):
        if v and ("change" in str(v).lower() or "0000" in str(v)):
            raise ValueError(f"{info.field_name} must be set via environment or .env and not hardcoded!")
        return v

    @field_validator("REVIEW_QUEUE_LIMIT", "REVIEW_UPDATE_MAX_RETRIES", "MIN_PASSWORD_LENGTH", mode="before")
    @classmethod
    def validate_positive_integers(cls, v, info):
        value = int(v)
        if value <= 0:
            raise ValueError(f"{info.field_name} must be a positive integer")
        return value

    @model_validator(mode="after")
    def require_secrets_in_production(self) -> "Settings":
        if self.is_production:
            if not self.SECRET_KEY.get_secret_value().strip():
                raise ValueError("SECRET_KEY must be set via environment or .env in production!")
            if not self.MONGODB_URL.strip():
                raise ValueError("MONGODB_URL must be set via environment or .env in production!")
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.ENV.lower() == "production"


settings = Settings()
