"""Dependency providers and settings management."""

from functools import lru_cache
from typing import Optional

from fastapi import Cookie, Depends, Header, HTTPException, status
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.orm import Session

from .database import get_db
from .models import User
from .security import decode_token


class Settings(BaseSettings):
    """Application settings loaded from environment or .env."""

    BACKEND_CORS_ORIGINS: str = "http://localhost:5173,http://localhost:3000"
    # Cookie domain must NOT include protocol (https://)
    COOKIE_DOMAIN: Optional[str] = None
    ENVIRONMENT: str = "development"
    # When true, 500 responses carry a `details` field with the exception text
    DEBUG: bool = False
    SENTRY_DSN: Optional[str] = None

    # OpenAI
    OPENAI_API_KEY: str | None = None
    OPENAI_MODEL: str = "gpt-4o-mini"
    OPENAI_TIMEOUT_SECONDS: float = 60.0

    # Agent loop
    AGENT_TEMPERATURE: float = 0.3
    AGENT_MAX_TOKENS: int = 2000
    AGENT_MAX_ITERATIONS: int = 5
    # Persona and formatting instructions; None uses the built-in NEXO prompt
    AGENT_SYSTEM_PROMPT: Optional[str] = None

    # Chat history
    HISTORY_DEFAULT_LIMIT: int = 50

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()  # type: ignore[call-arg]


def get_current_user(
    db: Session = Depends(get_db),
    access_token: Optional[str] = Cookie(default=None, alias="access_token"),
    authorization: Optional[str] = Header(default=None),
) -> User:
    """Resolve the current user from the `access_token` cookie.

    The cookie value is expected to be in the form: "Bearer <jwt>".
    An `Authorization: Bearer <jwt>` header is accepted as well so that
    scripts can call the API without a cookie jar.
    """
    raw = access_token or authorization
    if not raw:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Não autenticado")

    # Remove optional "Bearer " prefix
    if raw.startswith("Bearer "):
        token = raw[len("Bearer ") :]
    else:
        token = raw

    try:
        payload = decode_token(token)
    except Exception:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")

    subject = payload.get("sub")
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Token inválido")

    user = (
        db.query(User)
        .filter(User.email == subject)
        .first()
    )
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Usuário não encontrado")
    return user
