"""Configuration loaded from the environment (and an optional ``.env`` file)."""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

_DEFAULT_DATABASE_URL = "sqlite+aiosqlite:///./docvault.db"


@dataclass(frozen=True, slots=True)
class Settings:
    """Runtime settings for the HTTP service.

    Attributes:
        database_url: SQLAlchemy async URL for the document store.
        openai_api_key: Key for the hosted embedding API.
        embedding_model: Embedding model name.
        jwt_secret: HS256 secret used to verify session tokens.
        jwt_audience: Expected ``aud`` claim; empty disables the check.
        session_cookie: Cookie consulted when no bearer header is sent.
        log_level: Root logging level name.
    """

    database_url: str = _DEFAULT_DATABASE_URL
    openai_api_key: str = ""
    embedding_model: str = "text-embedding-3-small"
    jwt_secret: str = ""
    jwt_audience: str | None = "authenticated"
    session_cookie: str = "access_token"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, *, dotenv: bool = True) -> Settings:
        """Build settings from environment variables."""
        if dotenv:
            load_dotenv()
        return cls(
            database_url=os.getenv("DATABASE_URL", _DEFAULT_DATABASE_URL),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            embedding_model=os.getenv("EMBEDDING_MODEL", "text-embedding-3-small"),
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_audience=os.getenv("JWT_AUDIENCE", "authenticated") or None,
            session_cookie=os.getenv("SESSION_COOKIE", "access_token"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )

    @property
    def dialect(self) -> str:
        """Return 'sqlite', 'postgresql', etc. from the database URL."""
        scheme = self.database_url.split("://", 1)[0]
        name = scheme.split("+", 1)[0]
        if name in ("postgresql", "postgres"):
            return "postgresql"
        return name
