"""Application factory — wires settings, store, provider, and resolver into FastAPI."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from docvault import __version__

from .api import router
from .auth import JWTSessionResolver
from .config import Settings
from .embeddings import EmbeddingOptions, OpenAIEmbedding
from .logging_config import setup_logging
from .models.documents import Document, DocumentOwner
from .service import DocumentService
from .store import DocumentStore

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from sqlalchemy.ext.asyncio import AsyncEngine

    from .auth import SessionResolver

logger = logging.getLogger(__name__)


async def ensure_schema(engine: AsyncEngine) -> None:
    """Create the document and ownership tables (and the pgvector extension) if missing."""
    async with engine.begin() as conn:
        if engine.dialect.name == "postgresql":
            await conn.execute(text("CREATE EXTENSION IF NOT EXISTS vector"))
        await conn.run_sync(
            lambda c: SQLModel.metadata.create_all(
                c,
                tables=[Document.__table__, DocumentOwner.__table__],  # type: ignore[attr-defined]
            )
        )


def create_app(
    settings: Settings | None = None,
    *,
    service: DocumentService | None = None,
    resolver: SessionResolver | None = None,
) -> FastAPI:
    """Build the FastAPI application.

    Injected *service* / *resolver* are attached immediately.  Missing
    ones are built from *settings* (default: :meth:`Settings.from_env`)
    when the app starts, and released when it shuts down.
    """
    settings = settings or Settings.from_env()
    setup_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        engine: AsyncEngine | None = None
        provider: OpenAIEmbedding | None = None

        if resolver is None:
            app.state.resolver = JWTSessionResolver(
                settings.jwt_secret,
                audience=settings.jwt_audience,
                cookie_name=settings.session_cookie,
            )

        if service is None:
            engine = create_async_engine(settings.database_url)
            await ensure_schema(engine)
            provider = OpenAIEmbedding(
                EmbeddingOptions(
                    api_key=settings.openai_api_key,
                    model=settings.embedding_model,
                )
            )
            app.state.service = DocumentService(
                session_factory=async_sessionmaker(
                    engine,
                    class_=AsyncSession,
                    expire_on_commit=False,
                ),
                store=DocumentStore(dialect=settings.dialect),
                embedding_provider=provider,
            )
            logger.info("Document store ready (%s)", settings.dialect)

        try:
            yield
        finally:
            if provider is not None:
                await provider.close()
            if engine is not None:
                await engine.dispose()

    app = FastAPI(title="docvault", version=__version__, lifespan=lifespan)
    if service is not None:
        app.state.service = service
    if resolver is not None:
        app.state.resolver = resolver
    app.include_router(router)
    return app
