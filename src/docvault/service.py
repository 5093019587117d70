"""DocumentService — orchestrates session, embedding provider, and document store.

Each public method is one workflow.  A workflow opens a single session,
performs its store calls, and commits once at the end; any failure rolls
the session back so no half-written row is ever committed.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import (
    AuthenticationRequiredError,
    DocumentNotFoundError,
    InvalidPayloadError,
    StorageError,
)
from .schemas import DocumentPayload
from .types import DocumentVersion, RelevantDocument, WriteResult

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Callable

    from sqlalchemy.ext.asyncio import AsyncSession

    from .auth import Identity
    from .embeddings import EmbeddingProvider
    from .store import DocumentStore

logger = logging.getLogger(__name__)

MATCH_THRESHOLD: float = 0.7
"""Minimum cosine similarity for a document to count as relevant."""

MATCH_COUNT: int = 5
"""Maximum number of relevant documents returned per query."""


def _require_user(user: Identity | None) -> Identity:
    if user is None:
        raise AuthenticationRequiredError("Unauthorized")
    return user


def _require_id(doc_id: str | None) -> str:
    if not doc_id:
        raise InvalidPayloadError("Missing id")
    return doc_id


def parse_payload(data: Any) -> DocumentPayload:
    """Validate a raw ``{content, title}`` body, raising :class:`InvalidPayloadError`."""
    try:
        return DocumentPayload.model_validate(data)
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) or "body" for err in e.errors())
        raise InvalidPayloadError(f"Invalid document payload: {fields}") from e


class DocumentService:
    """Document write, read, and relevance workflows.

    Collaborators are injected so tests can swap in fakes::

        service = DocumentService(
            session_factory=async_sessionmaker(engine, class_=AsyncSession),
            store=DocumentStore(dialect="postgresql"),
            embedding_provider=OpenAIEmbedding(EmbeddingOptions(api_key=...)),
        )
    """

    def __init__(
        self,
        *,
        session_factory: Callable[..., AsyncSession],
        store: DocumentStore,
        embedding_provider: EmbeddingProvider,
    ) -> None:
        self._session_factory = session_factory
        self._store = store
        self._embedding_provider = embedding_provider

    @property
    def store(self) -> DocumentStore:
        return self._store

    @property
    def embedding_provider(self) -> EmbeddingProvider:
        return self._embedding_provider

    # ------------------------------------------------------------------
    # Session management (per-workflow)
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session(self) -> AsyncGenerator[AsyncSession]:
        session = self._session_factory()
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    # ------------------------------------------------------------------
    # Write workflows
    # ------------------------------------------------------------------

    async def save_document(
        self,
        doc_id: str | None,
        payload: Any,
        user: Identity | None,
    ) -> WriteResult:
        """Insert a new document or update the caller's existing one.

        The existence check and the update are both scoped to the caller:
        an id owned by another user is reported as not found, and an update
        that matches no row is an error rather than a silent success.
        """
        caller = _require_user(user)
        doc_id = _require_id(doc_id)
        body = payload if isinstance(payload, DocumentPayload) else parse_payload(payload)

        async with self._session() as session:
            existing = await self._store.find_one(session, doc_id)
            if existing is not None and existing.user_id != caller.id:
                raise DocumentNotFoundError(f"Document not found: {doc_id}")

            embedding = await self._embedding_provider.embed(body.content)

            if existing is not None:
                affected = await self._store.update(
                    session,
                    doc_id,
                    caller.id,
                    {"content": body.content, "title": body.title, "embedding": embedding},
                )
                if affected == 0:
                    raise DocumentNotFoundError(f"Document not found: {doc_id}")
                logger.info("Updated document %s for user %s", doc_id, caller.id)
                return WriteResult(
                    success=True,
                    message=f"Updated document {doc_id}",
                    document_id=doc_id,
                    created=False,
                )

            await self._store.claim_owner(session, doc_id, caller.id)
            model = self._store.document_model
            await self._store.insert(
                session,
                model(
                    id=doc_id,
                    user_id=caller.id,
                    title=body.title,
                    content=body.content,
                    embedding=embedding,
                ),
            )
            logger.info("Created document %s for user %s", doc_id, caller.id)
            return WriteResult(
                success=True,
                message=f"Created document {doc_id}",
                document_id=doc_id,
                created=True,
            )

    async def update_document(
        self,
        doc_id: str | None,
        payload: Any,
        user: Identity | None,
    ) -> WriteResult:
        """Update the caller's document in place without an existence check.

        Raises :class:`DocumentNotFoundError` when the scoped update
        affects no row.
        """
        doc_id = _require_id(doc_id)
        caller = _require_user(user)
        body = payload if isinstance(payload, DocumentPayload) else parse_payload(payload)

        embedding = await self._embedding_provider.embed(body.content)

        async with self._session() as session:
            affected = await self._store.update(
                session,
                doc_id,
                caller.id,
                {"content": body.content, "title": body.title, "embedding": embedding},
            )
            if affected == 0:
                raise DocumentNotFoundError(f"Document not found: {doc_id}")

        logger.info("Updated document %s for user %s", doc_id, caller.id)
        return WriteResult(
            success=True,
            message=f"Updated document {doc_id}",
            document_id=doc_id,
        )

    # ------------------------------------------------------------------
    # Read workflows
    # ------------------------------------------------------------------

    async def get_versions(
        self, doc_id: str | None, user: Identity | None
    ) -> list[DocumentVersion]:
        """Return every version of *doc_id* owned by the caller, oldest first."""
        caller = _require_user(user)
        doc_id = _require_id(doc_id)
        async with self._session() as session:
            rows = await self._store.list_versions(session, doc_id, caller.id)
        return [DocumentVersion.from_row(row) for row in rows]

    async def get_latest(self, doc_id: str | None, user: Identity | None) -> DocumentVersion | None:
        """Return the caller's most recent version of *doc_id*, or ``None``."""
        caller = _require_user(user)
        doc_id = _require_id(doc_id)
        async with self._session() as session:
            row = await self._store.get_latest(session, doc_id, caller.id)
        return DocumentVersion.from_row(row) if row is not None else None

    # ------------------------------------------------------------------
    # Relevance
    # ------------------------------------------------------------------

    async def fetch_relevant_docs(
        self,
        query: str,
        user: Identity | None,
    ) -> list[RelevantDocument]:
        """Return the caller's documents most similar to *query*.

        Store failures degrade to an empty list; embedding failures propagate.
        """
        caller = _require_user(user)
        if not query:
            raise InvalidPayloadError("Missing query")

        vector = await self._embedding_provider.embed(query)

        try:
            async with self._session() as session:
                matches = await self._store.match_by_similarity(
                    session,
                    vector,
                    MATCH_THRESHOLD,
                    MATCH_COUNT,
                    user_id=caller.id,
                )
        except (StorageError, SQLAlchemyError):
            logger.exception("Error fetching relevant documents")
            return []

        return [RelevantDocument.from_row(row, score) for row, score in matches]
