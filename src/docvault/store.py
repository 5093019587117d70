"""DocumentStore — stateless SQL gateway for document version rows."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

import numpy as np
from sqlalchemy import func, update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import col, select

from .exceptions import StorageError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlalchemy.ext.asyncio import AsyncSession
    from sqlalchemy.sql import Select

    from docvault.models.documents import DocumentBase, DocumentOwnerBase

logger = logging.getLogger(__name__)

# Columns a write may touch; id, user_id and created_at are immutable.
_UPDATABLE_FIELDS = frozenset({"title", "content", "embedding"})


def cosine_similarity(a: Any, b: Any) -> float:
    """Cosine similarity of two vectors (0.0 if either is all zeros)."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    denom = float(np.linalg.norm(va) * np.linalg.norm(vb))
    if denom == 0.0:
        return 0.0
    return float(np.dot(va, vb) / denom)


class DocumentStore:
    """Database-backed document store — stateless, sessions provided per-operation.

    Holds only configuration (dialect, models).  Every method takes the
    caller's ``AsyncSession`` and never commits; transaction boundaries
    belong to the workflow layer.

    Any ``SQLAlchemyError`` is re-raised as :class:`StorageError`.  An
    empty result is never an error.
    """

    def __init__(
        self,
        dialect: str = "sqlite",
        document_model: type[DocumentBase] | None = None,
        owner_model: type[DocumentOwnerBase] | None = None,
    ) -> None:
        from docvault.models.documents import Document, DocumentOwner

        self.dialect = dialect
        self._model: type[DocumentBase] = document_model or Document  # type: ignore[assignment]
        self._owner_model: type[DocumentOwnerBase] = (
            owner_model or DocumentOwner  # type: ignore[assignment]
        )

    @property
    def document_model(self) -> type[DocumentBase]:
        return self._model

    @property
    def owner_model(self) -> type[DocumentOwnerBase]:
        return self._owner_model

    # ------------------------------------------------------------------
    # Point lookups
    # ------------------------------------------------------------------

    async def find_one(self, session: AsyncSession, doc_id: str) -> DocumentBase | None:
        """Return any row with *doc_id*, regardless of owner.

        Used only for existence checks; callers must compare ``user_id``
        themselves before acting on the result.
        """
        model = self._model
        query = select(model).where(model.id == doc_id).limit(1)
        try:
            result = await session.execute(query)
        except SQLAlchemyError as e:
            raise StorageError(f"Lookup failed for document {doc_id!r}: {e}") from e
        return result.scalars().first()

    async def get_latest(
        self,
        session: AsyncSession,
        doc_id: str,
        user_id: str,
    ) -> DocumentBase | None:
        """Return the most recently created row for (*doc_id*, *user_id*)."""
        model = self._model
        query = (
            select(model)
            .where(model.id == doc_id, model.user_id == user_id)
            .order_by(col(model.created_at).desc())
            .limit(1)
        )
        try:
            result = await session.execute(query)
        except SQLAlchemyError as e:
            raise StorageError(f"Latest-version lookup failed for {doc_id!r}: {e}") from e
        return result.scalars().first()

    async def list_versions(
        self,
        session: AsyncSession,
        doc_id: str,
        user_id: str,
    ) -> list[DocumentBase]:
        """Return every row for (*doc_id*, *user_id*), oldest first."""
        model = self._model
        query = (
            select(model)
            .where(model.id == doc_id, model.user_id == user_id)
            .order_by(col(model.created_at).asc())
        )
        try:
            result = await session.execute(query)
        except SQLAlchemyError as e:
            raise StorageError(f"Version listing failed for {doc_id!r}: {e}") from e
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def claim_owner(self, session: AsyncSession, doc_id: str, user_id: str) -> None:
        """Record *user_id* as the owner of a new *doc_id*.

        The ownership row is keyed on the id alone, so a second claim for the
        same id (by anyone) fails with :class:`StorageError` at flush time.
        """
        session.add(self._owner_model(id=doc_id, user_id=user_id))
        try:
            await session.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"Ownership claim failed for document {doc_id!r}: {e}") from e

    async def insert(self, session: AsyncSession, document: DocumentBase) -> DocumentBase:
        """Add a new row and flush it so constraint violations surface here."""
        session.add(document)
        try:
            await session.flush()
        except SQLAlchemyError as e:
            raise StorageError(f"Insert failed for document {document.id!r}: {e}") from e
        return document

    async def update(
        self,
        session: AsyncSession,
        doc_id: str,
        user_id: str,
        fields: Mapping[str, Any],
    ) -> int:
        """Update the latest row for (*doc_id*, *user_id*) in place.

        Returns the number of rows affected: ``0`` when the caller owns no
        row with this id, ``1`` otherwise.
        """
        unknown = set(fields) - _UPDATABLE_FIELDS
        if unknown:
            msg = f"Cannot update fields: {', '.join(sorted(unknown))}"
            raise ValueError(msg)

        model = self._model
        latest = (
            select(func.max(model.created_at))
            .where(model.id == doc_id, model.user_id == user_id)
            .scalar_subquery()
        )
        stmt = (
            update(model)
            .where(
                col(model.id) == doc_id,
                col(model.user_id) == user_id,
                col(model.created_at) == latest,
            )
            .values(**fields)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await session.execute(stmt)
        except SQLAlchemyError as e:
            raise StorageError(f"Update failed for document {doc_id!r}: {e}") from e
        return result.rowcount  # type: ignore[return-value]

    # ------------------------------------------------------------------
    # Similarity search
    # ------------------------------------------------------------------

    async def match_by_similarity(
        self,
        session: AsyncSession,
        vector: list[float],
        threshold: float,
        limit: int,
        *,
        user_id: str,
    ) -> list[tuple[DocumentBase, float]]:
        """Return up to *limit* of the caller's rows more similar than *threshold*.

        Results are ``(row, cosine_similarity)`` pairs, most similar first.
        PostgreSQL evaluates the distance with pgvector; other dialects
        score the caller's rows in process.
        """
        if limit <= 0:
            return []
        try:
            if self.dialect == "postgresql":
                return await self._match_pgvector(session, vector, threshold, limit, user_id)
            return await self._match_in_process(session, vector, threshold, limit, user_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Similarity match failed: {e}") from e

    def similarity_query(
        self,
        vector: list[float],
        threshold: float,
        limit: int,
        *,
        user_id: str,
    ) -> Select:
        """Build the pgvector query: ``(row, 1 - cosine_distance)`` nearest first."""
        model = self._model
        distance = col(model.embedding).cosine_distance(vector)  # type: ignore[attr-defined]
        similarity = (1 - distance).label("similarity")
        return (
            select(model, similarity)
            .where(
                model.user_id == user_id,
                col(model.embedding).is_not(None),
                1 - distance > threshold,
            )
            .order_by(distance)
            .limit(limit)
        )

    async def _match_pgvector(
        self,
        session: AsyncSession,
        vector: list[float],
        threshold: float,
        limit: int,
        user_id: str,
    ) -> list[tuple[DocumentBase, float]]:
        query = self.similarity_query(vector, threshold, limit, user_id=user_id)
        result = await session.execute(query)
        return [(row, float(score)) for row, score in result.all()]

    async def _match_in_process(
        self,
        session: AsyncSession,
        vector: list[float],
        threshold: float,
        limit: int,
        user_id: str,
    ) -> list[tuple[DocumentBase, float]]:
        model = self._model
        query = select(model).where(
            model.user_id == user_id,
            col(model.embedding).is_not(None),
        )
        result = await session.execute(query)

        scored: list[tuple[DocumentBase, float]] = []
        for row in result.scalars().all():
            score = cosine_similarity(vector, row.embedding)
            if score > threshold:
                scored.append((row, score))
        scored.sort(key=lambda pair: pair[1], reverse=True)
        return scored[:limit]
