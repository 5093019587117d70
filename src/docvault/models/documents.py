"""Document version model.

Provides a ``DocumentBase`` non-table base class.  Subclass with
``table=True`` and a custom ``__tablename__`` to store documents in a
different table.
"""

from __future__ import annotations

from datetime import UTC, datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

EMBEDDING_DIMENSIONS: int = 1536
"""Vector width of the ``embedding`` column (text-embedding-3-small)."""


class DocumentBase(SQLModel):
    """Base fields for a document version row.

    ``id`` is shared by every version of a logical document; the pair
    ``(id, created_at)`` identifies a single row.
    """

    id: str = Field(primary_key=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        primary_key=True,
        sa_type=DateTime(timezone=True),
    )
    user_id: str = Field(index=True)
    title: str = Field(default="")
    content: str = Field(default="")
    embedding: list[float] | None = Field(
        default=None,
        sa_type=Vector(EMBEDDING_DIMENSIONS),
        nullable=True,
    )


class Document(DocumentBase, table=True):
    """Default document table — ``documents``."""

    __tablename__ = "documents"


class DocumentOwnerBase(SQLModel):
    """One row per logical document id, naming the user that owns it.

    The primary key on ``id`` is the uniqueness constraint that keeps two
    first writes of the same id from creating versions with different owners.
    """

    id: str = Field(primary_key=True)
    user_id: str = Field(index=True)


class DocumentOwner(DocumentOwnerBase, table=True):
    """Default ownership table — ``document_owners``."""

    __tablename__ = "document_owners"
