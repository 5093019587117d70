"""Result types: DocumentVersion, RelevantDocument, WriteResult."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from docvault.models.documents import DocumentBase


def _as_utc(value: datetime) -> datetime:
    # SQLite drops the offset on read; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


@dataclass
class DocumentVersion:
    """One persisted snapshot of a document, without its embedding."""

    id: str
    user_id: str
    title: str
    content: str
    created_at: datetime

    @classmethod
    def from_row(cls, row: DocumentBase) -> DocumentVersion:
        return cls(
            id=row.id,
            user_id=row.user_id,
            title=row.title,
            content=row.content,
            created_at=_as_utc(row.created_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class RelevantDocument:
    """A similarity-search hit projected to the fields callers need."""

    id: str
    content: str
    similarity: float
    created_at: datetime

    @classmethod
    def from_row(cls, row: DocumentBase, similarity: float) -> RelevantDocument:
        return cls(
            id=row.id,
            content=row.content,
            similarity=similarity,
            created_at=_as_utc(row.created_at),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "content": self.content,
            "similarity": self.similarity,
            "created_at": self.created_at.isoformat(),
        }


@dataclass
class WriteResult:
    """Result of a document write."""

    success: bool
    message: str
    document_id: str | None = None
    created: bool = False
