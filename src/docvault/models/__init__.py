"""Database models."""

from docvault.models.documents import (
    EMBEDDING_DIMENSIONS,
    Document,
    DocumentBase,
    DocumentOwner,
    DocumentOwnerBase,
)

__all__ = [
    "EMBEDDING_DIMENSIONS",
    "Document",
    "DocumentBase",
    "DocumentOwner",
    "DocumentOwnerBase",
]
