"""docvault: per-user document storage with semantic search.

Versioned documents, embedding synchronization, and similarity lookup
over a relational store.
"""

__version__ = "0.1.0"

from docvault.auth import Identity, JWTSessionResolver, SessionResolver
from docvault.config import Settings
from docvault.embeddings import EmbeddingOptions, EmbeddingProvider, OpenAIEmbedding
from docvault.exceptions import (
    AuthenticationRequiredError,
    DocumentNotFoundError,
    DocVaultError,
    InvalidPayloadError,
    StorageError,
)
from docvault.models import Document, DocumentBase, DocumentOwner
from docvault.service import MATCH_COUNT, MATCH_THRESHOLD, DocumentService
from docvault.store import DocumentStore
from docvault.types import DocumentVersion, RelevantDocument, WriteResult

__all__ = [
    "MATCH_COUNT",
    "MATCH_THRESHOLD",
    "AuthenticationRequiredError",
    "DocVaultError",
    "Document",
    "DocumentBase",
    "DocumentNotFoundError",
    "DocumentOwner",
    "DocumentService",
    "DocumentStore",
    "DocumentVersion",
    "EmbeddingOptions",
    "EmbeddingProvider",
    "Identity",
    "InvalidPayloadError",
    "JWTSessionResolver",
    "OpenAIEmbedding",
    "RelevantDocument",
    "SessionResolver",
    "Settings",
    "StorageError",
    "WriteResult",
    "__version__",
]
