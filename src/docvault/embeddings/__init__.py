"""Embedding providers — protocol and implementations."""

from docvault.embeddings._protocol import EmbeddingProvider
from docvault.embeddings.openai import EmbeddingOptions, OpenAIEmbedding, normalize_input

__all__ = [
    "EmbeddingOptions",
    "EmbeddingProvider",
    "OpenAIEmbedding",
    "normalize_input",
]
