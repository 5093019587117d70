"""Custom exception hierarchy for the docvault workflow layer."""


class DocVaultError(Exception):
    """Base exception for all docvault errors."""

    status_code: int = 500


class AuthenticationRequiredError(DocVaultError):
    """Raised when a workflow is invoked without a resolved user identity."""

    status_code = 401


class InvalidPayloadError(DocVaultError):
    """Raised when a request is missing an id or carries a malformed body."""

    status_code = 400


class DocumentNotFoundError(DocVaultError):
    """Raised when no document with the given id is owned by the caller."""

    status_code = 404


class StorageError(DocVaultError):
    """Raised on relational store failures (connection, constraint, query errors)."""
