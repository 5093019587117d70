"""Session resolution — map an inbound request to the caller's identity."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol, runtime_checkable

import jwt

if TYPE_CHECKING:
    from starlette.requests import Request

logger = logging.getLogger(__name__)

_BEARER_PREFIX = "bearer "


@dataclass(frozen=True, slots=True)
class Identity:
    """The authenticated caller.

    Attributes:
        id: Stable user identifier (the token's ``sub`` claim).
        email: Email address, if the token carries one.
        role: Role claim, if present.
    """

    id: str
    email: str | None = None
    role: str | None = None


@runtime_checkable
class SessionResolver(Protocol):
    """Protocol for resolving the current user from a request."""

    async def current_user(self, request: Request) -> Identity | None:
        """Return the caller's identity, or ``None`` when no valid session exists."""
        ...


class JWTSessionResolver:
    """Resolve identities from HS256-signed session tokens.

    The token is read from the ``Authorization: Bearer`` header, falling
    back to the *cookie_name* cookie.  Missing, expired, or otherwise
    invalid tokens resolve to ``None`` rather than raising.
    """

    def __init__(
        self,
        secret: str,
        *,
        audience: str | None = "authenticated",
        algorithms: Sequence[str] = ("HS256",),
        cookie_name: str = "access_token",
    ) -> None:
        if not secret:
            msg = "JWT secret must not be empty"
            raise ValueError(msg)
        self._secret = secret
        self._audience = audience
        self._algorithms = list(algorithms)
        self._cookie_name = cookie_name

    async def current_user(self, request: Request) -> Identity | None:
        token = self._extract_token(request)
        if token is None:
            return None
        return self.decode(token)

    def decode(self, token: str) -> Identity | None:
        """Verify *token* and return its identity, or ``None`` if invalid."""
        options = {"verify_aud": self._audience is not None}
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=self._algorithms,
                audience=self._audience,
                options=options,
            )
        except jwt.ExpiredSignatureError:
            logger.debug("Session token expired")
            return None
        except jwt.InvalidTokenError as e:
            logger.debug("Invalid session token: %s", e)
            return None

        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject:
            logger.debug("Session token has no subject")
            return None
        return Identity(id=subject, email=payload.get("email"), role=payload.get("role"))

    def _extract_token(self, request: Request) -> str | None:
        header = request.headers.get("authorization", "")
        if header.lower().startswith(_BEARER_PREFIX):
            token = header[len(_BEARER_PREFIX) :].strip()
            if token:
                return token
        return request.cookies.get(self._cookie_name) or None
