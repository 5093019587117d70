"""HTTP surface — FastAPI routes over :class:`DocumentService`."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from docvault import __version__

from .auth import Identity
from .exceptions import DocVaultError
from .service import DocumentService

if TYPE_CHECKING:
    from .auth import SessionResolver

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")


# ------------------------------------------------------------------
# Dependencies
# ------------------------------------------------------------------


def get_service(request: Request) -> DocumentService:
    return request.app.state.service


async def get_current_user(request: Request) -> Identity | None:
    resolver: SessionResolver = request.app.state.resolver
    return await resolver.current_user(request)


async def _read_json(request: Request) -> Any:
    """Return the decoded body, or ``None`` when it is not valid JSON."""
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _json_error(e: Exception, context: str) -> JSONResponse:
    if isinstance(e, DocVaultError) and e.status_code < 500:
        return JSONResponse({"error": str(e)}, status_code=e.status_code)
    logger.exception("Error %s", context)
    return JSONResponse({"error": str(e)}, status_code=500)


# ------------------------------------------------------------------
# Documents
# ------------------------------------------------------------------


@router.get("/document")
async def get_document(
    id: str | None = None,  # noqa: A002
    service: DocumentService = Depends(get_service),
    user: Identity | None = Depends(get_current_user),
) -> Response:
    """Return every version of a document owned by the caller, oldest first."""
    try:
        versions = await service.get_versions(id, user)
    except Exception as e:
        return _json_error(e, "fetching document")
    return JSONResponse([v.to_dict() for v in versions])


@router.get("/document/latest")
async def get_latest_document(
    id: str | None = None,  # noqa: A002
    service: DocumentService = Depends(get_service),
    user: Identity | None = Depends(get_current_user),
) -> Response:
    """Return the caller's most recent version of a document."""
    try:
        version = await service.get_latest(id, user)
    except Exception as e:
        return _json_error(e, "fetching latest document")
    if version is None:
        return JSONResponse({"error": "Document not found"}, status_code=404)
    return JSONResponse(version.to_dict())


@router.post("/document")
async def save_document(
    request: Request,
    id: str | None = None,  # noqa: A002
    service: DocumentService = Depends(get_service),
    user: Identity | None = Depends(get_current_user),
) -> Response:
    """Create the document, or update it with a fresh embedding if it exists."""
    body = await _read_json(request)
    try:
        await service.save_document(id, body, user)
    except Exception as e:
        return _json_error(e, "saving document")
    return JSONResponse({"success": True})


@router.patch("/document")
async def update_document(
    request: Request,
    id: str | None = None,  # noqa: A002
    service: DocumentService = Depends(get_service),
    user: Identity | None = Depends(get_current_user),
) -> Response:
    """Update an existing document in place; replies with plain-text errors."""
    body = await _read_json(request)
    try:
        await service.update_document(id, body, user)
    except DocVaultError as e:
        if e.status_code < 500:
            return PlainTextResponse(str(e), status_code=e.status_code)
        logger.exception("Error updating document")
        return PlainTextResponse("Error updating document", status_code=500)
    except Exception:
        logger.exception("Error updating document")
        return PlainTextResponse("Error updating document", status_code=500)
    return JSONResponse({"success": True}, status_code=200)


@router.get("/documents/relevant")
async def relevant_documents(
    query: str | None = None,
    service: DocumentService = Depends(get_service),
    user: Identity | None = Depends(get_current_user),
) -> Response:
    """Return up to five of the caller's documents most similar to *query*."""
    try:
        docs = await service.fetch_relevant_docs(query or "", user)
    except Exception as e:
        return _json_error(e, "fetching relevant documents")
    return JSONResponse([d.to_dict() for d in docs])


# ------------------------------------------------------------------
# Health
# ------------------------------------------------------------------


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}
