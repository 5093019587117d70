"""Request body schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, StrictStr


class DocumentPayload(BaseModel):
    """Body of a document write: ``{"content": ..., "title": ...}``."""

    model_config = ConfigDict(extra="ignore")

    content: StrictStr
    title: StrictStr
