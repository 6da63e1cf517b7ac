from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class ApiError(BaseModel):
    """Structured error body returned by the REST backend on failure."""

    message: str
    code: str
    details: Optional[str] = None
    hint: Optional[str] = None
