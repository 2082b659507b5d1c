"""Shared response schemas."""
from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    kind: str
    message: str
