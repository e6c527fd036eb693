"""Common Pydantic schemas shared across the API."""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Body of every 4xx/5xx response produced by the exception handlers."""

    error_code: str
    message: str
    details: Any | None = None


class MessageResponse(BaseModel):
    """Plain confirmation for operations with nothing else to return."""

    message: str
