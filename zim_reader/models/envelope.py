"""Uniform success/failure wrapper returned for every tool call."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel

from ..errors import ZimReaderError


class ToolError(BaseModel):
    """Client-facing error; never carries stack state."""

    message: str


class ToolEnvelope(BaseModel):
    ok: bool
    data: Optional[Dict[str, Any]] = None
    error: Optional[ToolError] = None

    @classmethod
    def success(cls, payload: BaseModel) -> "ToolEnvelope":
        return cls(ok=True, data=payload.model_dump(mode="json"))

    @classmethod
    def failure(cls, message: str) -> "ToolEnvelope":
        return cls(ok=False, error=ToolError(message=message))

    @property
    def message(self) -> Optional[str]:
        return self.error.message if self.error else None


def envelope_from_exception(exc: BaseException) -> ToolEnvelope:
    """Convert a fault raised during a tool call into a failure envelope."""
    if isinstance(exc, ZimReaderError):
        return ToolEnvelope.failure(exc.message)
    return ToolEnvelope.failure(f"Tool execution failed: {type(exc).__name__}")


__all__ = ["ToolError", "ToolEnvelope", "envelope_from_exception"]
