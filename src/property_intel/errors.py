from __future__ import annotations

from enum import StrEnum
from typing import Optional


class ErrorKind(StrEnum):
    """Per-adapter failure kinds. All of them are recoverable."""

    TIMEOUT = "timeout"
    UNAVAILABLE = "unavailable"
    INVALID_RESPONSE = "invalid_response"


class ConfigurationError(ValueError):
    """Raised for malformed requests or registry setup, before any fan-out."""


class AdapterError(Exception):
    def __init__(self, kind: ErrorKind, message: str = "", *, provider: Optional[str] = None):
        self.kind = ErrorKind(kind)
        self.provider = provider
        super().__init__(message or str(self.kind))

    def __repr__(self) -> str:
        return f"AdapterError(kind={self.kind!s}, provider={self.provider!r}, message={str(self)!r})"
