"""
Inkwell exceptions.

Every error that should reach a client as a structured JSON-RPC error derives
from InkwellError and carries its own wire code. Anything else raised inside
a tool handler is treated as an unexpected internal failure.
"""

from __future__ import annotations

from typing import Any, Optional


class InkwellError(Exception):
    """Base class for errors surfaced to clients with an explicit code."""

    code: int = -32603

    def __init__(self, message: str, *, code: Optional[int] = None, data: Optional[Any] = None) -> None:
        if code is not None:
            self.code = code
        self.message = message
        self.data = data
        super().__init__(message)


class ProtocolError(InkwellError):
    """Malformed request, unknown method, or bad tools/call params."""


class ToolError(InkwellError):
    """Domain error raised by a tool handler; code and message pass through verbatim."""

    code = 500


class InvalidArgumentsError(ToolError):
    code = 400


class ForbiddenError(ToolError):
    code = 403


class NotFoundError(ToolError):
    code = 404


class ConfigError(ValueError):
    """Raised when configuration is incomplete or inconsistent."""


class StorageError(RuntimeError):
    """Raised for storage failures that are not plain sqlite3 errors."""


class StorageClosedError(StorageError):
    """Raised when an operation is attempted after the store was closed."""


class MigrationError(StorageError):
    """Raised when a migration script fails; the migration is rolled back."""

    def __init__(self, name: str, cause: Exception) -> None:
        self.name = name
        self.cause = cause
        super().__init__(f"Migration {name} failed: {cause}")
