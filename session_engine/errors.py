"""Typed errors surfaced by the interview session engine.

Every error carries a stable ``kind`` string, a human readable message and a
``retryable`` flag so transports can render a retry affordance without
inspecting exception classes.
"""
from __future__ import annotations

from typing import Any, Dict


class SessionError(Exception):
    kind = "session_error"
    retryable = False

    def __init__(self, message: str, *, session_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.session_id = session_id

    def to_payload(self) -> Dict[str, Any]:
        return {"kind": self.kind, "message": self.message, "retryable": self.retryable}


class NotFound(SessionError):
    kind = "not_found"


class Unauthorized(SessionError):
    kind = "unauthorized"


class SessionValidationError(SessionError):
    kind = "validation_error"


class GenerationFailed(SessionError):
    kind = "generation_failed"
    retryable = True


class SessionEnded(SessionError):
    kind = "session_ended"


class ConcurrentModification(SessionError):
    kind = "concurrent_modification"
    retryable = True


class SchemaError(SessionError):
    kind = "schema_error"


__all__ = [
    "ConcurrentModification",
    "GenerationFailed",
    "NotFound",
    "SchemaError",
    "SessionEnded",
    "SessionError",
    "SessionValidationError",
    "Unauthorized",
]
