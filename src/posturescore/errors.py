"""Error taxonomy helpers: internal-error sentinel and structured envelopes."""

from __future__ import annotations

from typing import Any

E_INTERNAL = "E_INTERNAL"
E_INVALID_REQUEST = "E_INVALID_REQUEST"


class InternalError(Exception):
    """A contract violation between the probe layer and an evaluator.

    Raised for invalid probe sets, missing or unparseable finding values and
    other states the collection layer should never produce. Evaluators turn it
    into an inconclusive result that carries the error.
    """

    code = E_INTERNAL

    def __init__(self, message: str = "internal error") -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"internal error: {self.message}"


def with_message(message: str) -> InternalError:
    """Build an InternalError carrying a specific message."""
    return InternalError(message)


def err(
    code: str,
    message: str,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Build a structured error envelope."""
    return {
        "ok": False,
        "error": {
            "code": code,
            "message": message,
            "details": details or {},
        },
    }


def ok(result: dict[str, Any]) -> dict[str, Any]:
    """Build a structured success envelope."""
    return {"ok": True, "result": result}


def describe(error: BaseException) -> dict[str, Any]:
    """Return the envelope body for an error attached to a check result."""
    code = getattr(error, "code", E_INTERNAL)
    message = getattr(error, "message", str(error))
    return {"code": code, "message": message}
