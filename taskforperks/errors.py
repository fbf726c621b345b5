"""Claim error taxonomy and its HTTP status mapping."""

from __future__ import annotations

import enum


class ClaimErrorCode(str, enum.Enum):
    INVALID_BODY = "INVALID_BODY"
    TASK_NOT_FOUND = "TASK_NOT_FOUND"
    TASK_CLOSED = "TASK_CLOSED"
    VERSION_MISMATCH = "VERSION_MISMATCH"
    MAX_CLAIMS_REACHED = "MAX_CLAIMS_REACHED"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


# Well-formed requests the task's current state no longer permits
CONFLICT_CODES = frozenset(
    {
        ClaimErrorCode.TASK_CLOSED,
        ClaimErrorCode.VERSION_MISMATCH,
        ClaimErrorCode.MAX_CLAIMS_REACHED,
    }
)


def status_for(code: ClaimErrorCode) -> int:
    if code is ClaimErrorCode.INVALID_BODY:
        return 400
    if code is ClaimErrorCode.TASK_NOT_FOUND:
        return 404
    if code in CONFLICT_CODES:
        return 409
    return 500


class ClaimError(Exception):
    """A claim was rejected. `code` is safe to hand back to the caller."""

    def __init__(self, code: ClaimErrorCode) -> None:
        super().__init__(code.value)
        self.code = code

    @property
    def status_code(self) -> int:
        return status_for(self.code)

    @property
    def is_conflict(self) -> bool:
        return self.code in CONFLICT_CODES
