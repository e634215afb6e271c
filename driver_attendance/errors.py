"""Error taxonomy for shift operations.

Every error carries a human-readable message that is returned verbatim to the
caller in the ``{"success": False, "error": ...}`` envelope.
"""

from __future__ import annotations


class ShiftError(Exception):
    """Base class for failures reported back to the caller."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(ShiftError):
    """A required field is missing or malformed."""


class NotFoundError(ShiftError):
    """No shift record matches the given row id."""


class ConflictError(ShiftError):
    """The operation clashes with the current state of the driver's shifts."""

    def __init__(self, message: str, stuck_stage: int | None = None) -> None:
        super().__init__(message)
        self.stuck_stage = stuck_stage


class DependencyError(ShiftError):
    """The datastore or the photo store failed."""
