"""
Precondition checks for ring buffer operations.

Popping an empty buffer or filling more than it can hold are programmer
errors, not runtime conditions. They are never reported through return
values. Depending on AssertMode they raise, get logged, or are elided.

When a check does not raise, the caller takes a safe path so that the
head/tail invariants still hold after the operation returns.
"""

import logging
from typing import Optional

from ..config import AssertMode

logger = logging.getLogger(__name__)


class PreconditionError(AssertionError):
    """A ring buffer operation was called with its precondition violated."""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


def check_precondition(
    condition: bool,
    message: str,
    mode: AssertMode = AssertMode.RAISE,
    operation: Optional[str] = None,
    log: Optional[logging.Logger] = None,
) -> bool:
    """
    Check a precondition according to the assertion mode.

    Args:
        condition: The precondition; True means it holds.
        message: Description of the violation.
        mode: How to report a violation.
        operation: Name of the failing operation, attached to the error.
        log: Logger used in LOG mode (defaults to this module's logger).

    Returns:
        The condition, so callers can branch to a safe path.

    Raises:
        PreconditionError: If the condition is false and mode is RAISE.
    """
    if condition:
        return True

    if mode is AssertMode.RAISE:
        raise PreconditionError(message, operation=operation)
    if mode is AssertMode.LOG:
        (log or logger).error("Precondition failed in %s: %s", operation or "?", message)
    return False


__all__ = [
    "AssertMode",
    "PreconditionError",
    "check_precondition",
]
