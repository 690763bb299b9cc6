"""Boundary analysis exception classes.

Contains all exception classes raised by the analysis engine:
- BoundaryError: Base exception for boundary analysis errors
- ValidationError: Raised for invalid configuration or malformed input
- EmptyInputError: Raised when there is nothing to analyze
- OperationError: Raised when a plan mutation cannot be applied
- InvalidSplitError: Raised when a boundary cannot be split
"""


class BoundaryError(Exception):
    """Base exception for boundary analysis errors."""

    pass


class ValidationError(BoundaryError):
    """Raised for invalid configuration or malformed input."""

    pass


class EmptyInputError(BoundaryError):
    """Raised when the change-set is empty after filtering."""

    pass


class OperationError(BoundaryError):
    """Raised when a mutation references unknown boundaries or breaks invariants."""

    pass


class InvalidSplitError(OperationError):
    """Raised when a boundary with fewer than two files is split."""

    pass
