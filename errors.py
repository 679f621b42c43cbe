from typing import Any, Dict, Optional


class ExpenseTrackerError(Exception):
    """Base exception for the expense tracker."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(ExpenseTrackerError):
    """Raised when input fails validation (bad category, bad amount, bad range)."""

    pass


class InvalidRangeError(ValidationError):
    """Raised when a custom period has start after end."""

    pass


class NotFoundError(ExpenseTrackerError):
    """Raised when a referenced category does not exist."""

    pass


class DependencyError(ExpenseTrackerError):
    """Raised when the database or the language model is unreachable or erroring."""

    pass
