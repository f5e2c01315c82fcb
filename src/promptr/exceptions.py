"""
Custom exceptions for the Promptr library.
"""

from typing import Any, Dict, Optional


class PromptrError(Exception):
    """
    Base class for all Promptr specific errors.

    Attributes:
        details: Additional context about the error, e.g. the offending key
                 or record id.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details if details is not None else {}

    def __str__(self):
        if self.details:
            return f"{super().__str__()} (Details: {self.details})"
        return super().__str__()


class ValidationFailedError(PromptrError):
    """Raised when a request or record fails validation."""
    pass


class StoreError(PromptrError):
    """Base class for errors raised by the record store."""
    pass


class MissingColumnError(StoreError):
    """
    Raised when a row carries a column the store's schema does not have.

    Stores created before the optional memory columns existed raise this on
    insert; callers retry with the core columns only.
    """
    pass


class RecordNotFoundError(StoreError):
    """Raised when a record does not exist or belongs to another user."""
    pass


class DuplicateEntryError(StoreError):
    """Raised when an insert would violate a uniqueness constraint."""

    code = "duplicate"


class AuthenticationError(PromptrError):
    """Raised when credentials or a session token are not valid."""
    pass
