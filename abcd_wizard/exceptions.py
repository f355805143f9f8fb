"""
Custom exceptions for the ABCD objectives wizard.
"""

from typing import Optional


class WizardError(Exception):
    """Base exception for all wizard-related errors."""
    pass


class ValidationError(WizardError):
    """Raised when an entity or payload fails validation."""
    pass


class NotFoundError(WizardError):
    """Raised when a requested course, snapshot or entity is not found."""
    pass


class StorageError(WizardError):
    """Raised when reading or writing the .abcd/ directory fails."""
    pass


class ApiError(WizardError):
    """Raised when a request to the course API fails.

    Covers transport errors, non-2xx responses and malformed bodies.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code
