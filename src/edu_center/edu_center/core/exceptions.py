from __future__ import annotations

from typing import Optional, Sequence


class DomainError(Exception):
    """Base exception for business rule violations."""

    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    status_code = 400


class UsernameTakenError(ValidationError):
    """Raised when a username is already in use; carries alternatives."""

    def __init__(self, message: str, suggestions: Optional[Sequence[str]] = None):
        super().__init__(message)
        self.suggestions = list(suggestions or [])


class AuthenticationError(DomainError):
    """Raised when credentials or tokens are invalid."""

    status_code = 401


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    status_code = 403


class NotFoundError(DomainError):
    """Raised when a target record does not exist."""

    status_code = 404
