from __future__ import annotations

from typing import Optional

from .enums import ErrorCode


class DomainError(Exception):
    """Base exception for business rule violations."""

    default_code = ErrorCode.INVALID_INPUT

    def __init__(self, message: str, *, code: Optional[ErrorCode] = None):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class StateViolationError(DomainError):
    """Raised when a transition is not legal from the record's current state.

    Nothing is mutated when this is raised.
    """


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""

    default_code = ErrorCode.FORBIDDEN


class NotFoundError(DomainError):
    default_code = ErrorCode.NOT_FOUND


class ConfigurationError(DomainError):
    """Environment problem (unknown timezone, missing team/company).

    Never recovered by substituting a default.
    """

    default_code = ErrorCode.CONFIGURATION
