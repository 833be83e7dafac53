"""
Typed errors raised by the admission workflow.

The engine never catches these; the API layer maps them to HTTP responses.
"""
from typing import List, Optional


class WorkflowError(Exception):
    """Base class for every workflow precondition failure."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(WorkflowError):
    """Missing or invalid input. Carries every violation, not just the first."""

    def __init__(self, errors: List[str], message: Optional[str] = None):
        self.errors = list(errors)
        super().__init__(message or "; ".join(self.errors))


class ConflictError(WorkflowError):
    """The event is not legal for the record's current state."""


class NotFoundError(WorkflowError):
    """A referenced applicant or payment does not exist."""


class AuthorizationError(WorkflowError):
    """The actor lacks the identity or role the event requires."""
