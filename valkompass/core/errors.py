"""
Error taxonomy for the session controller.

Service errors are raised at the AI boundary and decide the retry policy:
only TransientServiceError is retried. StorageError never leaves the
persistence layer's callers.
"""

from __future__ import annotations


class ValkompassError(Exception):
    """Base class for all valkompass errors."""


class ServiceError(ValkompassError):
    """A call to the AI service failed."""


class TransientServiceError(ServiceError):
    """Rate limited, over quota or momentarily unavailable. Retried in place."""


class FatalServiceError(ServiceError):
    """Missing/invalid credentials or a permanently bad request. Never retried."""


class ResponseValidationError(ServiceError):
    """The AI service answered with something that does not fit the expected shape."""


class StorageError(ValkompassError):
    """The persisted snapshot could not be read or written."""


class SessionStateError(ValkompassError):
    """An orchestrator operation was invoked from a state where it is not valid."""

    def __init__(self, operation: str, state: str):
        super().__init__(f"{operation}() is not valid in state {state}")
        self.operation = operation
        self.state = state
