"""
Domain exceptions shared by services and routers.
"""
from typing import Any, Optional


class CloneCastError(Exception):
    """Base class for all application errors."""


class ValidationError(CloneCastError):
    """A request field is missing or malformed. Raised before any job exists."""

    def __init__(self, message: str, field: str, value: Any = None):
        super().__init__(message)
        self.field = field
        self.value = value


class NotFoundError(CloneCastError):
    """An unknown voice or job id was referenced."""

    def __init__(self, resource: str, id: str):
        super().__init__(f'{resource} not found: {id}')
        self.resource = resource
        self.id = id


class ConflictError(CloneCastError):
    """The resource exists but is not in a state that allows the request."""


class SynthesisError(CloneCastError):
    """The remote text-to-speech call failed."""


class ProcessingError(CloneCastError):
    """Local audio mixing or transcoding failed."""

    def __init__(self, message: str, stderr: Optional[str] = None):
        super().__init__(message)
        self.stderr = stderr


class InvalidTransitionError(CloneCastError):
    """A job was asked to move along an edge its state machine does not have."""
