"""Exception hierarchy for the transfer booking service."""

from typing import Any, Dict, Optional


class TransferError(Exception):
    """Base exception for all transfer booking errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(TransferError):
    """Errors that may succeed on retry."""


class NetworkError(TransientError):
    """Timeouts, refused connections."""


class ServiceUnavailableError(TransientError):
    """External service answered with a 5xx."""


class PersistenceError(TransientError):
    """A database write failed but may succeed on retry."""


class PermanentError(TransferError):
    """Errors that will not succeed on retry."""


class ValidationError(PermanentError):
    """Invalid input or data format."""


class NotFoundError(PermanentError):
    """Requested entity does not exist."""


class StateError(PermanentError):
    """Operation not allowed in the current wizard step."""


class StepValidationError(PermanentError):
    """The current wizard step is incomplete and cannot advance."""

    def __init__(self, message: str, missing: Optional[list] = None):
        super().__init__(message, {"missing": missing or []})
        self.missing = missing or []


class GeocodingError(TransferError):
    """The geocoding provider could not be reached or answered with an error."""


class PersistenceFailure(TransferError):
    """The booking could not be stored. Nothing was written; the user may retry."""
