# propertymap/errors.py
"""Error taxonomy shared by the workflows, collaborators and routes.

Configuration and collaborator-load errors are fatal to a screen. Recoverable
errors are shown as a dismissible message and leave the screen state intact.
Persistence errors are logged by the store and reported by the caller.
"""
from typing import Any, Dict, Optional


class PropertyMapError(Exception):
    """Base exception for the application."""

    error_code = "PROPERTY_MAP_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message
        if error_code:
            self.error_code = error_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "error_code": self.error_code, "details": self.details}


class ConfigurationError(PropertyMapError):
    """Missing credential or other unusable configuration."""
    error_code = "CONFIGURATION_ERROR"


class CollaboratorLoadError(PropertyMapError):
    """The mapping collaborator could not be loaded."""
    error_code = "COLLABORATOR_LOAD_ERROR"


class RecoverableError(PropertyMapError):
    error_code = "RECOVERABLE_ERROR"


class GeocodingError(RecoverableError):
    """The geocoding service failed or answered with an error status."""
    error_code = "GEOCODING_ERROR"


class NoResultsError(RecoverableError):
    error_code = "NO_RESULTS"


class GeolocationError(RecoverableError):
    error_code = "GEOLOCATION_ERROR"


class InputError(RecoverableError):
    """User input rejected at the boundary."""
    error_code = "INVALID_INPUT"


class PersistenceError(PropertyMapError):
    error_code = "PERSISTENCE_ERROR"


class InvalidTransition(PropertyMapError):
    """An event arrived in a state that cannot accept it."""
    error_code = "INVALID_TRANSITION"
