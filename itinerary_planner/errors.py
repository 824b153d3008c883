class GenerationError(Exception):
    """Base class for recoverable failures on the AI itinerary path."""


class ExternalCallError(GenerationError):
    """Raised when the hosted model call fails (network, quota, auth, config)."""


class ExtractionError(GenerationError):
    """Raised when raw model text cannot be reduced to a JSON object."""


class ValidationError(GenerationError):
    """Raised when an extracted itinerary lacks a required top-level field."""

    def __init__(self, field: str, message: str | None = None):
        self.field = field
        super().__init__(message or f"Missing required field: {field}")
