"""Error taxonomy for event ingestion."""
from typing import Any, Dict


class IngestError(Exception):
    """
    Base class for caller-attributable ingestion failures.

    Subclasses set ``status_code`` and ``message``; ``details`` carries the
    underlying cause text.
    """

    status_code: int = 400
    message: str = "request rejected"

    def __init__(self, details: str = ""):
        super().__init__(details or self.message)
        self.details = details

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class PayloadTooLargeError(IngestError):
    status_code = 413
    message = "request body too large"


class DecodeError(IngestError):
    message = "invalid JSON body"


class UnknownFieldError(DecodeError):
    message = "unknown field in request body"


class TrailingContentError(DecodeError):
    message = "request body must contain a single JSON object"


class EventValidationError(IngestError):
    message = "event validation failed"


class MissingFieldError(EventValidationError):
    def __init__(self, field: str):
        super().__init__(f"{field} is required")
        self.field = field
