import re
from datetime import datetime, timezone
from pydantic import AwareDatetime, BaseModel, ConfigDict, Field, field_validator
from typing import Any, Optional

from .errors import MissingFieldError

# Zero instant used by clients that serialize an unset time value
ZERO_TIME = datetime.min.replace(tzinfo=timezone.utc)

RFC3339_PATTERN = re.compile(
    r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?(Z|[+-]\d{2}:\d{2})"
)


def is_zero_time(dt: datetime) -> bool:
    """True when ``dt`` is the instant 0001-01-01T00:00:00Z, in any offset."""
    return dt == ZERO_TIME


def format_rfc3339(dt: datetime) -> str:
    """Second-precision RFC3339, with ``Z`` for UTC."""
    text = dt.replace(microsecond=0).isoformat()
    if text.endswith("+00:00"):
        text = text[:-6] + "Z"
    return text


class Event(BaseModel):
    """
    Inbound event envelope.

    ``payload`` is kept exactly as decoded and never inspected.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    id: Optional[str] = Field(None, description="Caller-supplied unique identifier")
    type: Optional[str] = Field(None, description="Event category label")
    source: Optional[str] = Field(None, description="Origin identifier")
    timestamp: Optional[AwareDatetime] = Field(None, description="RFC3339 event time")
    payload: Any = None

    @field_validator("timestamp", mode="before")
    @classmethod
    def require_rfc3339(cls, value: Any) -> Any:
        if value is None or isinstance(value, datetime):
            return value
        if not isinstance(value, str) or not RFC3339_PATTERN.fullmatch(value):
            raise ValueError(f"timestamp must be an RFC3339 string, got {value!r}")
        return value

    def validate(self) -> None:
        """
        Check the required envelope fields.

        Instance-level check, unrelated to pydantic's deprecated
        ``BaseModel.validate`` classmethod; decoding goes through
        ``model_validate_json``.

        Raises:
            MissingFieldError: for the first of id, type, source that is
                missing or whitespace-only.
        """
        for name in ("id", "type", "source"):
            value = getattr(self, name)
            if value is None or not value.strip():
                raise MissingFieldError(name)
