"""
Userbase Backend - Response Envelope Schemas
=============================================

What:  The JSON wrapper every endpoint responds with.
Why:   Clients parse one shape for success and failure alike.

Shape:
    {
        "status": "SUCCESS" | "FAILED",
        "message": "Users retrieved successfully",
        "version": "1.0.0",
        "timestamp": "2024-01-15T12:00:00.000Z",
        "data": ...               (when there is a payload)
    }

Failure envelopes also carry `requestId` for log correlation, and in
non-production modes an `error` string describing an unexpected exception.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app import __version__

SUCCESS = "SUCCESS"
FAILED = "FAILED"


def utc_timestamp() -> str:
    """ISO 8601 UTC timestamp with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class Envelope(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    status: Literal["SUCCESS", "FAILED"] = Field(default=SUCCESS)
    message: str = Field(description="Human-readable outcome")
    version: str = Field(default=__version__, description="Service version")
    timestamp: str = Field(default_factory=utc_timestamp)


class MessageEnvelope(Envelope):
    """Envelope with no payload (delete confirmations, root endpoint)."""
    data: Optional[Dict[str, Any]] = None


class ErrorEnvelope(Envelope):
    status: Literal["SUCCESS", "FAILED"] = Field(default=FAILED)
    data: Optional[Any] = Field(default=None, description="Validation violations, if any")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
    error: Optional[str] = Field(
        default=None,
        description="Exception detail; only present outside production",
    )

    def to_content(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys and unset optionals dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)
