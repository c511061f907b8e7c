"""
Base Schemas.

Shared helpers for the pydantic models exchanged with the remote service.
"""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict


def utc_now() -> datetime:
    """Return current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


class WireModel(BaseModel):
    """
    Base for models parsed from remote service rows.

    Unknown columns are ignored so that schema additions on the server
    side do not break the client. Fields may be populated by their wire
    alias or their Python name.
    """

    model_config = ConfigDict(
        extra="ignore",
        populate_by_name=True,
        frozen=True,
    )
