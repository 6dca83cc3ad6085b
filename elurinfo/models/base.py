"""
Base Pydantic models with common configurations.

Provides a base model that ensures all datetime fields are serialized
with UTC timezone for consistent client handling.
"""

from datetime import datetime, timezone
from typing import Annotated, Optional

from pydantic import BaseModel, PlainSerializer


def serialize_datetime_utc(dt: Optional[datetime]) -> Optional[str]:
    """
    Serialize datetime to ISO format with UTC timezone.

    If the datetime is naive (no timezone), assumes it's UTC and adds the timezone.
    """
    if dt is None:
        return None

    # If datetime is naive, assume it's UTC
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc).isoformat()


# Type alias for datetime fields that should be serialized with UTC timezone
UTCDatetime = Annotated[datetime, PlainSerializer(serialize_datetime_utc, return_type=str)]


class APIBaseModel(BaseModel):
    """
    Base model for API responses.

    Fields are declared in snake_case and may carry camelCase aliases;
    responses are serialized by alias.
    """

    model_config = {
        "from_attributes": True,
        "populate_by_name": True,
    }
