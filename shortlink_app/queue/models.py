"""
Data models for queue messages.
"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

from shortlink_app.utils import utcnow


class ClickMessage(BaseModel):
    """
    A resolved link, waiting to be written to the click log.

    Published by the click recorder on every successful redirect and
    consumed by the click worker.
    """

    link_id: int = Field(..., description="Id of the link that was resolved")
    occurred_at: datetime = Field(default_factory=utcnow, description="When the resolution happened")

    # Set by queue backends that need acknowledgment; never serialized
    message_id: Optional[str] = Field(None, exclude=True)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "link_id": 42,
                "occurred_at": "2025-10-29T10:30:00+00:00"
            }
        }
    )
