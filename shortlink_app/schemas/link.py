from pydantic import BaseModel, Field, ConfigDict
from typing import Generic, Optional, TypeVar
from datetime import datetime


T = TypeVar("T")


class LinkCreate(BaseModel):
    """Request body for POST /api/shorten.

    url is deliberately a plain string: the service applies its own
    validation and reports failures in the error envelope.
    """
    url: str = Field(..., description="The original URL to be shortened")
    custom_code: Optional[str] = Field(None, description="Use this short code instead of a generated one")
    expires_at: Optional[datetime] = Field(None, description="After this moment the link answers 410 Gone")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "url": "https://example.com/some/long/page",
                "custom_code": "launch24"
            }
        }
    )


class CreatedLink(BaseModel):
    short_code: str
    short_url: str


class LinkRecord(BaseModel):
    """Detached read model of a links row, as returned by the store."""
    id: int
    short_code: str
    original_url: str
    is_active: bool
    expires_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class LinkStats(BaseModel):
    short_code: str
    clicks: int


class ApiErrorDetail(BaseModel):
    code: str
    message: str


class ApiSuccess(BaseModel, Generic[T]):
    success: bool = True
    data: T


class ApiErrorBody(BaseModel):
    success: bool = False
    error: ApiErrorDetail
