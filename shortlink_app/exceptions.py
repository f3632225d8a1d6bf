"""
Error taxonomy for the link service.

One closed set of errors is shared by link creation and resolution.
The service raises them; the HTTP layer maps them to status codes
(see shortlink_app/api/errors.py). Nothing here knows about HTTP.
"""

from typing import Optional


class LinkServiceError(Exception):
    """Base class for every error the link service raises."""

    message = "internal error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class ValidationError(LinkServiceError):
    """Client-correctable input defect."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class NotFoundError(LinkServiceError):
    """Link absent, or deliberately hidden because it is inactive."""

    message = "not found"


class ConflictError(LinkServiceError):
    """Short code already taken at creation time."""

    message = "already exists"


class GoneError(LinkServiceError):
    """Link existed but its expiration time has passed."""

    message = "link expired"


class DatabaseError(LinkServiceError):
    """
    Unexpected store failure.

    Keeps the underlying cause for logging; the message handed to
    clients stays generic.
    """

    def __init__(self, cause: BaseException):
        super().__init__("internal error")
        self.cause = cause


class InternalError(LinkServiceError):
    """Any other unexpected failure."""
