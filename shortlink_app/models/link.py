from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, ForeignKey
from sqlalchemy.sql import func, true
from shortlink_app.database.connection import Base


class Link(Base):
    """
    A short code and the URL it redirects to.

    Rows are never updated or deleted by the service. is_active is flipped
    by an external deactivation process; expires_at is checked at read time.
    """
    __tablename__ = "links"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    # unique=True creates the constraint that detects short code collisions
    short_code = Column(String(64), unique=True, nullable=False, index=True)
    original_url = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True, server_default=true())
    expires_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())


class ClickEvent(Base):
    """One successful resolution of a link."""
    __tablename__ = "clicks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    link_id = Column(Integer, ForeignKey("links.id"), nullable=False, index=True)
    occurred_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
