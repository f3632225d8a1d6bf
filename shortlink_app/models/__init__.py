"""
Database models for the link service.

links  - one row per short code (transactional data)
clicks - append-only log of successful resolutions
"""

from .link import Link, ClickEvent

__all__ = ["Link", "ClickEvent"]
