"""
Link store module.

The link service only talks to the LinkStore interface; the SQLAlchemy
implementation works against SQLite and PostgreSQL.
"""

from .strategies import LinkStore, SQLAlchemyLinkStore
from .exceptions import StoreError, DuplicateShortCodeError

__all__ = [
    "LinkStore",
    "SQLAlchemyLinkStore",
    "StoreError",
    "DuplicateShortCodeError",
]
