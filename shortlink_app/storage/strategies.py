"""
Link store strategies.

The link service depends on the LinkStore interface only. The store owns
everything that needs the database: unique-constraint enforcement for
short codes, the active-link lookup and the click log.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from fastapi.concurrency import run_in_threadpool
from sqlalchemy import func, insert, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from shortlink_app.models.link import Link, ClickEvent
from shortlink_app.queue.models import ClickMessage
from shortlink_app.schemas.link import LinkRecord
from shortlink_app.storage.exceptions import StoreError, DuplicateShortCodeError
from shortlink_app.utils import as_utc

logger = logging.getLogger(__name__)

# SQLSTATE for unique_violation (PostgreSQL)
UNIQUE_VIOLATION = "23505"


class LinkStore(ABC):
    """
    Abstract base class for link stores.

    All methods are async because every one of them does database I/O.
    Implementations raise StoreError (or DuplicateShortCodeError) and
    never leak driver exceptions.
    """

    @abstractmethod
    async def insert_link(
        self,
        short_code: str,
        original_url: str,
        expires_at: Optional[datetime] = None
    ) -> int:
        """
        Insert a new active link.

        Args:
            short_code: Code to store; must not exist yet
            original_url: Redirect target
            expires_at: Optional expiration moment

        Returns:
            The id assigned to the new link

        Raises:
            DuplicateShortCodeError: short_code is already taken
            StoreError: any other failure
        """
        pass

    @abstractmethod
    async def find_active_link(self, short_code: str) -> Optional[LinkRecord]:
        """Return the active link with this code, or None"""
        pass

    @abstractmethod
    async def record_clicks(self, events: List[ClickMessage]) -> None:
        """Append click events to the click log in one write"""
        pass

    @abstractmethod
    async def count_clicks(self, link_id: int) -> int:
        """Number of recorded clicks for a link"""
        pass

    @abstractmethod
    async def ping(self) -> bool:
        """True if the store answers a trivial query"""
        pass

    async def record_click(self, link_id: int, occurred_at: datetime) -> None:
        """Append a single click event"""
        await self.record_clicks([ClickMessage(link_id=link_id, occurred_at=occurred_at)])


def is_short_code_conflict(exc: IntegrityError) -> bool:
    """
    Tell a short_code uniqueness violation apart from other integrity errors.

    PostgreSQL drivers expose SQLSTATE 23505 and the constraint name;
    SQLite only gives a message like
    "UNIQUE constraint failed: links.short_code".
    """
    orig = exc.orig
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate == UNIQUE_VIOLATION:
        diag = getattr(orig, "diag", None)
        constraint = getattr(diag, "constraint_name", None)
        return constraint is None or "short_code" in constraint

    message = str(orig).lower()
    return "unique" in message and "short_code" in message


class SQLAlchemyLinkStore(LinkStore):
    """
    Link store backed by a SQLAlchemy session factory.

    Sessions are sync; each call runs in the threadpool so the event
    loop keeps serving other requests while the database works.
    """

    def __init__(self, session_factory: sessionmaker):
        """
        Args:
            session_factory: Session factory bound to the application's engine
        """
        self.session_factory = session_factory

    async def insert_link(
        self,
        short_code: str,
        original_url: str,
        expires_at: Optional[datetime] = None
    ) -> int:
        return await run_in_threadpool(self._insert_link, short_code, original_url, expires_at)

    def _insert_link(self, short_code: str, original_url: str, expires_at: Optional[datetime]) -> int:
        statement = insert(Link).values(
            short_code=short_code,
            original_url=original_url,
            is_active=True,
            expires_at=as_utc(expires_at),
        ).returning(Link.id)

        with self.session_factory() as session:
            try:
                link_id = session.execute(statement).scalar_one()
                session.commit()
                return link_id
            except IntegrityError as e:
                session.rollback()
                if is_short_code_conflict(e):
                    raise DuplicateShortCodeError(short_code) from e
                raise StoreError(str(e)) from e
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(str(e)) from e

    async def find_active_link(self, short_code: str) -> Optional[LinkRecord]:
        return await run_in_threadpool(self._find_active_link, short_code)

    def _find_active_link(self, short_code: str) -> Optional[LinkRecord]:
        statement = select(Link).where(
            Link.short_code == short_code,
            Link.is_active.is_(True)
        )

        try:
            with self.session_factory() as session:
                link = session.execute(statement).scalar_one_or_none()
                if link is None:
                    return None
                record = LinkRecord.model_validate(link)
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

        return record.model_copy(update={
            "expires_at": as_utc(record.expires_at),
            "created_at": as_utc(record.created_at),
        })

    async def record_clicks(self, events: List[ClickMessage]) -> None:
        if not events:
            return
        await run_in_threadpool(self._record_clicks, events)

    def _record_clicks(self, events: List[ClickMessage]) -> None:
        rows = [
            {"link_id": event.link_id, "occurred_at": as_utc(event.occurred_at)}
            for event in events
        ]

        with self.session_factory() as session:
            try:
                session.execute(insert(ClickEvent), rows)
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise StoreError(str(e)) from e

    async def count_clicks(self, link_id: int) -> int:
        return await run_in_threadpool(self._count_clicks, link_id)

    def _count_clicks(self, link_id: int) -> int:
        statement = select(func.count()).select_from(ClickEvent).where(ClickEvent.link_id == link_id)
        try:
            with self.session_factory() as session:
                return session.execute(statement).scalar_one()
        except SQLAlchemyError as e:
            raise StoreError(str(e)) from e

    async def ping(self) -> bool:
        return await run_in_threadpool(self._ping)

    def _ping(self) -> bool:
        try:
            with self.session_factory() as session:
                session.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as e:
            logger.warning("Store ping failed: %s", e)
            return False
