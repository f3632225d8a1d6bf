import logging
from datetime import datetime
from typing import Optional

from shortlink_app.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    GoneError,
    DatabaseError,
)
from shortlink_app.schemas.link import CreatedLink, LinkRecord, LinkStats
from shortlink_app.services.click_recorder import ClickRecorder
from shortlink_app.services.short_code_strategies import ShortCodeStrategy
from shortlink_app.storage.exceptions import StoreError, DuplicateShortCodeError
from shortlink_app.storage.strategies import LinkStore
from shortlink_app.utils import utcnow, as_utc

logger = logging.getLogger(__name__)

MIN_URL_LENGTH = 8
URL_PREFIX = "http"


class LinkService:
    """
    Link lifecycle: creating short codes and resolving them.

    Every collaborator is injected:
    - store: the link store (owns the shared connection pool)
    - short_code_strategy: generates codes when the caller gives none
    - clicks: detached click accounting
    - base_url: public base for building short URLs

    The service holds no mutable state, so one request's instance never
    affects another's.
    """

    def __init__(
        self,
        store: LinkStore,
        short_code_strategy: ShortCodeStrategy,
        clicks: ClickRecorder,
        base_url: str
    ):
        self.store = store
        self.short_code_strategy = short_code_strategy
        self.clicks = clicks
        self.base_url = base_url.rstrip("/")

    async def create(
        self,
        url: str,
        custom_code: Optional[str] = None,
        expires_at: Optional[datetime] = None
    ) -> CreatedLink:
        """Create a short link.

        Steps:
        1. Validate the URL (cheap syntactic check, no reachability test)
        2. Take custom_code verbatim, or generate one
        3. Insert; the store's unique constraint catches collisions

        A collision is reported as ConflictError and never retried here,
        even for generated codes; the caller decides whether to try again.

        Raises:
            ValidationError: url too short or not http(s)
            ConflictError: short code already exists
            DatabaseError: any other store failure
        """
        original_url = self._validate_url(url)

        if custom_code is not None:
            short_code = custom_code
        else:
            short_code = self.short_code_strategy.generate()

        try:
            await self.store.insert_link(short_code, original_url, as_utc(expires_at))
        except DuplicateShortCodeError:
            raise ConflictError()
        except StoreError as e:
            raise DatabaseError(e) from e

        logger.debug("Created link %s -> %s", short_code, original_url)

        return CreatedLink(
            short_code=short_code,
            short_url=self.build_short_url(short_code)
        )

    async def resolve(self, code: str) -> str:
        """Resolve a short code to its redirect target.

        Inactive and unknown codes both raise NotFoundError, so callers
        cannot tell whether a code ever existed. An expired link raises
        GoneError instead.

        On success one click is scheduled; its outcome does not affect
        the returned URL.
        """
        link = await self._find_active_link(code)

        now = utcnow()
        if link.expires_at is not None and as_utc(link.expires_at) < now:
            raise GoneError()

        self.clicks.record(link.id, now)

        return link.original_url

    async def stats(self, code: str) -> LinkStats:
        """Raw click count for an active link."""
        link = await self._find_active_link(code)

        try:
            clicks = await self.store.count_clicks(link.id)
        except StoreError as e:
            raise DatabaseError(e) from e

        return LinkStats(short_code=link.short_code, clicks=clicks)

    def build_short_url(self, short_code: str) -> str:
        return f"{self.base_url}/{short_code}"

    async def _find_active_link(self, code: str) -> LinkRecord:
        try:
            link = await self.store.find_active_link(code)
        except StoreError as e:
            raise DatabaseError(e) from e

        if link is None:
            raise NotFoundError()

        return link

    @staticmethod
    def _validate_url(url: str) -> str:
        candidate = url.strip()
        if len(candidate) < MIN_URL_LENGTH or not candidate.startswith(URL_PREFIX):
            raise ValidationError("invalid URL")
        return candidate
