import asyncio
import string
from datetime import datetime, timedelta, timezone

import pytest

from shortlink_app.exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    GoneError,
    DatabaseError,
)
from shortlink_app.queue.strategies import InMemoryQueue
from shortlink_app.services.click_recorder import ClickRecorder
from shortlink_app.services.link_service import LinkService
from shortlink_app.services.short_code_strategies import ShortCodeStrategy
from shortlink_app.storage.exceptions import StoreError

from conftest import BASE_URL, RecordingClicks

URLSAFE_ALPHABET = set(string.ascii_letters + string.digits + "-_")


class FixedCodeStrategy(ShortCodeStrategy):
    """Always returns the same code, to force collisions"""

    def __init__(self, code: str):
        super().__init__(length=len(code))
        self.code = code

    def generate(self) -> str:
        return self.code


class BrokenStore:
    """Store whose every call fails with a driver-like message"""

    async def insert_link(self, short_code, original_url, expires_at=None):
        raise StoreError("connection refused: secret-host:5432")

    async def find_active_link(self, short_code):
        raise StoreError("connection refused: secret-host:5432")

    async def count_clicks(self, link_id):
        raise StoreError("connection refused: secret-host:5432")


class FailingQueue(InMemoryQueue):
    async def publish(self, queue_name, message):
        raise RuntimeError("queue down")


class TestCreate:
    """Test link creation"""

    def test_generated_code(self, service: LinkService):
        """Without a custom code, an 8-character URL-safe code is generated"""
        created = asyncio.run(service.create("https://example.com/page"))

        assert len(created.short_code) == 8
        assert set(created.short_code) <= URLSAFE_ALPHABET
        assert created.short_url == f"{BASE_URL}/{created.short_code}"

    def test_custom_code_used_verbatim(self, service: LinkService):
        created = asyncio.run(service.create("http://x.com/a", custom_code="abc123"))

        assert created.short_code == "abc123"
        assert created.short_url == f"{BASE_URL}/abc123"

    def test_duplicate_custom_code_conflicts(self, service: LinkService):
        """Second create with the same custom code returns Conflict"""
        asyncio.run(service.create("http://x.com/a", custom_code="abc123"))

        with pytest.raises(ConflictError):
            asyncio.run(service.create("http://y.com/b", custom_code="abc123"))

    def test_custom_code_conflicts_with_inactive_link(self, service: LinkService, set_link_fields):
        """Codes of deactivated links stay taken"""
        asyncio.run(service.create("http://x.com/a", custom_code="retired1"))
        set_link_fields("retired1", is_active=False)

        with pytest.raises(ConflictError):
            asyncio.run(service.create("http://y.com/b", custom_code="retired1"))

    def test_generated_collision_is_not_retried(self, store, clicks):
        """A colliding generated code surfaces as Conflict; no retry inside create"""
        service = LinkService(store, FixedCodeStrategy("samecode"), clicks, BASE_URL)

        asyncio.run(service.create("https://example.com/one"))
        with pytest.raises(ConflictError):
            asyncio.run(service.create("https://example.com/two"))

    @pytest.mark.parametrize("url", [
        "",
        "http://",
        "   http:/   ",
        "ftp://example.com/file",
        "example.com/some/page",
        "mailto:someone@example.com",
    ])
    def test_invalid_urls(self, service: LinkService, url):
        with pytest.raises(ValidationError) as exc_info:
            asyncio.run(service.create(url))

        assert exc_info.value.reason == "invalid URL"

    @pytest.mark.parametrize("url", ["http://", "   http://  \n", "HTTPS://EXAMPLE.COM/PAGE"])
    def test_short_or_uppercase_urls_rejected(self, service: LinkService, url):
        """Seven characters after trimming is too short; the http prefix is case-sensitive"""
        with pytest.raises(ValidationError):
            asyncio.run(service.create(url))

    @pytest.mark.parametrize("url, stored", [
        ("http://a", "http://a"),
        ("  http://a  ", "http://a"),
        ("httpbin.org/get", "httpbin.org/get"),
    ])
    def test_minimal_urls_accepted(self, service: LinkService, url, stored):
        """Eight characters starting with http is enough, scheme separator or not"""
        created = asyncio.run(service.create(url))

        assert asyncio.run(service.resolve(created.short_code)) == stored

    def test_url_is_trimmed(self, service: LinkService):
        """Surrounding whitespace is dropped before storing"""
        created = asyncio.run(service.create("  https://example.com/page \n"))

        target = asyncio.run(service.resolve(created.short_code))
        assert target == "https://example.com/page"

    def test_base_url_trailing_slash(self, store, clicks):
        service = LinkService(store, FixedCodeStrategy("slashed1"), clicks, BASE_URL + "/")

        created = asyncio.run(service.create("https://example.com/page"))

        assert created.short_url == f"{BASE_URL}/slashed1"

    def test_store_failure_is_database_error(self, clicks):
        service = LinkService(BrokenStore(), FixedCodeStrategy("whatever"), clicks, BASE_URL)

        with pytest.raises(DatabaseError) as exc_info:
            asyncio.run(service.create("https://example.com/page"))

        assert isinstance(exc_info.value.cause, StoreError)
        assert "secret-host" not in exc_info.value.message

    def test_create_records_no_click(self, service: LinkService, clicks: RecordingClicks):
        asyncio.run(service.create("https://example.com/page"))
        assert clicks.calls == []


class TestResolve:
    """Test link resolution"""

    def test_round_trip(self, service: LinkService, clicks: RecordingClicks):
        """Resolve returns the exact URL and schedules exactly one click"""
        created = asyncio.run(service.create("https://example.com/page"))

        target = asyncio.run(service.resolve(created.short_code))

        assert target == "https://example.com/page"
        assert len(clicks.calls) == 1
        link = asyncio.run(service.store.find_active_link(created.short_code))
        assert clicks.calls[0][0] == link.id

    def test_unknown_code(self, service: LinkService, clicks: RecordingClicks):
        with pytest.raises(NotFoundError):
            asyncio.run(service.resolve("doesnotexist"))
        assert clicks.calls == []

    def test_inactive_link_is_not_found(self, service: LinkService, set_link_fields):
        """Deactivated links look exactly like unknown ones"""
        asyncio.run(service.create("https://example.com/page", custom_code="hidden01"))
        set_link_fields("hidden01", is_active=False)

        with pytest.raises(NotFoundError) as inactive:
            asyncio.run(service.resolve("hidden01"))
        with pytest.raises(NotFoundError) as missing:
            asyncio.run(service.resolve("neverwas"))

        assert inactive.value.message == missing.value.message

    def test_expired_link_is_gone(self, service: LinkService, set_link_fields, clicks: RecordingClicks):
        asyncio.run(service.create("https://example.com/page", custom_code="expired1"))
        set_link_fields("expired1", expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))

        with pytest.raises(GoneError):
            asyncio.run(service.resolve("expired1"))
        assert clicks.calls == []

    def test_expired_and_inactive_is_not_found(self, service: LinkService, set_link_fields):
        """Inactive wins over expired: nothing is revealed"""
        asyncio.run(service.create("https://example.com/page", custom_code="both0001"))
        set_link_fields(
            "both0001",
            is_active=False,
            expires_at=datetime.now(timezone.utc) - timedelta(days=1)
        )

        with pytest.raises(NotFoundError):
            asyncio.run(service.resolve("both0001"))

    def test_future_expiry_still_resolves(self, service: LinkService):
        expires_at = datetime.now(timezone.utc) + timedelta(hours=1)
        created = asyncio.run(service.create("https://example.com/page", expires_at=expires_at))

        assert asyncio.run(service.resolve(created.short_code)) == "https://example.com/page"

    def test_naive_expiry_is_utc(self, service: LinkService):
        """A naive expires_at given at creation is read as UTC"""
        expires_at = datetime.now(timezone.utc).replace(tzinfo=None) - timedelta(seconds=5)
        created = asyncio.run(service.create("https://example.com/page", expires_at=expires_at))

        with pytest.raises(GoneError):
            asyncio.run(service.resolve(created.short_code))

    def test_lookup_failure_is_database_error(self, clicks):
        service = LinkService(BrokenStore(), FixedCodeStrategy("whatever"), clicks, BASE_URL)

        with pytest.raises(DatabaseError):
            asyncio.run(service.resolve("whatever"))

    def test_click_failure_does_not_change_redirect(self, store):
        """A queue that blows up on publish leaves resolve's result untouched"""
        recorder = ClickRecorder(FailingQueue(), "link_clicks")
        service = LinkService(store, FixedCodeStrategy("clickfail"), recorder, BASE_URL)

        async def scenario():
            created = await service.create("https://example.com/page")
            target = await service.resolve(created.short_code)
            assert recorder.pending == 1
            await recorder.drain()
            return target

        assert asyncio.run(scenario()) == "https://example.com/page"
        assert recorder.pending == 0


class TestStats:

    def test_counts_recorded_clicks(self, service: LinkService, store):
        asyncio.run(service.create("https://example.com/page", custom_code="counted1"))
        link = asyncio.run(store.find_active_link("counted1"))
        now = datetime.now(timezone.utc)
        asyncio.run(store.record_click(link.id, now))
        asyncio.run(store.record_click(link.id, now))

        stats = asyncio.run(service.stats("counted1"))

        assert stats.short_code == "counted1"
        assert stats.clicks == 2

    def test_inactive_link_has_no_stats(self, service: LinkService, set_link_fields):
        asyncio.run(service.create("https://example.com/page", custom_code="hidden02"))
        set_link_fields("hidden02", is_active=False)

        with pytest.raises(NotFoundError):
            asyncio.run(service.stats("hidden02"))
