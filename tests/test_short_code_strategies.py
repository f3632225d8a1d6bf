"""
Tests for short code generation strategies.
"""
import string

import pytest

from shortlink_app.services.short_code_strategies import (
    UrlSafeShortCodeStrategy,
    AlphanumericShortCodeStrategy
)
from shortlink_app.services.short_code_factory import (
    ShortCodeFactory,
    ShortCodeStrategyType
)

URLSAFE_ALPHABET = set(string.ascii_letters + string.digits + "-_")


class TestUrlSafeStrategy:
    """Test the default URL-safe strategy"""

    def test_generates_fixed_length(self):
        """Codes are always exactly the configured length"""
        strategy = UrlSafeShortCodeStrategy(length=8)

        for _ in range(200):
            assert len(strategy.generate()) == 8

    def test_uses_url_safe_alphabet(self):
        """Every character is a letter, digit, '-' or '_'"""
        strategy = UrlSafeShortCodeStrategy(length=8)

        for _ in range(200):
            assert set(strategy.generate()) <= URLSAFE_ALPHABET

    def test_codes_vary(self):
        """Consecutive codes are not all the same"""
        strategy = UrlSafeShortCodeStrategy(length=8)

        codes = {strategy.generate() for _ in range(50)}

        assert len(codes) > 1

    def test_custom_length(self):
        strategy = UrlSafeShortCodeStrategy(length=12)
        assert len(strategy.generate()) == 12

    def test_rejects_non_positive_length(self):
        with pytest.raises(ValueError):
            UrlSafeShortCodeStrategy(length=0)


class TestAlphanumericStrategy:

    def test_letters_and_digits_only(self):
        """No '-' or '_' in alphanumeric codes"""
        strategy = AlphanumericShortCodeStrategy(length=8)

        for _ in range(200):
            code = strategy.generate()
            assert len(code) == 8
            assert code.isalnum()


class TestShortCodeFactory:
    """Test strategy factory"""

    def test_creates_urlsafe_strategy(self):
        strategy = ShortCodeFactory.create_strategy(ShortCodeStrategyType.URLSAFE)
        assert isinstance(strategy, UrlSafeShortCodeStrategy)

    def test_creates_alphanumeric_strategy(self):
        strategy = ShortCodeFactory.create_strategy(ShortCodeStrategyType.ALPHANUMERIC, length=6)
        assert isinstance(strategy, AlphanumericShortCodeStrategy)
        assert strategy.length == 6

    def test_creates_default_from_settings(self):
        """Factory uses settings when no type or length is given (urlsafe, 8)"""
        strategy = ShortCodeFactory.create_strategy()
        assert isinstance(strategy, UrlSafeShortCodeStrategy)
        assert len(strategy.generate()) == 8

    def test_unknown_strategy_name(self):
        with pytest.raises(ValueError):
            ShortCodeStrategyType("base62")
