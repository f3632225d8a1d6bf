"""
Factory for creating short code generation strategies.
"""

from enum import Enum
from typing import Optional

from shortlink_app.services.short_code_strategies import (
    ShortCodeStrategy,
    UrlSafeShortCodeStrategy,
    AlphanumericShortCodeStrategy
)
from shortlink_app.config import settings


class ShortCodeStrategyType(Enum):
    """Available short code generation strategies"""
    URLSAFE = "urlsafe"
    ALPHANUMERIC = "alphanumeric"


class ShortCodeFactory:
    """Factory for creating short code generation strategies"""

    @classmethod
    def create_strategy(
        cls,
        strategy_type: Optional[ShortCodeStrategyType] = None,
        length: Optional[int] = None
    ) -> ShortCodeStrategy:
        """
        Create a short code generation strategy.

        Strategies hold no mutable state, so one instance can be shared
        by every request the application serves.

        Args:
            strategy_type: Type of strategy to create.
                          If None, uses value from settings.
            length: Code length. If None, uses value from settings.

        Returns:
            A ShortCodeStrategy instance

        Raises:
            ValueError: If strategy_type is unknown
        """
        if strategy_type is None:
            strategy_type = ShortCodeStrategyType(settings.short_code_strategy)
        if length is None:
            length = settings.short_code_length

        if strategy_type == ShortCodeStrategyType.URLSAFE:
            return UrlSafeShortCodeStrategy(length=length)
        elif strategy_type == ShortCodeStrategyType.ALPHANUMERIC:
            return AlphanumericShortCodeStrategy(length=length)

        raise ValueError(f"Unknown strategy type: {strategy_type}")
