"""
Short code generation strategies for the link service.
Uses Strategy Pattern to allow different alphabets.
"""

import secrets
import string
from abc import ABC, abstractmethod


class ShortCodeStrategy(ABC):
    """
    Abstract base class for short code generation strategies.

    Strategies only produce candidates. They do not check uniqueness:
    a collision is detected by the store's unique constraint when the
    link is inserted.
    """

    alphabet: str = ""

    def __init__(self, length: int = 8):
        if length < 1:
            raise ValueError(f"Short code length must be positive, got {length}")
        self.length = length

    @abstractmethod
    def generate(self) -> str:
        """
        Generate a short code.

        Returns:
            A random code of ``self.length`` characters
        """
        pass

    def _random_string(self) -> str:
        # secrets, not random: codes must not be guessable from earlier ones
        return ''.join(secrets.choice(self.alphabet) for _ in range(self.length))


class UrlSafeShortCodeStrategy(ShortCodeStrategy):
    """
    Default strategy: letters, digits, '-' and '_'.

    64 symbols, so 8 characters give 2^48 possible codes.
    Every symbol is safe in a URL path segment without escaping.
    """

    alphabet = string.ascii_letters + string.digits + "-_"

    def generate(self) -> str:
        return self._random_string()


class AlphanumericShortCodeStrategy(ShortCodeStrategy):
    """
    Letters and digits only (62 symbols).

    For deployments where codes get read aloud or typed by hand.
    """

    alphabet = string.ascii_letters + string.digits

    def generate(self) -> str:
        return self._random_string()
