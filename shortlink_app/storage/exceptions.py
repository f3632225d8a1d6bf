"""Errors raised by link store implementations."""


class StoreError(Exception):
    """The store could not complete an operation."""


class DuplicateShortCodeError(StoreError):
    """An insert collided with an existing short code (active or not)."""

    def __init__(self, short_code: str):
        super().__init__(f"short code already exists: {short_code}")
        self.short_code = short_code
