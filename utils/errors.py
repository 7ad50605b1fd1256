class FlashDeckError(Exception):
    """Base class for errors raised by the deck store and backup layer."""


class MalformedStorageDocument(FlashDeckError):
    """A persisted document could not be decoded; callers treat it as empty."""

    def __init__(self, key: str, reason: str):
        super().__init__(f"Malformed document {key!r}: {reason}")
        self.key = key
        self.reason = reason


class InvalidBackupFormat(FlashDeckError):
    """A backup failed structural validation. ``reason`` is shown to the user."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class InvalidTimestamp(FlashDeckError, ValueError):
    """A serialized timestamp could not be parsed."""
