"""Exceptions raised while handling submissions."""

from typing import Iterable


class ValidationError(ValueError):
    """A submission is incomplete or carries an unacceptable attachment."""

    def __init__(self, message: str, missing: Iterable[str] = ()) -> None:
        """Keep track of which fields were missing, if any."""
        self.message = message
        self.missing = list(missing)
        super(ValidationError, self).__init__(message)


class StorageWriteError(RuntimeError):
    """Failed to persist a record or an attachment."""


class StorageReadError(RuntimeError):
    """A record or attachment directory could not be read."""


class RecordParseError(ValueError):
    """A stored record is not a well-formed record."""


class NotificationError(RuntimeError):
    """An outbound e-mail could not be sent."""


class ConfigurationError(RuntimeError):
    """A required parameter is invalid/missing from the application config."""
