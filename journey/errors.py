"""Error taxonomy shared by all Journey modules."""

from typing import Optional


class JourneyError(Exception):
    """Base class for all Journey errors."""


class ValidationError(JourneyError, ValueError):
    """Missing or invalid caller input (account id, app id, event name, stage)."""


class PersistenceError(JourneyError):
    """Reading or writing the stored session failed."""


class TransportError(JourneyError):
    """The ingest endpoint answered with a non-2xx response or was unreachable."""

    def __init__(
        self,
        status_code: Optional[int],
        status_text: Optional[str],
        message: str,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.status_text = status_text
        self.message = message

    def with_prefix(self, prefix: str) -> "TransportError":
        """Return a copy whose message starts with the operation-specific prefix."""
        return TransportError(self.status_code, self.status_text, prefix + self.message)

    def __str__(self) -> str:
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code} {self.status_text})"
