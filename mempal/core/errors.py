"""Custom exceptions used across mempal."""


class MempalError(Exception):
    """Base error for the application."""


class ConfigError(MempalError):
    """Configuration related error."""


class FeeFetchError(MempalError):
    """Raised when a mempool endpoint cannot provide usable data."""

    def __init__(self, message: str, *, url: str | None = None, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class TransientNetworkError(FeeFetchError):
    """Timeout or connection failure; the endpoint never answered."""


class InvalidDataError(FeeFetchError):
    """The endpoint answered but the payload is unusable."""


class UnexpectedStatusError(InvalidDataError):
    """The endpoint answered with a non-2xx status."""


class TerminalUnavailable(FeeFetchError):
    """No endpoint produced data."""


class FetchCancelled(BaseException):
    """Raised when the caller cancels a fetch.

    Derives from ``BaseException`` like ``asyncio.CancelledError`` so that
    handlers catching ``Exception`` never absorb it.
    """
