"""Exception taxonomy for the matching pipeline.

ExternalServiceError and ParseError feed the scoring fallback chain;
NotFoundError terminates only the unit of work it concerns (one run, one
request).
"""


class MatchingError(Exception):
    """Base class for matching pipeline errors."""


class ExternalServiceError(MatchingError):
    """Backend unreachable, unauthorized, timed out or not configured."""


class ParseError(MatchingError):
    """Backend answered, but the content did not have the expected shape."""

    def __init__(self, message: str, raw: str | None = None):
        super().__init__(message)
        self.raw = raw


class NotFoundError(MatchingError):
    """Job or candidate does not exist."""
