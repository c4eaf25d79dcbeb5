"""Failures raised while fetching a page, and the retry budget they share."""

from enum import Enum


class FailureKind(str, Enum):
    RATE_LIMITED = "rate_limited"
    SERVER_ERROR = "server_error"
    TRANSPORT_ERROR = "transport_error"
    PARSE_ERROR = "parse_error"


class FetchError(Exception):
    """Base class for a failed page fetch.

    Every subclass carries a ``kind`` tag. The scraper picks the backoff delay
    from the tag and charges the same retry budget whatever the kind.
    """

    kind = FailureKind.TRANSPORT_ERROR

    def __init__(self, message, status_code=None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(FetchError):
    """Server answered 429 Too Many Requests."""

    kind = FailureKind.RATE_LIMITED

    def __init__(self, status_code=429):
        super().__init__("Rate limited (429)", status_code)


class ServerError(FetchError):
    """Server answered with a 5xx status."""

    kind = FailureKind.SERVER_ERROR

    def __init__(self, status_code):
        super().__init__(f"Server error ({status_code})", status_code)


class TransportError(FetchError):
    """Network failure, timeout, or a non-2xx status that is not retried as 429/5xx."""

    kind = FailureKind.TRANSPORT_ERROR


class ParseError(FetchError):
    """Response body was not the expected JSON object."""

    kind = FailureKind.PARSE_ERROR


class RetryBudget:
    """Consecutive-failure counter shared by all failure kinds."""

    def __init__(self, limit):
        self.limit = limit
        self.used = 0

    def spend(self):
        """Charge one failure. Returns False once the budget is exceeded."""
        self.used += 1
        return self.used <= self.limit

    def reset(self):
        self.used = 0
