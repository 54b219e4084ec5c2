from __future__ import annotations


class AdvisoryFeedError(Exception):
    """Base class for errors raised by the advisory feed."""


class RateLimitExhaustedError(AdvisoryFeedError):
    """Raised when a page stays rate limited past the configured retry budget."""

    def __init__(self, page: int, attempts: int, status: int | None = None) -> None:
        self.page = page
        self.attempts = attempts
        self.status = status
        super().__init__(
            f"page {page} still rate limited after {attempts} attempts"
            + (f" (last status {status})" if status is not None else "")
        )
