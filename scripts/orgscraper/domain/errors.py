from __future__ import annotations
from typing import Any, Mapping


class CrawlerError(Exception):
    """Base class for every error the crawler raises on purpose."""


class ApiError(CrawlerError):
    """
    Raised by the API client for any non-2xx response.

    Keeps the decoded body and the response headers so the governor can
    classify the failure (blocked resource, exhausted quota, or other).
    """

    def __init__(
        self,
        status_code: int,
        message: str,
        payload: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.message     = message
        self.payload     = dict(payload or {})
        self.headers     = dict(headers or {})
        super().__init__(f"HTTP {status_code}: {message}")


class ResourceBlocked(CrawlerError):
    """The targeted resource is access-blocked for policy reasons. Never retried."""

    def __init__(self, reason: str | None) -> None:
        self.reason = reason or "unknown"
        super().__init__(f"Resource access blocked (reason: {self.reason})")


class RateLimitExceeded(CrawlerError):
    """Quota exhausted; the call may be retried once `reset_at` (epoch seconds) has passed."""

    def __init__(self, reset_at: float) -> None:
        self.reset_at = reset_at
        super().__init__(f"Rate limit exhausted, resets at {reset_at:.0f}")


class CrawlCancelled(CrawlerError):
    """The stop token was set while the crawl was running."""
