"""
Request governor: the single point of contact with the remote API.

Every remote call goes through `RequestGovernor.call`, which classifies
the outcome from the response/error metadata and applies one policy:

  blocked resource   → raise ResourceBlocked, never retried
  quota exhausted    → sleep until reset + 1s, retry with the SAME budget
  any other failure  → retry while the budget lasts, then re-raise
  success            → return the payload; if it used up the quota, the
                       NEXT call waits for the reset before going out
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Mapping, TypeVar

from orgscraper.domain.entities import ApiResponse
from orgscraper.domain.errors import ApiError, CrawlCancelled, RateLimitExceeded, ResourceBlocked
from orgscraper.domain.interfaces import IClock

log = logging.getLogger(__name__)

DEFAULT_RETRIES   = 1
RESET_MARGIN_SECS = 1
# Used when GitHub reports zero quota but no reset instant
RATE_LIMIT_SLEEP  = 60
BLOCKED_MESSAGE   = "Repository access blocked"

T = TypeVar("T")
Request = Callable[[], Awaitable[ApiResponse[T]]]


def exhausted_reset(headers: Mapping[str, str], now: float) -> float | None:
    """Return the reset instant (epoch seconds) if `headers` report zero remaining quota."""
    lowered = {k.lower(): v for k, v in headers.items()}
    if str(lowered.get("x-ratelimit-remaining")) != "0":
        return None
    try:
        return float(lowered["x-ratelimit-reset"])
    except (KeyError, TypeError, ValueError):
        return now + RATE_LIMIT_SLEEP


def classify(exc: Exception, now: float) -> ResourceBlocked | RateLimitExceeded | None:
    """Map a failed call to a blocked / rate-limited signal, or None for transient errors."""
    if not isinstance(exc, ApiError):
        return None

    if exc.payload.get("message") == BLOCKED_MESSAGE:
        block = exc.payload.get("block")
        return ResourceBlocked(block.get("reason") if isinstance(block, dict) else None)

    reset_at = exhausted_reset(exc.headers, now)
    if reset_at is not None:
        return RateLimitExceeded(reset_at)

    return None


class RequestGovernor:
    """
    Turns a fallible, rate-limited remote call into a reliable one.

    The stop event (optional) is checked before every call and raced
    against every rate-limit wait; once set, CrawlCancelled is raised.
    """

    def __init__(self, clock: IClock, retries: int = DEFAULT_RETRIES, stop_event: asyncio.Event | None = None) -> None:
        self._clock         = clock
        self._retries       = retries
        self._stop_event    = stop_event
        self._pending_reset: float | None = None

    async def call(self, request: Request[T], retries: int | None = None) -> T:
        budget = self._retries if retries is None else retries

        while True:
            if self._pending_reset is not None:
                reset_at, self._pending_reset = self._pending_reset, None
                await self._wait_for_reset(reset_at)

            self._raise_if_cancelled()

            try:
                response = await request()
            except Exception as exc:
                signal = classify(exc, self._clock.time())

                if isinstance(signal, ResourceBlocked):
                    raise signal from exc

                if isinstance(signal, RateLimitExceeded):
                    await self._wait_for_reset(signal.reset_at)
                    continue

                if budget > 0:
                    budget -= 1
                    log.warning("Request failed: %s, retrying (%d retries left)", exc, budget)
                    continue

                log.error("Request failed, no retries left: %s", exc)
                raise

            self._pending_reset = exhausted_reset(response.headers, self._clock.time())
            if self._pending_reset is not None:
                log.info("Quota used up by the last request, the next one waits for the reset")
            return response.data

    async def _wait_for_reset(self, reset_at: float) -> None:
        resume_at = reset_at + RESET_MARGIN_SECS
        delay     = max(resume_at - self._clock.time(), 0.0)

        log.info(
            "Rate limit reached. Resuming at %s (in %.0fs)",
            self._clock.formatted_time(resume_at),
            delay,
        )
        await self._sleep(delay)
        log.info("Resumed at %s", self._clock.formatted_time())

    async def _sleep(self, seconds: float) -> None:
        if self._stop_event is None:
            await self._clock.sleep(seconds)
            return

        sleeper = asyncio.ensure_future(self._clock.sleep(seconds))
        stopper = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({sleeper, stopper}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in (sleeper, stopper):
                task.cancel()
            await asyncio.gather(sleeper, stopper, return_exceptions=True)

        self._raise_if_cancelled()

    def _raise_if_cancelled(self) -> None:
        if self._stop_event is not None and self._stop_event.is_set():
            raise CrawlCancelled("stop requested")
