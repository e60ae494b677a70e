from __future__ import annotations
import asyncio
import time
from datetime import date, datetime

from orgscraper.domain.interfaces import IClock


class SystemClock(IClock):
    """The real wall clock; sleeping yields to the event loop."""

    def time(self) -> float:
        return time.time()

    def today(self) -> date:
        return date.today()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(max(seconds, 0.0))

    def formatted_time(self, epoch: float | None = None) -> str:
        moment = datetime.now() if epoch is None else datetime.fromtimestamp(epoch)
        return moment.strftime("%H:%M:%S")
