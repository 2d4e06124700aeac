"""
Throttling for the spreadsheet source.

The Sheets API enforces a per-minute read quota, so loading a document sheet
by sheet waits a short randomized delay between sheets.
"""
import asyncio
import logging
import random
from typing import Optional

logger = logging.getLogger(__name__)


class SheetThrottle:
    """
    Sequential, per-invocation delay between sheet loads.
    Not a global limiter: concurrent builds each sleep on their own.
    """

    def __init__(self, min_delay: float = 0.2, max_delay: float = 0.6, rng: Optional[random.Random] = None):
        """
        Args:
            min_delay: Lower bound of the delay, seconds
            max_delay: Upper bound of the delay, seconds. 0 disables throttling.
        """
        if max_delay < min_delay:
            raise ValueError("max_delay must be >= min_delay")
        self.min_delay = min_delay
        self.max_delay = max_delay
        self._rng = rng or random.Random()

    def next_delay(self) -> float:
        return self._rng.uniform(self.min_delay, self.max_delay)

    async def wait(self) -> None:
        """Sleep before the next sheet load."""
        if not self.max_delay:
            return
        delay = self.next_delay()
        logger.debug(f"Sheet throttle: waiting {delay:.3f} seconds")
        await asyncio.sleep(delay)
