"""
Cancellable countdown timer used before a recording starts
"""

import asyncio
import logging
from typing import Callable, Optional

from constants import DynoConstants

logger = logging.getLogger(__name__)


class Countdown:
    """
    Counts down a fixed number of ticks on the running event loop

    on_tick receives the ticks left after each tick; on_finished runs once the
    count reaches zero. After cancel() neither callback fires again.
    """

    def __init__(self, ticks: int = DynoConstants.COUNTDOWN_TICKS,
                 tick_seconds: float = DynoConstants.COUNTDOWN_TICK_SECONDS,
                 on_tick: Optional[Callable[[int], None]] = None,
                 on_finished: Optional[Callable[[], None]] = None):
        if ticks < 0:
            raise ValueError(f"Countdown ticks must not be negative, got {ticks}")
        self.ticks = ticks
        self.tick_seconds = tick_seconds
        self.on_tick = on_tick
        self.on_finished = on_finished
        self.remaining: Optional[int] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start (or restart) the countdown. Must be called from the event loop."""
        self.cancel()
        self.remaining = self.ticks
        self._task = asyncio.get_running_loop().create_task(self._run())

    def cancel(self) -> None:
        if self.active:
            self._task.cancel()
            logger.debug("Countdown cancelled with %s ticks left", self.remaining)
        self._task = None
        self.remaining = None

    async def _run(self) -> None:
        while self.remaining:
            await asyncio.sleep(self.tick_seconds)
            self.remaining -= 1
            if self.on_tick is not None:
                self.on_tick(self.remaining)

        if self.remaining is None:
            # cancelled from inside on_tick
            return

        # Clear before the callback so it may start another countdown
        self._task = None
        self.remaining = None
        if self.on_finished is not None:
            self.on_finished()
