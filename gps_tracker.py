"""
GPS acquisition: position sources, sample buffering and tracking
"""

import asyncio
import logging
import math
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, List, Optional, Sequence

from constants import DynoConstants
from exceptions import AcquisitionError, TransientReadError, UnsupportedCapabilityError
from samples import RawSample

logger = logging.getLogger(__name__)

SampleCallback = Callable[[RawSample], None]
ErrorCallback = Callable[[AcquisitionError], None]


class PositionSource(ABC):
    """
    Where the samples come from

    A source offers a continuous watch (callback driven) and one-off reads.
    Errors on the watch are passed to on_error; get_current_position raises
    TransientReadError when a single read fails.
    """

    @abstractmethod
    def is_supported(self) -> bool:
        ...

    @abstractmethod
    def watch_position(self, on_sample: SampleCallback, on_error: ErrorCallback) -> Any:
        """Subscribe to position updates and return a handle for clear_watch"""

    @abstractmethod
    def clear_watch(self, handle: Any) -> None:
        ...

    @abstractmethod
    async def get_current_position(self) -> RawSample:
        ...


class ReplayPositionSource(PositionSource):
    """Feeds a recorded run back through the watch callback"""

    def __init__(self, samples: Sequence[RawSample], interval: float = 0.0):
        self.samples = list(samples)
        self.interval = interval
        self._tasks = {}
        self._next_handle = 1
        self._last: Optional[RawSample] = None

    def is_supported(self) -> bool:
        return True

    def watch_position(self, on_sample: SampleCallback, on_error: ErrorCallback) -> int:
        handle = self._next_handle
        self._next_handle += 1
        self._tasks[handle] = asyncio.get_running_loop().create_task(self._replay(on_sample))
        return handle

    def clear_watch(self, handle: int) -> None:
        task = self._tasks.pop(handle, None)
        if task is not None:
            task.cancel()

    async def get_current_position(self) -> RawSample:
        if self._last is None:
            raise TransientReadError("No position replayed yet")
        return self._last

    async def _replay(self, on_sample: SampleCallback) -> None:
        for sample in self.samples:
            await asyncio.sleep(self.interval)
            self._last = sample
            on_sample(sample)


class SampleBuffer:
    """
    Single ingestion point for both GPS feeds

    A sample carrying the same timestamp as the last accepted one is a repeat
    of that fix and is dropped. Out-of-order samples are kept; the power
    calculation skips them.
    """

    def __init__(self):
        self._samples: List[RawSample] = []

    def __len__(self) -> int:
        return len(self._samples)

    @property
    def samples(self) -> List[RawSample]:
        return list(self._samples)

    @property
    def latest(self) -> Optional[RawSample]:
        return self._samples[-1] if self._samples else None

    def offer(self, sample: RawSample) -> bool:
        if self._samples and self._samples[-1].timestamp_ms == sample.timestamp_ms:
            return False
        self._samples.append(sample)
        return True

    def clear(self) -> None:
        self._samples = []


class SampleRateMeter:
    """Samples accepted per second, from differences of cumulative counts"""

    def __init__(self, window_seconds: float = DynoConstants.RATE_WINDOW_SECONDS,
                 history_size: int = DynoConstants.RATE_HISTORY_SIZE,
                 clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self.history_size = history_size
        self.clock = clock
        self.rate = 0
        self.history: List[int] = []
        self._last_update = clock()

    def reset(self) -> None:
        self.rate = 0
        self.history = []
        self._last_update = self.clock()

    def update(self, sample_count: int) -> int:
        now = self.clock()
        if now - self._last_update >= self.window_seconds:
            previous = self.history[-1] if self.history else 0
            self.rate = sample_count - previous
            self.history.append(sample_count)
            self._last_update = now
            if len(self.history) > self.history_size:
                self.history.pop(0)
        return self.rate


class GpsTracker:
    """
    Runs the watch subscription and the fixed-rate poll for one recording

    Both feeds write into the same SampleBuffer. stop() always releases the
    watch and the poll task, and is safe to call more than once.
    """

    def __init__(self, source: PositionSource,
                 poll_interval: float = DynoConstants.POLL_INTERVAL_SECONDS,
                 rate_meter: Optional[SampleRateMeter] = None):
        self.source = source
        self.poll_interval = poll_interval
        self.rate_meter = rate_meter or SampleRateMeter()
        self.buffer = SampleBuffer()
        self.error: Optional[str] = None
        self._watch_handle: Any = None
        self._poll_task: Optional[asyncio.Task] = None

    @property
    def is_tracking(self) -> bool:
        return self._watch_handle is not None or self._poll_task is not None

    @property
    def samples(self) -> List[RawSample]:
        return self.buffer.samples

    @property
    def sample_count(self) -> int:
        return len(self.buffer)

    @property
    def latest(self) -> Optional[RawSample]:
        return self.buffer.latest

    @property
    def speed_kmh(self) -> int:
        latest = self.latest
        # Halves round up
        return math.floor(latest.speed_kmh + 0.5) if latest is not None else 0

    @property
    def accuracy_m(self) -> Optional[float]:
        latest = self.latest
        return latest.accuracy_m if latest is not None else None

    @property
    def sample_rate(self) -> int:
        return self.rate_meter.rate

    def start(self) -> None:
        """
        Begin a fresh recording

        Raises:
            UnsupportedCapabilityError: if the source can't provide positions
        """
        if not self.source.is_supported():
            self.error = 'Geolocation is not supported by this device'
            raise UnsupportedCapabilityError(self.error, source=type(self.source).__name__)

        self.stop()
        self.error = None
        self.buffer.clear()
        self.rate_meter.reset()

        self._watch_handle = self.source.watch_position(self._ingest, self._on_watch_error)
        self._poll_task = asyncio.get_running_loop().create_task(self._poll())
        logger.info("GPS tracking started (poll every %.0f ms)", self.poll_interval * 1000)

    def stop(self) -> None:
        if self._watch_handle is not None:
            self.source.clear_watch(self._watch_handle)
            self._watch_handle = None
        if self._poll_task is not None:
            self._poll_task.cancel()
            self._poll_task = None
            logger.info("GPS tracking stopped with %d samples", len(self.buffer))
        self.rate_meter.reset()

    def _ingest(self, sample: RawSample) -> None:
        if not self.buffer.offer(sample):
            return
        self.rate_meter.update(len(self.buffer))

    def _on_watch_error(self, error: AcquisitionError) -> None:
        if isinstance(error, TransientReadError):
            logger.debug("Ignoring transient watch error: %s", error)
            return
        self.error = f"GPS Error: {error}"
        logger.error(self.error)

    async def _poll(self) -> None:
        while True:
            try:
                sample = await self.source.get_current_position()
            except Exception as e:
                # A missed poll is made up by the next one or by the watch
                logger.debug("Poll read failed: %s", e)
            else:
                self._ingest(sample)
            await asyncio.sleep(self.poll_interval)
