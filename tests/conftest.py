"""
Pytest fixtures for GPS dyno tests.
"""

import asyncio
import os
import sys
from collections import deque

import pytest

# Add project root to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from exceptions import TransientReadError
from gps_tracker import PositionSource
from run_store import InMemoryRepository
from samples import RawSample
from vehicle_specs import Vehicle


class FakePositionSource(PositionSource):
    """Position source driven by the test: emit() pushes watch samples, polls pop from a queue"""

    def __init__(self, supported=True, poll_results=None):
        self.supported = supported
        self.poll_results = deque(poll_results or [])
        self.poll_calls = 0
        self.watchers = {}
        self.cleared = []
        self._next_handle = 1

    def is_supported(self):
        return self.supported

    def watch_position(self, on_sample, on_error):
        handle = self._next_handle
        self._next_handle += 1
        self.watchers[handle] = (on_sample, on_error)
        return handle

    def clear_watch(self, handle):
        self.watchers.pop(handle, None)
        self.cleared.append(handle)

    async def get_current_position(self):
        self.poll_calls += 1
        if not self.poll_results:
            raise TransientReadError("no fix")
        result = self.poll_results.popleft()
        if isinstance(result, Exception):
            raise result
        return result

    def emit(self, *samples):
        for sample in samples:
            for on_sample, _ in list(self.watchers.values()):
                on_sample(sample)

    def fail(self, error):
        for _, on_error in list(self.watchers.values()):
            on_error(error)


async def wait_until(condition, timeout=2.0):
    """Yield to the event loop until condition() holds"""
    async def _poll():
        while not condition():
            await asyncio.sleep(0.001)
    await asyncio.wait_for(_poll(), timeout)


def make_samples(*pairs):
    """Build samples from (speed_ms, timestamp_ms) pairs"""
    return [RawSample(speed=speed, timestamp_ms=t, accuracy_m=5.0) for speed, t in pairs]


@pytest.fixture
def source():
    return FakePositionSource()


@pytest.fixture
def repository():
    return InMemoryRepository()


@pytest.fixture
def vehicle():
    return Vehicle(mass_kg=1500, name='Test Car')


@pytest.fixture
def acceleration_run():
    """Steady 10 m/s² pull sampled once a second"""
    return make_samples((0, 0), (10, 1000), (20, 2000))
