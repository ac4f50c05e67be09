"""
Tests for GPS acquisition: buffering, rate measurement and tracking
"""

import asyncio

import pytest

from conftest import FakePositionSource, make_samples, wait_until
from exceptions import AcquisitionError, TransientReadError, UnsupportedCapabilityError
from gps_tracker import GpsTracker, ReplayPositionSource, SampleBuffer, SampleRateMeter
from samples import RawSample


class TestSampleBuffer:

    def test_repeat_of_last_fix_is_dropped(self):
        buffer = SampleBuffer()
        first, repeat, later = make_samples((1, 1000), (1, 1000), (2, 1100))

        assert buffer.offer(first)
        assert not buffer.offer(repeat)
        assert buffer.offer(later)
        assert buffer.samples == [first, later]

    def test_out_of_order_samples_are_kept(self):
        buffer = SampleBuffer()
        for sample in make_samples((1, 1000), (3, 1200), (2, 1100)):
            buffer.offer(sample)

        assert [s.timestamp_ms for s in buffer.samples] == [1000, 1200, 1100]

    def test_only_the_latest_timestamp_is_compared(self):
        buffer = SampleBuffer()
        for sample in make_samples((1, 1000), (2, 1100), (1, 1000)):
            buffer.offer(sample)

        assert len(buffer) == 3

    def test_clear(self):
        buffer = SampleBuffer()
        buffer.offer(RawSample(speed=1, timestamp_ms=1))
        buffer.clear()

        assert len(buffer) == 0
        assert buffer.latest is None


class FakeClock:

    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestSampleRateMeter:

    def test_rate_is_difference_of_cumulative_counts(self):
        clock = FakeClock()
        meter = SampleRateMeter(clock=clock)

        clock.now = 0.5
        assert meter.update(4) == 0  # window not elapsed yet

        clock.now = 1.0
        assert meter.update(9) == 9

        clock.now = 2.1
        assert meter.update(17) == 8

    def test_history_keeps_last_five_counts(self):
        clock = FakeClock()
        meter = SampleRateMeter(clock=clock)

        for second in range(1, 9):
            clock.now = float(second)
            meter.update(second * 10)

        assert meter.history == [40, 50, 60, 70, 80]
        assert meter.rate == 10

    def test_reset(self):
        clock = FakeClock()
        meter = SampleRateMeter(clock=clock)
        clock.now = 1.0
        meter.update(10)

        meter.reset()

        assert meter.rate == 0
        assert meter.history == []


class TestGpsTracker:

    def test_unsupported_source_raises(self):
        tracker = GpsTracker(FakePositionSource(supported=False))

        with pytest.raises(UnsupportedCapabilityError):
            tracker.start()
        assert tracker.error is not None
        assert not tracker.is_tracking

    def test_both_feeds_merge_without_duplicates(self):
        first, second, third = make_samples((5, 1000), (6, 1100), (7, 1200))
        source = FakePositionSource(poll_results=[first, second])

        async def scenario():
            tracker = GpsTracker(source, poll_interval=0.001)
            tracker.start()
            source.emit(first)
            await wait_until(lambda: not source.poll_results)
            source.emit(second, third)
            await asyncio.sleep(0.005)
            tracker.stop()
            return tracker

        tracker = asyncio.run(scenario())

        assert tracker.samples == [first, second, third]
        assert tracker.latest == third
        assert tracker.speed_kmh == round(7 * 3.6)
        assert tracker.accuracy_m == 5.0

    def test_failed_polls_do_not_stop_polling(self):
        sample = RawSample(speed=3, timestamp_ms=500)
        source = FakePositionSource(poll_results=[
            TransientReadError("timeout"),
            AcquisitionError("position unavailable"),
            sample,
        ])

        async def scenario():
            tracker = GpsTracker(source, poll_interval=0.001)
            tracker.start()
            await wait_until(lambda: tracker.sample_count == 1)
            assert tracker.is_tracking
            tracker.stop()
            return tracker

        tracker = asyncio.run(scenario())

        assert source.poll_calls >= 3
        assert tracker.samples == [sample]
        assert tracker.error is None

    @pytest.mark.parametrize("failure", [asyncio.TimeoutError(), OSError("device busy")])
    def test_unexpected_poll_failure_keeps_polling(self, failure):
        sample = RawSample(speed=4, timestamp_ms=700)
        source = FakePositionSource(poll_results=[failure, sample])

        async def scenario():
            tracker = GpsTracker(source, poll_interval=0.001)
            tracker.start()
            await wait_until(lambda: tracker.sample_count == 1)
            poll_running = not tracker._poll_task.done()
            tracker.stop()
            return tracker, poll_running

        tracker, poll_running = asyncio.run(scenario())

        assert poll_running
        assert source.poll_calls >= 2
        assert tracker.samples == [sample]

    def test_displayed_speed_rounds_halves_up(self):
        source = FakePositionSource()

        async def scenario():
            tracker = GpsTracker(source, poll_interval=0.001)
            tracker.start()
            source.emit(RawSample(speed=1.25, timestamp_ms=100))
            tracker.stop()
            return tracker

        tracker = asyncio.run(scenario())

        assert tracker.latest.speed_kmh == pytest.approx(4.5)
        assert tracker.speed_kmh == 5

    def test_watch_errors(self):
        source = FakePositionSource()

        async def scenario():
            tracker = GpsTracker(source, poll_interval=0.001)
            tracker.start()
            source.fail(TransientReadError("blip"))
            assert tracker.error is None
            source.fail(AcquisitionError("User denied Geolocation"))
            assert tracker.is_tracking
            tracker.stop()
            return tracker

        tracker = asyncio.run(scenario())

        assert tracker.error == "GPS Error: User denied Geolocation"

    def test_stop_releases_both_feeds(self):
        source = FakePositionSource()

        async def scenario():
            tracker = GpsTracker(source, poll_interval=0.001)
            tracker.start()
            await asyncio.sleep(0.005)
            tracker.stop()
            calls = source.poll_calls
            source.emit(RawSample(speed=1, timestamp_ms=1))
            await asyncio.sleep(0.01)
            return tracker, calls

        tracker, calls_at_stop = asyncio.run(scenario())

        assert source.watchers == {}
        assert source.cleared == [1]
        assert source.poll_calls == calls_at_stop
        assert tracker.sample_count == 0
        assert not tracker.is_tracking

    def test_stop_twice_is_harmless(self):
        source = FakePositionSource()

        async def scenario():
            tracker = GpsTracker(source)
            tracker.start()
            tracker.stop()
            tracker.stop()

        asyncio.run(scenario())

        assert source.cleared == [1]

    def test_restart_clears_previous_samples(self):
        source = FakePositionSource()

        async def scenario():
            tracker = GpsTracker(source, poll_interval=0.001)
            tracker.start()
            source.emit(*make_samples((1, 100), (2, 200)))
            tracker.stop()
            tracker.start()
            count = tracker.sample_count
            tracker.stop()
            return count

        assert asyncio.run(scenario()) == 0

    def test_replay_source_feeds_recorded_run(self):
        recorded = make_samples((0, 0), (10, 1000), (20, 2000))

        async def scenario():
            tracker = GpsTracker(ReplayPositionSource(recorded), poll_interval=0.001)
            tracker.start()
            await wait_until(lambda: tracker.sample_count == len(recorded))
            tracker.stop()
            return tracker

        tracker = asyncio.run(scenario())

        assert tracker.samples == recorded
