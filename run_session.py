"""
Run session: countdown, recording, processing and saving of one dyno run
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from constants import DynoConstants
from countdown import Countdown
from exceptions import AcquisitionError, PersistenceError
from gps_tracker import GpsTracker, PositionSource
from peak_finder import find_peaks
from power_calculator import calculate_power
from run_store import InMemoryRepository, TestRun, TestRunRepository, generate_run_id, utc_timestamp
from samples import DerivedPoint
from vehicle_specs import Vehicle

logger = logging.getLogger(__name__)


class RunStatus(Enum):
    IDLE = 'idle'
    READY = 'ready'
    RECORDING = 'recording'
    PROCESSING = 'processing'
    COMPLETE = 'complete'


@dataclass
class SessionSummary:
    """What a display needs to show for the current session"""
    status: RunStatus
    countdown: Optional[int]
    speed_kmh: int
    sample_count: int
    sample_rate: int
    accuracy_m: Optional[float]
    error: Optional[str]
    data: List[DerivedPoint] = field(default_factory=list)
    max_power_hp: float = 0.0
    max_torque_nm: float = 0.0


class RunSession:
    """
    Sequences one dyno run at a time on the asyncio event loop

    start -> countdown -> recording -> stop -> processing -> complete -> save.
    Every method is meant to be called from the loop's thread; start() needs a
    running loop for the countdown.
    """

    def __init__(self, source: PositionSource,
                 repository: Optional[TestRunRepository] = None,
                 vehicle: Optional[Vehicle] = None,
                 countdown_ticks: int = DynoConstants.COUNTDOWN_TICKS,
                 tick_seconds: float = DynoConstants.COUNTDOWN_TICK_SECONDS,
                 poll_interval: float = DynoConstants.POLL_INTERVAL_SECONDS):
        self.repository = repository if repository is not None else InMemoryRepository()
        self.vehicle = vehicle or Vehicle()
        self.tracker = GpsTracker(source, poll_interval=poll_interval)
        self.countdown = Countdown(countdown_ticks, tick_seconds, on_finished=self._begin_recording)
        self.current_test: List[DerivedPoint] = []
        self.error: Optional[str] = None
        self._status = RunStatus.IDLE

    @property
    def status(self) -> RunStatus:
        return self._status

    def _set_status(self, status: RunStatus) -> None:
        if status is not self._status:
            logger.info("Run status %s -> %s", self._status.value, status.value)
        self._status = status

    @property
    def saved_runs(self) -> List[TestRun]:
        return self.repository.load_all()

    def update_vehicle(self, vehicle: Vehicle) -> None:
        self.vehicle = vehicle

    def start(self) -> bool:
        """
        Arm a new run. Only allowed from idle or complete.

        Returns:
            True if the countdown started
        """
        if self._status not in (RunStatus.IDLE, RunStatus.COMPLETE):
            return False

        if not self.tracker.source.is_supported():
            self.error = 'Geolocation is not supported by this device'
            logger.error(self.error)
            return False

        self.error = None
        self.tracker.error = None
        self.current_test = []
        self._set_status(RunStatus.READY)
        self.countdown.start()
        return True

    def _begin_recording(self) -> None:
        if self._status is not RunStatus.READY:
            return
        try:
            self.tracker.start()
        except AcquisitionError as e:
            self.tracker.stop()
            self.error = e.message
            logger.error("Could not start recording: %s", e)
            self._set_status(RunStatus.IDLE)
            return
        self._set_status(RunStatus.RECORDING)

    def stop(self) -> List[DerivedPoint]:
        """Finish recording and calculate the power curve. No-op unless recording."""
        if self._status is not RunStatus.RECORDING:
            return self.current_test

        self.tracker.stop()
        self._set_status(RunStatus.PROCESSING)

        samples = self.tracker.samples
        self.current_test = calculate_power(samples, self.vehicle)
        logger.info("Calculated %d power points from %d samples", len(self.current_test), len(samples))

        self._set_status(RunStatus.COMPLETE)
        return self.current_test

    def reset(self) -> None:
        self.countdown.cancel()
        self.tracker.stop()
        self.current_test = []
        self._set_status(RunStatus.IDLE)

    def save(self) -> Optional[TestRun]:
        """Store the completed run, newest first. No-op if there is nothing to save."""
        if self._status is not RunStatus.COMPLETE or not self.current_test:
            return None

        max_power, max_torque = find_peaks(self.current_test)
        run = TestRun(
            id=generate_run_id(),
            vehicle=self.vehicle.snapshot(),
            date=utc_timestamp(),
            max_power_hp=max_power,
            max_torque_nm=max_torque,
            data=list(self.current_test),
        )

        try:
            self.repository.add(run)
        except PersistenceError as e:
            self.error = e.message
            logger.error("Could not save run: %s", e)
            return None

        logger.info("Saved run %s: %.1f HP / %.1f Nm", run.id, max_power, max_torque)
        return run

    def delete_run(self, run_id: str) -> bool:
        try:
            return self.repository.delete(run_id)
        except PersistenceError as e:
            self.error = e.message
            logger.error("Could not delete run %s: %s", run_id, e)
            return False

    def summary(self) -> SessionSummary:
        max_power, max_torque = find_peaks(self.current_test)
        return SessionSummary(
            status=self._status,
            countdown=self.countdown.remaining,
            speed_kmh=self.tracker.speed_kmh,
            sample_count=self.tracker.sample_count,
            sample_rate=self.tracker.sample_rate,
            accuracy_m=self.tracker.accuracy_m,
            error=self.error or self.tracker.error,
            data=list(self.current_test),
            max_power_hp=max_power,
            max_torque_nm=max_torque,
        )

    def close(self) -> None:
        """Release the countdown and GPS subscriptions"""
        self.countdown.cancel()
        self.tracker.stop()

    async def __aenter__(self) -> 'RunSession':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.close()
