"""
Saved test runs and the repositories that keep them
"""

import json
import logging
import os
import tempfile
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Sequence

from constants import DynoConstants
from exceptions import PersistenceError
from samples import DerivedPoint
from vehicle_specs import Vehicle

logger = logging.getLogger(__name__)


def generate_run_id() -> str:
    return uuid.uuid4().hex


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class TestRun:
    """A completed and saved dyno run"""
    __test__ = False  # not a pytest class

    id: str
    vehicle: Vehicle
    date: str
    max_power_hp: float
    max_torque_nm: float
    data: List[DerivedPoint] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'vehicle': self.vehicle.to_dict(),
            'date': self.date,
            'maxPower': self.max_power_hp,
            'maxTorque': self.max_torque_nm,
            'data': [point.to_dict() for point in self.data],
        }

    @classmethod
    def from_dict(cls, record: dict) -> 'TestRun':
        return cls(
            id=str(record['id']),
            vehicle=Vehicle.from_dict(record['vehicle']),
            date=str(record['date']),
            max_power_hp=float(record['maxPower']),
            max_torque_nm=float(record['maxTorque']),
            data=[DerivedPoint.from_dict(point) for point in record.get('data', [])],
        )


class TestRunRepository:
    """
    Ordered collection of saved runs, newest first

    Subclasses provide load_all/save_all; add/delete/get are built on those.
    """
    __test__ = False

    def load_all(self) -> List[TestRun]:
        raise NotImplementedError

    def save_all(self, runs: Sequence[TestRun]) -> None:
        raise NotImplementedError

    def add(self, run: TestRun) -> None:
        self.save_all([run] + self.load_all())

    def delete(self, run_id: str) -> bool:
        runs = self.load_all()
        kept = [run for run in runs if run.id != run_id]
        if len(kept) == len(runs):
            return False
        self.save_all(kept)
        return True

    def get(self, run_id: str) -> Optional[TestRun]:
        for run in self.load_all():
            if run.id == run_id:
                return run
        return None


class InMemoryRepository(TestRunRepository):

    def __init__(self, runs: Optional[Sequence[TestRun]] = None):
        self._runs = list(runs or [])

    def load_all(self) -> List[TestRun]:
        return list(self._runs)

    def save_all(self, runs: Sequence[TestRun]) -> None:
        self._runs = list(runs)


class JsonFileRepository(TestRunRepository):
    """
    Runs stored in a JSON file as {collection_name: [record, ...]}

    Unreadable or missing files load as an empty collection. Writes go to a
    temporary file that replaces the original, so a failed write leaves the
    previous contents in place.
    """

    def __init__(self, path, collection: str = DynoConstants.SAVED_TESTS_COLLECTION):
        self.path = Path(path)
        self.collection = collection

    def _read_store(self) -> dict:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                store = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Could not read saved runs from %s: %s", self.path, e)
            return {}
        if not isinstance(store, dict):
            logger.warning("Ignoring malformed run store %s", self.path)
            return {}
        return store

    def load_all(self) -> List[TestRun]:
        records = self._read_store().get(self.collection, [])
        if not isinstance(records, list):
            logger.warning("Collection %r in %s is not a list", self.collection, self.path)
            return []
        try:
            return [TestRun.from_dict(record) for record in records]
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Discarding unreadable collection %r: %s", self.collection, e)
            return []

    def save_all(self, runs: Sequence[TestRun]) -> None:
        store = self._read_store()
        store[self.collection] = [run.to_dict() for run in runs]

        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(dir=self.path.parent, prefix=self.path.name, suffix='.tmp')
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(store, f, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistenceError(f"Error saving test runs: {e}", path=str(self.path))
        logger.debug("Wrote %d runs to %s", len(runs), self.path)
