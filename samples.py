"""
Raw GPS samples and the derived power curve points
"""

import math
from dataclasses import dataclass
from typing import Optional

from constants import DynoConstants


def _speed_or_zero(speed: Optional[float]) -> float:
    # Receivers report no speed until they have a fix
    if speed is None:
        return 0.0
    speed = float(speed)
    if math.isnan(speed) or speed < 0:
        return 0.0
    return speed


@dataclass(frozen=True)
class RawSample:
    """One position fix as delivered by the position source"""
    speed: float  # m/s
    timestamp_ms: int
    latitude: float = 0.0
    longitude: float = 0.0
    accuracy_m: float = 0.0

    def __post_init__(self):
        object.__setattr__(self, 'speed', _speed_or_zero(self.speed))
        object.__setattr__(self, 'timestamp_ms', int(self.timestamp_ms))

    @property
    def speed_kmh(self) -> float:
        return self.speed * DynoConstants.MS_TO_KMH


@dataclass(frozen=True)
class DerivedPoint:
    """One point of the power curve, computed from a pair of consecutive samples"""
    power_hp: float
    torque_nm: float
    speed_kmh: float
    elapsed_s: float  # seconds since the first raw sample

    def to_dict(self) -> dict:
        return {
            'power': self.power_hp,
            'torque': self.torque_nm,
            'speed': self.speed_kmh,
            'time': self.elapsed_s,
        }

    @classmethod
    def from_dict(cls, record: dict) -> 'DerivedPoint':
        return cls(
            power_hp=float(record['power']),
            torque_nm=float(record['torque']),
            speed_kmh=float(record['speed']),
            elapsed_s=float(record['time']),
        )
