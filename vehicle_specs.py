"""
Vehicle specifications for power calculations
"""

import math
from dataclasses import dataclass, replace

from constants import DynoConstants


@dataclass
class Vehicle:
    """Vehicle specifications for power calculations"""
    mass_kg: float = DynoConstants.DEFAULT_MASS_KG
    name: str = DynoConstants.DEFAULT_VEHICLE_NAME

    def __post_init__(self):
        if not math.isfinite(self.mass_kg) or self.mass_kg <= 0:
            raise ValueError(f"Vehicle mass must be a positive number of kg, got {self.mass_kg}")

    def snapshot(self) -> 'Vehicle':
        """Copy taken when a run is saved so later edits don't leak into it"""
        return replace(self)

    def to_dict(self) -> dict:
        return {'mass': self.mass_kg, 'name': self.name}

    @classmethod
    def from_dict(cls, record: dict) -> 'Vehicle':
        return cls(mass_kg=float(record['mass']), name=str(record.get('name', '')))
