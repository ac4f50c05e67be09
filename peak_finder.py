"""
Peak power and torque extraction
"""

from dataclasses import dataclass
from typing import Sequence, Tuple

from samples import DerivedPoint


@dataclass(frozen=True)
class PeakDetails:
    """Peak values and where in the run they happened"""
    max_power_hp: float = 0.0
    max_torque_nm: float = 0.0
    speed_at_max_power_kmh: float = 0.0
    speed_at_max_torque_kmh: float = 0.0
    time_at_max_power_s: float = 0.0
    time_at_max_torque_s: float = 0.0


def find_peaks(points: Sequence[DerivedPoint]) -> Tuple[float, float]:
    """
    Find peak power and peak torque

    The two maxima are tracked independently; like on a rolling-road chart
    they usually land at different speeds.

    Returns:
        Tuple of (max_power_hp, max_torque_nm), (0.0, 0.0) for no points
    """
    max_power = 0.0
    max_torque = 0.0
    for point in points:
        max_power = max(max_power, point.power_hp)
        max_torque = max(max_torque, point.torque_nm)
    return max_power, max_torque


def peak_details(points: Sequence[DerivedPoint]) -> PeakDetails:
    """Peaks plus the speed and time of the first point reaching each one"""
    if not points:
        return PeakDetails()

    power_point = max(points, key=lambda p: p.power_hp)
    torque_point = max(points, key=lambda p: p.torque_nm)
    max_power, max_torque = find_peaks(points)

    return PeakDetails(
        max_power_hp=max_power,
        max_torque_nm=max_torque,
        speed_at_max_power_kmh=power_point.speed_kmh,
        speed_at_max_torque_kmh=torque_point.speed_kmh,
        time_at_max_power_s=power_point.elapsed_s,
        time_at_max_torque_s=torque_point.elapsed_s,
    )
