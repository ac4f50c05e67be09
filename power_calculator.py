"""
Power and torque calculation from GPS speed samples
"""

import numpy as np
from typing import List, Sequence, Tuple

from constants import DynoConstants
from samples import DerivedPoint, RawSample
from vehicle_specs import Vehicle


def resistive_forces(speed_ms: np.ndarray, mass_kg: float) -> Tuple[np.ndarray, np.ndarray]:
    """
    Rolling resistance and aerodynamic drag at the given speeds

    Args:
        speed_ms: Vehicle speeds in m/s
        mass_kg: Vehicle mass

    Returns:
        Tuple of (rolling_force_n, drag_force_n) arrays
    """
    rolling_force = np.full_like(speed_ms, DynoConstants.ROLLING_RESISTANCE * mass_kg * DynoConstants.GRAVITY_MS2)
    drag_force = (0.5 * DynoConstants.AIR_DENSITY_KG_M3 * DynoConstants.DRAG_COEFFICIENT *
                  DynoConstants.FRONTAL_AREA_M2 * speed_ms**2)
    return rolling_force, drag_force


def calculate_power(samples: Sequence[RawSample], vehicle: Vehicle) -> List[DerivedPoint]:
    """
    Calculate power and torque for every consecutive pair of samples

    Pairs whose timestamps don't move forward are skipped, which is what keeps
    out-of-order or duplicated fixes from the merged GPS feeds out of the curve.
    Negative power and torque (braking, lifting off) are clamped to zero.

    Args:
        samples: Raw samples in arrival order
        vehicle: Vehicle whose mass drives the force calculation

    Returns:
        List of DerivedPoint, at most len(samples) - 1 long
    """
    if len(samples) < 2:
        return []

    speed = np.array([s.speed for s in samples], dtype=float)
    timestamps = np.array([s.timestamp_ms for s in samples], dtype=float)

    delta_time = np.diff(timestamps) / 1000
    valid = delta_time > 0
    if not np.any(valid):
        return []

    prev_speed = speed[:-1][valid]
    current_speed = speed[1:][valid]
    acceleration = (current_speed - prev_speed) / delta_time[valid]

    mass_kg = vehicle.mass_kg
    rolling_force, drag_force = resistive_forces(current_speed, mass_kg)
    accel_force = mass_kg * acceleration
    total_force = rolling_force + drag_force + accel_force

    power_watts = total_force * current_speed
    power_hp = (power_watts / 1000) * DynoConstants.KW_TO_HP

    # P = T * w with w from an assumed wheel radius. A stopped car has no
    # angular velocity, so a small constant stands in for it.
    angular_velocity = np.where(current_speed > 0,
                                current_speed / DynoConstants.WHEEL_RADIUS_M,
                                DynoConstants.ZERO_SPEED_ANGULAR_VELOCITY)
    torque_nm = power_watts / angular_velocity

    power_hp = np.maximum(power_hp, 0)
    torque_nm = np.maximum(torque_nm, 0)

    elapsed_s = (timestamps[1:][valid] - timestamps[0]) / 1000
    speed_kmh = current_speed * DynoConstants.MS_TO_KMH

    return [
        DerivedPoint(power_hp=p, torque_nm=t, speed_kmh=v, elapsed_s=e)
        for p, t, v, e in zip(power_hp.tolist(), torque_nm.tolist(),
                              speed_kmh.tolist(), elapsed_s.tolist())
    ]
