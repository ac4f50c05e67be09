"""
Plain-text report for a saved dyno run
"""

from peak_finder import peak_details
from run_store import TestRun


def generate_report(test_run: TestRun) -> str:
    """Generate a text report of a saved run"""
    if not test_run.data:
        return "No power data recorded for this run."

    peaks = peak_details(test_run.data)
    duration = test_run.data[-1].elapsed_s

    report = ["GPS Power and Torque Report", "=" * 40, ""]

    report.extend([
        "Vehicle:",
        f"  Name: {test_run.vehicle.name}",
        f"  Mass: {test_run.vehicle.mass_kg:.0f} kg",
        "",
        f"Run {test_run.id}",
        f"  Date: {test_run.date}",
        f"  Data points: {len(test_run.data)} over {duration:.1f} seconds",
        f"  Max Power: {test_run.max_power_hp:.1f} HP @ {peaks.speed_at_max_power_kmh:.0f} km/h "
        f"({peaks.time_at_max_power_s:.1f}s)",
        f"  Max Torque: {test_run.max_torque_nm:.1f} Nm @ {peaks.speed_at_max_torque_kmh:.0f} km/h "
        f"({peaks.time_at_max_torque_s:.1f}s)",
    ])

    return "\n".join(report)
