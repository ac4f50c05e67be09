"""
Loading recorded GPS sample logs and exporting power curves
"""

from typing import List, Sequence

from samples import DerivedPoint, RawSample

# Lazy imports for heavy dependencies
def _import_pandas():
    import pandas as pd
    return pd


REQUIRED_COLUMNS = ['speed', 'timestamp']
OPTIONAL_COLUMNS = ['latitude', 'longitude', 'accuracy']


def load_sample_log(csv_path: str) -> List[RawSample]:
    """
    Load a recorded run from CSV

    Expected columns: speed (m/s), timestamp (ms), and optionally latitude,
    longitude and accuracy (m). Rows keep their file order, since arrival order
    is what the power calculation works on.

    Args:
        csv_path: Path to the CSV log

    Returns:
        List of RawSample
    """
    pd = _import_pandas()
    try:
        data = pd.read_csv(csv_path)
    except Exception as e:
        raise ValueError(f"Error loading sample log: {e}")

    # Clean column names
    data.columns = [str(col).strip().strip('"').strip().lower() for col in data.columns]

    missing = [col for col in REQUIRED_COLUMNS if col not in data.columns]
    if missing:
        raise ValueError(f"Required columns {missing} not found in {csv_path}")

    for col in REQUIRED_COLUMNS + OPTIONAL_COLUMNS:
        if col in data.columns:
            data[col] = pd.to_numeric(data[col], errors='coerce')
        else:
            data[col] = 0.0

    # No timestamp means the row can't be placed in time at all
    data = data.dropna(subset=['timestamp']).copy()
    data['speed'] = data['speed'].fillna(0.0)
    data[OPTIONAL_COLUMNS] = data[OPTIONAL_COLUMNS].fillna(0.0)

    return [
        RawSample(
            speed=float(row.speed),
            timestamp_ms=int(row.timestamp),
            latitude=float(row.latitude),
            longitude=float(row.longitude),
            accuracy_m=float(row.accuracy),
        )
        for row in data.itertuples(index=False)
    ]


def curve_to_frame(points: Sequence[DerivedPoint]) -> 'pd.DataFrame':
    """Power curve as a DataFrame with time, speed, power and torque columns"""
    pd = _import_pandas()
    return pd.DataFrame(
        [[p.elapsed_s, p.speed_kmh, p.power_hp, p.torque_nm] for p in points],
        columns=['time', 'speed', 'power', 'torque'],
    )
