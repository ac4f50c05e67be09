"""
Constants and session parameters for GPS power estimation
"""


class DynoConstants:
    """Constants used throughout the power estimation"""

    # Physics constants
    GRAVITY_MS2 = 9.81
    AIR_DENSITY_KG_M3 = 1.225
    DRAG_COEFFICIENT = 0.3
    FRONTAL_AREA_M2 = 2.2
    ROLLING_RESISTANCE = 0.015
    WHEEL_RADIUS_M = 0.3
    KW_TO_HP = 1.34102
    MS_TO_KMH = 3.6

    # Used in place of speed / radius when the car is stationary
    ZERO_SPEED_ANGULAR_VELOCITY = 0.1

    # Vehicle defaults
    DEFAULT_MASS_KG = 1500
    DEFAULT_VEHICLE_NAME = 'My Vehicle'

    # Session defaults
    COUNTDOWN_TICKS = 3
    COUNTDOWN_TICK_SECONDS = 1.0
    POLL_INTERVAL_SECONDS = 0.1  # 10 Hz

    # Sample rate display
    RATE_WINDOW_SECONDS = 1.0
    RATE_HISTORY_SIZE = 5

    # Persistence
    SAVED_TESTS_COLLECTION = 'dyno-saved-tests'
