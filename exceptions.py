"""
Custom exceptions for GPS dyno runs.

Only acquisition and persistence failures are represented here: degenerate
samples are handled inside the power calculation and never raise.
"""


class DynoError(Exception):
    """Base exception for all dyno errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class AcquisitionError(DynoError):
    """The position source failed permanently."""

    pass


class UnsupportedCapabilityError(AcquisitionError):
    """The position source is not available on this device."""

    def __init__(self, message: str = 'Geolocation is not supported', source: str = None):
        details = {}
        if source:
            details['source'] = source
        super().__init__(message, details)
        self.source = source


class TransientReadError(AcquisitionError):
    """A single position read failed. The run carries on."""

    pass


class PersistenceError(DynoError):
    """Saved test runs could not be written."""

    def __init__(self, message: str, path: str = None):
        details = {}
        if path:
            details['path'] = path
        super().__init__(message, details)
        self.path = path
