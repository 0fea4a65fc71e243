"""
Core Package

Contains base data structures, abstract interfaces and the error taxonomy.
"""

from .errors import (
    IsodoseViewerError,
    MissingDataError,
    DataUnavailableError,
    OutOfRangeSliceError,
    DegenerateCalibrationError,
    HostIOError,
)
from .base import (
    DoseUnit,
    PlanInfo,
    VolumeSource,
    ArrayVolumeSource,
    DoseValueSource,
    LinearDoseValueSource,
    StudyData,
    DisplaySurface,
)

__all__ = [
    'IsodoseViewerError',
    'MissingDataError',
    'DataUnavailableError',
    'OutOfRangeSliceError',
    'DegenerateCalibrationError',
    'HostIOError',
    'DoseUnit',
    'PlanInfo',
    'VolumeSource',
    'ArrayVolumeSource',
    'DoseValueSource',
    'LinearDoseValueSource',
    'StudyData',
    'DisplaySurface',
]
