"""
Dose Value Conversion

Converts raw integer dose-grid samples to physical dose in Gray.

The linear calibration is derived from two widely separated probe values
(raw 0 and raw 10000 by default). Deriving the scale from adjacent raw values
loses precision to floating-point cancellation and gives clinically wrong
doses near the top of the raw range.
"""

from dataclasses import dataclass
import logging
import math
from typing import Union
import numpy as np

from core.base import DoseUnit, DoseValueSource
from core.errors import DegenerateCalibrationError


@dataclass(frozen=True)
class DoseProbe:
    """One raw -> physical lookup."""
    raw: int
    value: float
    unit: DoseUnit


@dataclass(frozen=True)
class DoseCalibration:
    """
    Linear raw -> Gray conversion.

    Attributes:
        scale: Physical units per raw step
        offset: Physical value at raw 0
        unit_to_gray: Multiplier from the native unit to Gray
    """
    scale: float
    offset: float
    unit_to_gray: float

    def to_physical(self, raw: Union[int, np.ndarray]) -> Union[float, np.ndarray]:
        """Raw value(s) in the source's native unit."""
        return raw * self.scale + self.offset

    def to_physical_gray(self, raw: Union[int, np.ndarray]) -> Union[float, np.ndarray]:
        """Raw value(s) in Gray."""
        if isinstance(raw, np.ndarray):
            raw = raw.astype(np.float64)
        return (raw * self.scale + self.offset) * self.unit_to_gray


def unit_to_gray_factor(unit: DoseUnit, prescription_gy: float) -> float:
    """Multiplier converting ``unit`` to Gray."""
    if unit == DoseUnit.PERCENT:
        return prescription_gy / 100.0
    if unit == DoseUnit.CGY:
        return 0.01
    return 1.0


def prescription_to_gray(value: float, unit: DoseUnit) -> float:
    """Normalise a prescribed total dose to Gray."""
    if unit == DoseUnit.CGY:
        return value / 100.0
    if unit == DoseUnit.PERCENT:
        raise DegenerateCalibrationError("Prescription cannot be expressed as a percentage")
    return float(value)


def calibrate(probe_low: DoseProbe, probe_high: DoseProbe,
              prescription_gy: float) -> DoseCalibration:
    """
    Derive the linear calibration from two probes.

    Args:
        probe_low: Lookup at the low raw value (usually 0)
        probe_high: Lookup at the high raw value (usually 10000)
        prescription_gy: Total prescribed dose in Gy, used for percent units

    Returns:
        DoseCalibration

    Raises:
        DegenerateCalibrationError: If the probes cannot define a finite line
    """
    if probe_high.raw == probe_low.raw:
        raise DegenerateCalibrationError(
            f"Calibration probes share raw value {probe_low.raw}"
        )
    if not (math.isfinite(probe_low.value) and math.isfinite(probe_high.value)):
        raise DegenerateCalibrationError(
            f"Non-finite probe values: {probe_low.value}, {probe_high.value}"
        )
    if probe_low.unit != probe_high.unit:
        logging.warning(
            f"Calibration probe units differ ({probe_low.unit.value} vs "
            f"{probe_high.unit.value}); using {probe_high.unit.value}"
        )

    scale = (probe_high.value - probe_low.value) / (probe_high.raw - probe_low.raw)
    offset = probe_low.value - probe_low.raw * scale

    unit_to_gray = unit_to_gray_factor(probe_high.unit, prescription_gy)
    if not math.isfinite(unit_to_gray):
        raise DegenerateCalibrationError(
            f"Dose in {probe_high.unit.value} needs a finite prescription, got {prescription_gy}"
        )

    return DoseCalibration(scale=scale, offset=offset, unit_to_gray=unit_to_gray)


def calibrate_from_source(source: DoseValueSource, prescription_gy: float,
                          low_raw: int = 0, high_raw: int = 10000) -> DoseCalibration:
    """Probe a dose value source at two raw values and calibrate."""
    low_value, low_unit = source.voxel_to_physical(low_raw)
    high_value, high_unit = source.voxel_to_physical(high_raw)
    return calibrate(
        DoseProbe(low_raw, float(low_value), low_unit),
        DoseProbe(high_raw, float(high_value), high_unit),
        prescription_gy,
    )
