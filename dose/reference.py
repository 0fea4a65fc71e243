"""
Reference Dose

Resolves the physical dose (Gy) of the clinical 100% isodose line.
"""

import math

from core.errors import DegenerateCalibrationError


def normalize_percent(normalization_percent: float, rescale_below: float = 5.0) -> float:
    """
    Sanitise a plan normalization value into a percentage.

    Non-finite or non-positive values default to 100. Values below
    ``rescale_below`` are read as a fractional multiplier and scaled by 100,
    since some plan sources report 1.0 where 100% is meant.
    """
    if normalization_percent is None or not math.isfinite(normalization_percent) \
            or normalization_percent <= 0:
        return 100.0
    if normalization_percent < rescale_below:
        return normalization_percent * 100.0
    return float(normalization_percent)


def resolve_reference_dose(prescription_gy: float, normalization_percent: float,
                           min_reference_gy: float = 0.1,
                           rescale_below: float = 5.0) -> float:
    """
    Compute the 100% isodose value in Gray.

    Args:
        prescription_gy: Total prescribed dose in Gy
        normalization_percent: Plan normalization, nominally a percentage
        min_reference_gy: Implausibly small results fall back to the prescription
        rescale_below: Threshold under which normalization is a multiplier

    Returns:
        Reference dose in Gy

    Raises:
        DegenerateCalibrationError: If the prescription is not a finite positive dose
    """
    if prescription_gy is None or not math.isfinite(prescription_gy) or prescription_gy <= 0:
        raise DegenerateCalibrationError(f"Invalid prescription dose: {prescription_gy}")

    percent = normalize_percent(normalization_percent, rescale_below)
    reference_gy = prescription_gy * (percent / 100.0)
    if reference_gy < min_reference_gy:
        return float(prescription_gy)
    return reference_gy
