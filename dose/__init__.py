"""
Dose Package

Raw-to-Gray calibration, reference dose resolution and isodose
classification.
"""

from .conversion import (
    DoseProbe,
    DoseCalibration,
    calibrate,
    calibrate_from_source,
    prescription_to_gray,
    unit_to_gray_factor,
)
from .reference import resolve_reference_dose, normalize_percent
from .isodose import IsodoseBand, IsodoseClassifier, is_near_band

__all__ = [
    'DoseProbe',
    'DoseCalibration',
    'calibrate',
    'calibrate_from_source',
    'prescription_to_gray',
    'unit_to_gray_factor',
    'resolve_reference_dose',
    'normalize_percent',
    'IsodoseBand',
    'IsodoseClassifier',
    'is_near_band',
]
