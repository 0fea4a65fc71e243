import math

import pytest

from core.errors import DegenerateCalibrationError
from dose import normalize_percent, resolve_reference_dose


@pytest.mark.parametrize("normalization, expected", [
    (100.0, 60.0),
    (math.nan, 60.0),
    (1.0, 60.0),
    (0.0, 60.0),
    (-5.0, 60.0),
    (95.0, 57.0),
])
def test_reference_dose(normalization, expected):
    assert resolve_reference_dose(60.0, normalization) == pytest.approx(expected)


def test_fractional_normalization_is_rescaled():
    assert normalize_percent(0.95) == pytest.approx(95.0)
    assert normalize_percent(5.0) == 5.0


def test_tiny_reference_falls_back_to_prescription():
    # 0.05 Gy * 100% is below the plausibility floor
    assert resolve_reference_dose(0.05, 100.0) == pytest.approx(0.05)
    assert resolve_reference_dose(1.0, 5.0) == pytest.approx(1.0)


@pytest.mark.parametrize("prescription", [math.nan, math.inf, 0.0, -10.0])
def test_invalid_prescription_raises(prescription):
    with pytest.raises(DegenerateCalibrationError):
        resolve_reference_dose(prescription, 100.0)
