import math

import numpy as np
import pytest

from core.base import DoseUnit, LinearDoseValueSource
from core.errors import DegenerateCalibrationError
from dose import DoseProbe, calibrate, calibrate_from_source, prescription_to_gray


def test_gray_probes_give_unit_factor():
    cal = calibrate(DoseProbe(0, 0.0, DoseUnit.GY), DoseProbe(10000, 100.0, DoseUnit.GY), 60.0)
    assert cal.scale == pytest.approx(0.01)
    assert cal.offset == 0.0
    assert cal.unit_to_gray == 1.0
    assert cal.to_physical_gray(5000) == pytest.approx(50.0)


def test_offset_is_taken_from_low_probe():
    cal = calibrate(DoseProbe(0, 2.0, DoseUnit.GY), DoseProbe(10000, 102.0, DoseUnit.GY), 60.0)
    assert cal.offset == pytest.approx(2.0)
    assert cal.to_physical_gray(0) == pytest.approx(2.0)


def test_centigray_converts_to_gray():
    cal = calibrate(DoseProbe(0, 0.0, DoseUnit.CGY), DoseProbe(10000, 6000.0, DoseUnit.CGY), 60.0)
    assert cal.unit_to_gray == 0.01
    assert cal.to_physical_gray(10000) == pytest.approx(60.0)


def test_percent_scales_with_prescription():
    cal = calibrate(DoseProbe(0, 0.0, DoseUnit.PERCENT),
                    DoseProbe(10000, 100.0, DoseUnit.PERCENT), 60.0)
    assert cal.unit_to_gray == pytest.approx(0.6)
    assert cal.to_physical_gray(10000) == pytest.approx(60.0)


def test_percent_with_nan_prescription_is_degenerate():
    with pytest.raises(DegenerateCalibrationError):
        calibrate(DoseProbe(0, 0.0, DoseUnit.PERCENT),
                  DoseProbe(10000, 100.0, DoseUnit.PERCENT), math.nan)


def test_equal_probe_raws_are_degenerate():
    with pytest.raises(DegenerateCalibrationError):
        calibrate(DoseProbe(5, 0.0, DoseUnit.GY), DoseProbe(5, 1.0, DoseUnit.GY), 60.0)


def test_non_finite_probe_value_is_degenerate():
    with pytest.raises(DegenerateCalibrationError):
        calibrate(DoseProbe(0, 0.0, DoseUnit.GY), DoseProbe(10000, math.inf, DoseUnit.GY), 60.0)


def test_calibration_from_source_matches_source_everywhere():
    source = LinearDoseValueSource(scaling=1.7e-5, unit=DoseUnit.GY)
    cal = calibrate_from_source(source, 60.0)
    raws = np.array([0, 1, 12345, 65535])
    expected = raws * 1.7e-5
    np.testing.assert_allclose(cal.to_physical_gray(raws), expected, rtol=1e-9)


def test_prescription_to_gray():
    assert prescription_to_gray(6000.0, DoseUnit.CGY) == pytest.approx(60.0)
    assert prescription_to_gray(60.0, DoseUnit.GY) == 60.0
    with pytest.raises(DegenerateCalibrationError):
        prescription_to_gray(100.0, DoseUnit.PERCENT)
