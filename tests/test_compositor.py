import math

import numpy as np
import pytest

from config import DEFAULT_ISODOSE
from core.base import DoseUnit, PlanInfo, StudyData
from core.errors import MissingDataError
from dose import DoseCalibration, IsodoseBand, IsodoseClassifier
from geometry import identity_grid
from loaders import make_phantom_study
from rendering import RenderMode, SliceCompositor, StatusSummary, ViewState, blend, compose_overlay


def _state(slice_index, mode=RenderMode.WASH):
    return ViewState(slice_index=slice_index, window_level=0.0, window_width=400.0,
                     hu_offset=32768, mode=mode)


def test_overlay_visible_on_central_slice(phantom_study):
    result = SliceCompositor(phantom_study).render(_state(50))

    assert result.grayscale.shape == (512, 512)
    assert result.overlay.shape == (512, 512, 4)
    assert result.status.dose_slice == 25
    assert result.status.dose_in_range
    assert result.colored_pixels > 0
    assert result.status.max_dose_gy > 64.2
    assert result.status.reference_dose_gy == pytest.approx(60.0)


def test_hottest_band_painted_at_dose_peak(phantom_study):
    result = SliceCompositor(phantom_study).render(_state(50))
    red = DEFAULT_ISODOSE.bands[0].color
    np.testing.assert_array_equal(result.overlay[256, 256], [*red, DEFAULT_ISODOSE.wash_alpha])


def test_out_of_range_slice_renders_ct_only(phantom_study):
    result = SliceCompositor(phantom_study).render(_state(0))

    assert result.status.dose_slice == -17
    assert result.status.out_of_range
    assert result.colored_pixels == 0
    assert result.grayscale.shape == (512, 512)
    assert result.grayscale.any()
    assert "Out of range" in str(result.status)


def test_low_dose_gives_empty_overlay():
    cold = make_phantom_study(
        ct_size=(64, 64, 20), ct_resolution=(5.0, 5.0, 2.5),
        dose_size=(32, 32, 10), dose_resolution=(10.0, 10.0, 3.0),
        peak_fraction=0.3,
    )
    result = SliceCompositor(cold).render(_state(10))
    assert result.status.dose_in_range
    assert result.colored_pixels == 0
    assert result.classified_cells == 0


def test_study_without_dose_renders_ct_only():
    study = make_phantom_study(ct_size=(32, 32, 4), with_dose=False)
    result = SliceCompositor(study).render(_state(2))
    assert result.colored_pixels == 0
    assert result.status.dose_slice is None
    assert str(result.status) == "CT Z: 2 | No dose (no dose volume)"


def test_nan_prescription_skips_overlay(small_study):
    study = StudyData(
        ct=small_study.ct,
        dose=small_study.dose,
        dose_values=small_study.dose_values,
        plan=PlanInfo(plan_id="X", prescription=math.nan),
    )
    result = SliceCompositor(study).render(_state(10))
    assert result.colored_pixels == 0
    assert result.status.dose_slice is None
    assert "prescription" in result.status.reason


def test_missing_ct_raises():
    with pytest.raises(MissingDataError):
        SliceCompositor(StudyData()).render(_state(0))


@pytest.mark.parametrize("unit", [DoseUnit.GY, DoseUnit.CGY, DoseUnit.PERCENT])
def test_dose_units_agree(unit):
    study = make_phantom_study(
        ct_size=(64, 64, 20), ct_resolution=(5.0, 5.0, 2.5),
        dose_size=(32, 32, 10), dose_resolution=(10.0, 10.0, 3.0),
        dose_unit=unit,
    )
    result = SliceCompositor(study).render(_state(10))
    assert result.status.max_dose_gy == pytest.approx(64.9, abs=0.5)
    assert result.colored_pixels > 0


def test_contour_mode_paints_fewer_pixels(phantom_study):
    compositor = SliceCompositor(phantom_study)
    wash = compositor.render(_state(50, RenderMode.WASH))
    contour = compositor.render(_state(50, RenderMode.CONTOUR))
    assert 0 < contour.colored_pixels < wash.colored_pixels
    assert set(np.unique(contour.overlay[..., 3])) <= {0, DEFAULT_ISODOSE.contour_alpha}


def test_shapes_cover_painted_pixels(small_study):
    result = SliceCompositor(small_study).render(_state(10), collect_shapes=True)
    assert result.shapes
    mask = np.zeros(result.grayscale.shape, dtype=bool)
    for shape in result.shapes:
        assert shape.x >= 0 and shape.y >= 0
        assert shape.x + shape.width <= result.grayscale.shape[1]
        assert shape.y + shape.height <= result.grayscale.shape[0]
        mask[shape.y:shape.y + shape.height, shape.x:shape.x + shape.width] = True
    np.testing.assert_array_equal(mask, result.overlay[..., 3] > 0)


def test_footprints_are_clipped_at_raster_edge():
    # One hot dose cell straddling the CT raster's top-left corner
    ct_grid = identity_grid((10, 10, 1), 1.0)
    dose_grid = identity_grid((1, 1, 1), (4.0, 4.0, 1.0))
    classifier = IsodoseClassifier([IsodoseBand(0.5, (0, 0, 255))])
    overlay = compose_overlay(
        np.array([[100]]), dose_grid, 0, ct_grid, (10, 10),
        DoseCalibration(scale=1.0, offset=0.0, unit_to_gray=1.0),
        reference_dose_gy=60.0, classifier=classifier, collect_shapes=True,
    )
    assert overlay.colored_pixels == 4
    assert overlay.shapes[0].width == 2 and overlay.shapes[0].height == 2


def test_footprint_is_at_least_one_pixel():
    ct_grid = identity_grid((10, 10, 1), 1.0)
    dose_grid = identity_grid((1, 1, 1), (0.2, 0.2, 1.0), origin=(5.0, 5.0, 0.0))
    classifier = IsodoseClassifier([IsodoseBand(0.5, (0, 0, 255))])
    overlay = compose_overlay(
        np.array([[100]]), dose_grid, 0, ct_grid, (10, 10),
        DoseCalibration(scale=1.0, offset=0.0, unit_to_gray=1.0),
        reference_dose_gy=60.0, classifier=classifier,
    )
    assert overlay.colored_pixels == 1


def test_max_dose_is_never_negative():
    # A negative calibration offset makes every dose cell negative
    ct_grid = identity_grid((10, 10, 1), 1.0)
    dose_grid = identity_grid((1, 1, 1), (4.0, 4.0, 1.0))
    classifier = IsodoseClassifier([IsodoseBand(0.5, (0, 0, 255))])
    overlay = compose_overlay(
        np.array([[0]]), dose_grid, 0, ct_grid, (10, 10),
        DoseCalibration(scale=1.0, offset=-0.5, unit_to_gray=1.0),
        reference_dose_gy=60.0, classifier=classifier,
    )
    assert overlay.max_dose_gy == 0.0
    assert overlay.colored_pixels == 0


def test_blend():
    gray = np.full((2, 2), 100, dtype=np.uint8)
    overlay = np.zeros((2, 2, 4), dtype=np.uint8)
    overlay[0, 0] = (255, 0, 0, 255)
    rgb = blend(gray, overlay)
    np.testing.assert_array_equal(rgb[0, 0], [255, 0, 0])
    np.testing.assert_array_equal(rgb[1, 1], [100, 100, 100])


def test_status_text():
    status = StatusSummary(ct_slice=50, dose_slice=25, dose_in_range=True,
                           max_dose_gy=65.91, reference_dose_gy=60.0)
    assert str(status) == "CT Z: 50 | Dose Z: 25 | Max: 65.91 Gy | Ref: 60.00 Gy"
