import numpy as np
import pytest
from pydicom.dataset import Dataset
from pydicom.sequence import Sequence

from core.base import DoseUnit
from core.errors import HostIOError, MissingDataError
from loaders import (
    dose_from_dataset, grid_from_ct_datasets, grid_from_dose_dataset, load_study, plan_from_dataset
)


def _ct_slice(z):
    ds = Dataset()
    ds.Modality = "CT"
    ds.ImageOrientationPatient = [1, 0, 0, 0, 1, 0]
    ds.ImagePositionPatient = [-255.5, -255.5, z]
    ds.PixelSpacing = [0.8, 1.0]
    ds.Rows = 512
    ds.Columns = 400
    return ds


def test_ct_grid_sorted_along_slice_axis():
    grid, ordered = grid_from_ct_datasets([_ct_slice(5.0), _ct_slice(0.0), _ct_slice(2.5)])
    assert [float(ds.ImagePositionPatient[2]) for ds in ordered] == [0.0, 2.5, 5.0]
    assert grid.size == (400, 512, 3)
    # PixelSpacing is (row, column): x spacing comes second
    assert grid.resolution == (1.0, 0.8, 2.5)
    np.testing.assert_allclose(grid.origin, [-255.5, -255.5, 0.0])
    np.testing.assert_allclose(grid.z_direction, [0, 0, 1])


def test_empty_ct_series():
    with pytest.raises(MissingDataError):
        grid_from_ct_datasets([])


def _dose_dataset(offsets):
    ds = Dataset()
    ds.Modality = "RTDOSE"
    ds.ImageOrientationPatient = [1, 0, 0, 0, 1, 0]
    ds.ImagePositionPatient = [-100.0, -80.0, -30.0]
    ds.PixelSpacing = [2.5, 2.5]
    ds.Rows = 64
    ds.Columns = 80
    ds.NumberOfFrames = len(offsets)
    ds.GridFrameOffsetVector = offsets
    return ds


def test_dose_grid_from_frame_offsets():
    grid = grid_from_dose_dataset(_dose_dataset([0.0, 3.0, 6.0, 9.0]))
    assert grid.size == (80, 64, 4)
    assert grid.resolution == (2.5, 2.5, 3.0)
    np.testing.assert_allclose(grid.index_to_world((0, 0, 3)), [-100.0, -80.0, -21.0])


def test_descending_frame_offsets_flip_slice_axis():
    grid = grid_from_dose_dataset(_dose_dataset([0.0, -3.0, -6.0]))
    assert grid.resolution[2] == 3.0
    np.testing.assert_allclose(grid.z_direction, [0, 0, -1])
    np.testing.assert_allclose(grid.index_to_world((0, 0, 2)), [-100.0, -80.0, -36.0])


def test_dose_dataset_modality_checked():
    ds = _dose_dataset([0.0])
    ds.Modality = "CT"
    with pytest.raises(HostIOError):
        dose_from_dataset(ds)


def _plan(*doses):
    ds = Dataset()
    ds.Modality = "RTPLAN"
    ds.RTPlanLabel = "PROSTATE"
    refs = []
    for dose in doses:
        ref = Dataset()
        ref.TargetPrescriptionDose = dose
        refs.append(ref)
    ds.DoseReferenceSequence = Sequence(refs)
    return ds


def test_plan_uses_largest_target_prescription():
    plan = plan_from_dataset(_plan(50.4, 78.0))
    assert plan.plan_id == "PROSTATE"
    assert plan.prescription == pytest.approx(78.0)
    assert plan.prescription_unit == DoseUnit.GY
    assert plan.normalization_percent == 100.0


def test_plan_without_prescription_is_nan():
    plan = plan_from_dataset(_plan())
    assert np.isnan(plan.prescription)


def test_load_study_rejects_missing_directory(tmp_path):
    with pytest.raises(HostIOError):
        load_study(tmp_path / "missing")


def test_load_study_needs_ct_series(tmp_path):
    (tmp_path / "notes.txt").write_text("not dicom")
    with pytest.raises(HostIOError):
        load_study(tmp_path)
