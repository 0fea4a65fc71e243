"""
DICOM Study Loader

Loads a CT series, an RT Dose and an RT Plan from a directory into the
volume and value sources the overlay pipeline consumes.
"""

from pathlib import Path
import logging
from typing import Dict, List, Optional, Sequence, Tuple
import numpy as np

import pydicom
from pydicom.dataset import Dataset
from pydicom.errors import InvalidDicomError

from core.base import (
    ArrayVolumeSource, DoseUnit, LinearDoseValueSource, PlanInfo, StudyData
)
from core.errors import HostIOError, MissingDataError
from geometry import VolumeGrid, cross, dot


# DICOM DoseUnits (3004,0002) -> DoseUnit
DOSE_UNITS = {
    "GY": DoseUnit.GY,
    "CGY": DoseUnit.CGY,
    "RELATIVE": DoseUnit.PERCENT,
}


def _orientation(ds: Dataset) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Row, column and slice directions from ImageOrientationPatient."""
    orientation = [float(v) for v in ds.ImageOrientationPatient]
    row_direction = np.array(orientation[0:3])     # Along a row: increasing column (x)
    column_direction = np.array(orientation[3:6])  # Down a column: increasing row (y)
    slice_direction = cross(row_direction, column_direction)
    return row_direction, column_direction, slice_direction


def grid_from_ct_datasets(datasets: Sequence[Dataset]) -> Tuple[VolumeGrid, List[Dataset]]:
    """
    Build the CT grid from a series of single-slice datasets.

    Returns:
        (grid, datasets sorted along the slice direction)
    """
    if not datasets:
        raise MissingDataError("No CT slices found")
    x_dir, y_dir, z_dir = _orientation(datasets[0])

    def position(ds: Dataset) -> float:
        return dot([float(v) for v in ds.ImagePositionPatient], z_dir)

    ordered = sorted(datasets, key=position)
    first = ordered[0]
    # PixelSpacing is (row spacing, column spacing) = (y, x)
    row_spacing, col_spacing = (float(v) for v in first.PixelSpacing)
    if len(ordered) > 1:
        z_spacing = position(ordered[1]) - position(ordered[0])
    else:
        z_spacing = float(getattr(first, "SliceThickness", 1.0) or 1.0)

    grid = VolumeGrid(
        size=(int(first.Columns), int(first.Rows), len(ordered)),
        resolution=(col_spacing, row_spacing, z_spacing),
        origin=np.array([float(v) for v in first.ImagePositionPatient]),
        x_direction=x_dir,
        y_direction=y_dir,
        z_direction=z_dir,
    )
    return grid, ordered


def grid_from_dose_dataset(ds: Dataset) -> VolumeGrid:
    """Build the dose grid from a multi-frame RT Dose dataset."""
    x_dir, y_dir, z_dir = _orientation(ds)
    origin = np.array([float(v) for v in ds.ImagePositionPatient])
    offsets = [float(v) for v in getattr(ds, "GridFrameOffsetVector", [0.0])]
    num_frames = int(getattr(ds, "NumberOfFrames", len(offsets)) or 1)

    # Offsets are relative to ImagePositionPatient along the slice direction
    origin = origin + z_dir * offsets[0]
    if len(offsets) > 1:
        z_spacing = offsets[1] - offsets[0]
    else:
        z_spacing = float(getattr(ds, "SliceThickness", 1.0) or 1.0)
    if z_spacing < 0:
        # Frames stored head-first: walk the slice axis backwards
        z_dir = -z_dir
        z_spacing = -z_spacing

    row_spacing, col_spacing = (float(v) for v in ds.PixelSpacing)
    return VolumeGrid(
        size=(int(ds.Columns), int(ds.Rows), num_frames),
        resolution=(col_spacing, row_spacing, z_spacing),
        origin=origin,
        x_direction=x_dir,
        y_direction=y_dir,
        z_direction=z_dir,
    )


def ct_from_datasets(datasets: Sequence[Dataset]) -> ArrayVolumeSource:
    """
    Stack a CT series into an in-memory volume source.

    With a rescale slope of 1 the stored values are kept and the intercept
    becomes the source's HU offset. Any other slope is applied here and the
    volume is stored as HU.
    """
    grid, ordered = grid_from_ct_datasets(datasets)
    slope = float(getattr(ordered[0], "RescaleSlope", 1.0))
    intercept = float(getattr(ordered[0], "RescaleIntercept", 0.0))

    data = np.stack([ds.pixel_array for ds in ordered]).astype(np.int32)
    if slope == 1.0:
        hu_offset = int(round(-intercept))
    else:
        data = np.rint(data * slope + intercept).astype(np.int32)
        hu_offset = 0
    return ArrayVolumeSource(data, grid, hu_offset=hu_offset)


def dose_from_dataset(ds: Dataset) -> Tuple[ArrayVolumeSource, LinearDoseValueSource]:
    """Volume and value sources for an RT Dose dataset."""
    if getattr(ds, "Modality", None) != "RTDOSE":
        raise HostIOError("Provided dataset is not an RTDOSE.")
    grid = grid_from_dose_dataset(ds)
    frames = np.asarray(ds.pixel_array)
    if frames.ndim == 2:
        frames = frames[np.newaxis]

    scaling = float(getattr(ds, "DoseGridScaling", 1.0))
    unit = DOSE_UNITS.get(str(getattr(ds, "DoseUnits", "GY")).upper(), DoseUnit.GY)
    return ArrayVolumeSource(frames.astype(np.int32), grid), LinearDoseValueSource(scaling, unit)


def plan_from_dataset(ds: Dataset) -> PlanInfo:
    """
    Prescription data from an RT Plan dataset.

    The prescription is the largest TargetPrescriptionDose (Gy) in the
    DoseReferenceSequence. DICOM plans carry no normalization value, so it
    defaults to 100%.
    """
    if getattr(ds, "Modality", None) != "RTPLAN":
        raise HostIOError("Provided dataset is not an RTPLAN.")
    doses = [
        float(ref.TargetPrescriptionDose)
        for ref in getattr(ds, "DoseReferenceSequence", [])
        if "TargetPrescriptionDose" in ref
    ]
    prescription = max(doses) if doses else float("nan")
    if not doses:
        logging.warning("RT Plan has no TargetPrescriptionDose; dose overlay will be disabled")
    plan_id = str(getattr(ds, "RTPlanLabel", "") or getattr(ds, "SOPInstanceUID", ""))
    return PlanInfo(
        plan_id=plan_id,
        prescription=prescription,
        prescription_unit=DoseUnit.GY,
        normalization_percent=100.0,
    )


def _read_directory(directory: Path) -> Dict[str, List[Dataset]]:
    """Read every DICOM file under ``directory``, grouped by modality."""
    by_modality: Dict[str, List[Dataset]] = {}
    for path in sorted(p for p in directory.rglob("*") if p.is_file()):
        try:
            ds = pydicom.dcmread(path)
        except InvalidDicomError:
            logging.debug(f"Skipping non-DICOM file: {path}")
            continue
        by_modality.setdefault(str(getattr(ds, "Modality", "")), []).append(ds)
    return by_modality


def load_study(directory: str | Path) -> StudyData:
    """
    Load a CT series plus optional RT Dose and RT Plan from a directory.

    Args:
        directory: Folder containing the DICOM files (searched recursively)

    Returns:
        StudyData; ``dose`` is None when the folder holds no RT Dose

    Raises:
        HostIOError: If the folder cannot be read or holds no CT series
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise HostIOError(f"Not a directory: {directory}")

    try:
        by_modality = _read_directory(directory)
    except OSError as e:
        raise HostIOError(f"Error reading DICOM folder {directory}: {e}") from e

    ct_datasets = by_modality.get("CT", [])
    if not ct_datasets:
        raise HostIOError(f"No CT series found in {directory}")

    study = StudyData(ct=ct_from_datasets(ct_datasets))
    first = ct_datasets[0]
    study.metadata = {
        "patient_id": str(getattr(first, "PatientID", "")),
        "patient_name": str(getattr(first, "PatientName", "")),
        "source": str(directory),
    }
    logging.info(f"Loaded CT series: {len(ct_datasets)} slices")

    plans = by_modality.get("RTPLAN", [])
    if plans:
        study.plan = plan_from_dataset(plans[0])
        logging.info(f"Loaded RT Plan '{study.plan.plan_id}': {study.plan.prescription} Gy")

    doses = by_modality.get("RTDOSE", [])
    if doses:
        if len(doses) > 1:
            logging.warning(f"{len(doses)} RT Dose files found; using the first")
        study.dose, study.dose_values = dose_from_dataset(doses[0])
        logging.info(f"Loaded RT Dose: {study.dose.grid.describe()}")
    return study
