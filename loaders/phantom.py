"""
Synthetic Phantom Study

Procedural CT and dose volumes for demos and tests. Slices are computed on
request from analytic shapes, so even a 512x512x100 CT costs no memory
up front.
"""

from typing import Optional, Tuple
import numpy as np

from config import UNSIGNED_HU_OFFSET
from core.base import (
    DoseUnit, LinearDoseValueSource, PlanInfo, StudyData, VolumeSource
)
from core.errors import DataUnavailableError
from geometry import VolumeGrid


# Hounsfield Unit (HU) values for phantom materials
# Reference: https://radiopaedia.org/articles/hounsfield-unit
AIR_HU = -1000.0
WATER_HU = 0.0
BONE_HU = 700.0


def centered_origin(size: Tuple[int, int, int], resolution: Tuple[float, float, float]) -> np.ndarray:
    """Origin that puts the grid's center at world (0, 0, 0)."""
    return -(np.asarray(size, dtype=float) - 1) / 2.0 * np.asarray(resolution, dtype=float)


def _slice_world_points(grid: VolumeGrid, slice_index: int) -> np.ndarray:
    """World positions of every voxel of a slice, shape (ny, nx, 3)."""
    ys, xs = np.mgrid[0:grid.ny, 0:grid.nx]
    cells = np.stack([xs, ys, np.full_like(xs, slice_index)], axis=-1)
    return grid.index_to_world(cells)


class PhantomCTSource(VolumeSource):
    """
    Water cylinder with a bone rod, in air, along the world z axis.

    Attributes:
        body_radius_mm: Radius of the water cylinder
        bone_radius_mm: Radius of the off-center bone rod
        storage_offset: Added to HU to obtain stored raw values
    """

    def __init__(self, grid: VolumeGrid, body_radius_mm: float = 150.0,
                 bone_radius_mm: float = 15.0, storage_offset: int = UNSIGNED_HU_OFFSET,
                 report_hu_offset: bool = False):
        self._grid = grid
        self.body_radius_mm = body_radius_mm
        self.bone_radius_mm = bone_radius_mm
        self.storage_offset = storage_offset
        self._report_hu_offset = report_hu_offset

    @property
    def grid(self) -> VolumeGrid:
        return self._grid

    @property
    def hu_offset(self) -> Optional[int]:
        return self.storage_offset if self._report_hu_offset else None

    def get_slice_voxels(self, slice_index: int) -> np.ndarray:
        if not self._grid.contains_slice(slice_index):
            raise DataUnavailableError(f"CT slice {slice_index} outside [0, {self._grid.nz})")
        world = _slice_world_points(self._grid, slice_index)
        r_body = np.hypot(world[..., 0], world[..., 1])
        r_bone = np.hypot(world[..., 0] - self.body_radius_mm / 2.0, world[..., 1])

        hu = np.full(r_body.shape, AIR_HU)
        hu[r_body <= self.body_radius_mm] = WATER_HU
        hu[r_bone <= self.bone_radius_mm] = BONE_HU
        return (hu + self.storage_offset).astype(np.int32)


class PhantomDoseSource(VolumeSource):
    """
    Spherical Gaussian dose cloud stored as raw integers.

    ``dose = peak * exp(-r^2 / (2 sigma^2))`` in the value source's unit,
    stored as ``round(dose / scaling)``.
    """

    def __init__(self, grid: VolumeGrid, peak: float, sigma_mm: float = 40.0,
                 center: Tuple[float, float, float] = (0.0, 0.0, 0.0),
                 scaling: float = 0.001):
        self._grid = grid
        self.peak = peak
        self.sigma_mm = sigma_mm
        self.center = np.asarray(center, dtype=float)
        self.scaling = scaling

    @property
    def grid(self) -> VolumeGrid:
        return self._grid

    def get_slice_voxels(self, slice_index: int) -> np.ndarray:
        if not self._grid.contains_slice(slice_index):
            raise DataUnavailableError(f"Dose slice {slice_index} outside [0, {self._grid.nz})")
        world = _slice_world_points(self._grid, slice_index)
        r2 = np.sum((world - self.center) ** 2, axis=-1)
        dose = self.peak * np.exp(-r2 / (2.0 * self.sigma_mm ** 2))
        return np.rint(dose / self.scaling).astype(np.int32)


def make_phantom_study(
    ct_size: Tuple[int, int, int] = (512, 512, 100),
    ct_resolution: Tuple[float, float, float] = (1.0, 1.0, 2.5),
    dose_size: Tuple[int, int, int] = (128, 128, 50),
    dose_resolution: Tuple[float, float, float] = (2.5, 2.5, 3.0),
    prescription_gy: float = 60.0,
    normalization_percent: float = 100.0,
    peak_fraction: float = 1.1,
    dose_unit: DoseUnit = DoseUnit.GY,
    with_dose: bool = True,
) -> StudyData:
    """
    Build a synthetic study.

    Both grids are centered on the world origin. The dose grid covers a
    shorter z range than the CT, so the outermost CT slices have no dose.

    Args:
        peak_fraction: Peak dose relative to the prescription
        dose_unit: Unit the dose value source reports (Gy, cGy or percent)
        with_dose: False gives a CT-only study
    """
    ct_grid = VolumeGrid(ct_size, ct_resolution, centered_origin(ct_size, ct_resolution))
    study = StudyData(
        ct=PhantomCTSource(ct_grid),
        plan=PlanInfo(
            plan_id="PHANTOM",
            prescription=prescription_gy,
            prescription_unit=DoseUnit.GY,
            normalization_percent=normalization_percent,
        ),
        metadata={"patient_id": "PHANTOM", "source": "synthetic"},
    )
    if not with_dose:
        return study

    # Peak expressed in the reported unit
    if dose_unit == DoseUnit.PERCENT:
        peak = peak_fraction * 100.0
    elif dose_unit == DoseUnit.CGY:
        peak = peak_fraction * prescription_gy * 100.0
    else:
        peak = peak_fraction * prescription_gy
    scaling = (peak if peak > 0 else 1.0) / 60000.0

    dose_grid = VolumeGrid(dose_size, dose_resolution, centered_origin(dose_size, dose_resolution))
    study.dose = PhantomDoseSource(dose_grid, peak=peak, scaling=scaling)
    study.dose_values = LinearDoseValueSource(scaling, dose_unit)
    return study
