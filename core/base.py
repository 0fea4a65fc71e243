"""
Core Base Classes

Provides the data structures and abstract interfaces shared by the host
environment (loaders, GUI) and the dose overlay pipeline.
"""

from dataclasses import dataclass, field
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Dict, Optional, Tuple
import numpy as np

from geometry import VolumeGrid
from .errors import DataUnavailableError


class DoseUnit(Enum):
    """Units a dose value source may report."""
    PERCENT = "%"
    CGY = "cGy"
    GY = "Gy"


@dataclass(frozen=True)
class PlanInfo:
    """
    Prescription data of a treatment plan.

    Attributes:
        plan_id: Plan label for reports
        prescription: Total prescribed dose, in ``prescription_unit``
        prescription_unit: Gy or cGy
        normalization_percent: Plan normalization (nominally a percentage)
    """
    plan_id: str = ""
    prescription: float = float("nan")
    prescription_unit: DoseUnit = DoseUnit.GY
    normalization_percent: float = 100.0


class VolumeSource(ABC):
    """Abstract provider of raw integer slices for one 3D grid."""

    @property
    @abstractmethod
    def grid(self) -> VolumeGrid:
        """Geometry of the volume."""
        pass

    @abstractmethod
    def get_slice_voxels(self, slice_index: int) -> np.ndarray:
        """
        Fetch one full slice of raw voxel values.

        Args:
            slice_index: Index along the grid's z axis

        Returns:
            int32 array of shape (ny, nx)

        Raises:
            DataUnavailableError: If the slice index is outside the grid
        """
        pass

    @property
    def hu_offset(self) -> Optional[int]:
        """
        Raw-to-HU offset known from volume metadata.

        None means the source does not know it and callers fall back to the
        storage-convention heuristic.
        """
        return None


class ArrayVolumeSource(VolumeSource):
    """Volume source backed by an in-memory (nz, ny, nx) array."""

    def __init__(self, data: np.ndarray, grid: VolumeGrid,
                 hu_offset: Optional[int] = None):
        expected = (grid.nz, grid.ny, grid.nx)
        if data.shape != expected:
            raise ValueError(f"Volume shape {data.shape} does not match grid {expected}")
        self._data = data
        self._grid = grid
        self._hu_offset = hu_offset

    @property
    def grid(self) -> VolumeGrid:
        return self._grid

    @property
    def data(self) -> np.ndarray:
        return self._data

    @property
    def hu_offset(self) -> Optional[int]:
        return self._hu_offset

    def get_slice_voxels(self, slice_index: int) -> np.ndarray:
        if not self._grid.contains_slice(slice_index):
            raise DataUnavailableError(
                f"Slice {slice_index} outside [0, {self._grid.nz})"
            )
        # Always a fresh buffer; callers own it for one render
        return np.array(self._data[slice_index], dtype=np.int32)


class DoseValueSource(ABC):
    """Abstract raw-voxel to physical-dose lookup."""

    @abstractmethod
    def voxel_to_physical(self, raw_value: int) -> Tuple[float, DoseUnit]:
        """
        Convert one raw voxel value.

        Returns:
            (value, unit) pair
        """
        pass


class LinearDoseValueSource(DoseValueSource):
    """Dose values defined by ``raw * scaling + offset`` in a fixed unit."""

    def __init__(self, scaling: float, unit: DoseUnit = DoseUnit.GY, offset: float = 0.0):
        self.scaling = float(scaling)
        self.unit = unit
        self.offset = float(offset)

    def voxel_to_physical(self, raw_value: int) -> Tuple[float, DoseUnit]:
        return raw_value * self.scaling + self.offset, self.unit


@dataclass
class StudyData:
    """
    Everything the host loads for one viewing session.

    Attributes:
        ct: CT volume source (required for any rendering)
        dose: Dose volume source, None when the plan has no dose
        dose_values: Raw-to-physical lookup for the dose volume
        plan: Prescription data
        metadata: Free-form descriptive information (patient, paths)
    """
    ct: Optional[VolumeSource] = None
    dose: Optional[VolumeSource] = None
    dose_values: Optional[DoseValueSource] = None
    plan: PlanInfo = field(default_factory=PlanInfo)
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def has_ct(self) -> bool:
        return self.ct is not None

    @property
    def has_dose(self) -> bool:
        return self.dose is not None and self.dose_values is not None


class DisplaySurface(ABC):
    """Abstract consumer of finished renders."""

    @abstractmethod
    def show(self, result: Any) -> None:
        """
        Present a finished render.

        Args:
            result: RenderResult produced by the slice compositor
        """
        pass

    def clear(self) -> None:
        """Clear the display."""
        pass
