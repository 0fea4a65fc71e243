"""
Volume Grid Geometry

Describes one independently gridded 3D volume (CT image or dose matrix) in
world space and converts between world coordinates and grid indices.
"""

from dataclasses import dataclass, field
from typing import Tuple, Union
import numpy as np

from .vector import VectorLike, as_vector, dot


@dataclass(frozen=True, eq=False)
class VolumeGrid:
    """
    Geometry of a 3D voxel grid.

    Attributes:
        size: Voxel counts (nx, ny, nz)
        resolution: Voxel spacing in mm (rx, ry, rz), strictly positive
        origin: World position of voxel (0, 0, 0)
        x_direction: Unit vector of the grid's x axis in world space
        y_direction: Unit vector of the grid's y axis in world space
        z_direction: Unit vector of the grid's z (slice) axis in world space
    """
    size: Tuple[int, int, int]
    resolution: Tuple[float, float, float]
    origin: np.ndarray = field(default_factory=lambda: np.zeros(3))
    x_direction: np.ndarray = field(default_factory=lambda: np.array([1.0, 0.0, 0.0]))
    y_direction: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    z_direction: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, 1.0]))

    def __post_init__(self):
        size = tuple(int(n) for n in self.size)
        resolution = tuple(float(r) for r in self.resolution)
        if len(size) != 3 or any(n <= 0 for n in size):
            raise ValueError(f"Grid size must be three positive counts, got {self.size}")
        if len(resolution) != 3 or not all(np.isfinite(r) and r > 0 for r in resolution):
            raise ValueError(f"Grid resolution must be three positive spacings, got {self.resolution}")

        # Frozen dataclass: normalise fields through object.__setattr__
        object.__setattr__(self, "size", size)
        object.__setattr__(self, "resolution", resolution)
        for name in ("origin", "x_direction", "y_direction", "z_direction"):
            vec = as_vector(getattr(self, name)).copy()
            vec.setflags(write=False)
            object.__setattr__(self, name, vec)

    @property
    def nx(self) -> int:
        return self.size[0]

    @property
    def ny(self) -> int:
        return self.size[1]

    @property
    def nz(self) -> int:
        return self.size[2]

    @property
    def directions(self) -> np.ndarray:
        """(3, 3) matrix whose rows are the x, y and z direction vectors."""
        return np.stack([self.x_direction, self.y_direction, self.z_direction])

    def world_to_index(self, point: VectorLike) -> np.ndarray:
        """
        Convert world coordinates to fractional grid indices.

        No clamping is performed; callers range-check the result.

        Args:
            point: (3,) world position or (..., 3) array of positions

        Returns:
            Fractional (ix, iy, iz) with the same leading shape as ``point``
        """
        rel = as_vector(point) - self.origin
        return np.stack([
            np.asarray(dot(rel, self.x_direction)) / self.resolution[0],
            np.asarray(dot(rel, self.y_direction)) / self.resolution[1],
            np.asarray(dot(rel, self.z_direction)) / self.resolution[2],
        ], axis=-1)

    def index_to_world(self, indices: VectorLike) -> np.ndarray:
        """
        Convert (possibly fractional) grid indices to world coordinates.

        Index (0, 0, 0) maps to ``origin``, i.e. indices address voxel centers.
        """
        idx = np.asarray(indices, dtype=np.float64)
        steps = idx * np.asarray(self.resolution)
        return self.origin + steps @ self.directions

    def slice_center_world(self, slice_index: int) -> np.ndarray:
        """World-space point on the plane of the given slice."""
        return self.origin + self.z_direction * (slice_index * self.resolution[2])

    def map_slice_index(self, other: "VolumeGrid", slice_index: int) -> int:
        """
        Find the slice of ``other`` nearest to this grid's slice plane.

        Always a nearest-plane match; never interpolated between two slices.
        The result may fall outside ``[0, other.nz)``.
        """
        rel = self.slice_center_world(slice_index) - other.origin
        return int(round(dot(rel, other.z_direction) / other.resolution[2]))

    def contains_slice(self, slice_index: int) -> bool:
        """Whether ``slice_index`` addresses an existing slice."""
        return 0 <= slice_index < self.nz

    def describe(self) -> str:
        return (
            f"size={self.size}, res={tuple(round(r, 4) for r in self.resolution)} mm, "
            f"origin={tuple(round(float(v), 2) for v in self.origin)}"
        )


def identity_grid(size: Tuple[int, int, int],
                  resolution: Union[float, Tuple[float, float, float]] = 1.0,
                  origin: VectorLike = (0.0, 0.0, 0.0)) -> VolumeGrid:
    """Convenience constructor for an axis-aligned grid."""
    if np.isscalar(resolution):
        resolution = (float(resolution),) * 3
    return VolumeGrid(size=size, resolution=resolution, origin=np.asarray(origin, dtype=float))
