"""
Slice Compositor

Renders one CT slice under window/level and overlays the matching dose slice
as isodose bands.

Dose is resampled into CT pixel space by nearest neighbour: each classified
dose cell paints a rectangle of ``dose_res / ct_res`` CT pixels centered on
its projected position. There is no interpolation between dose cells.
"""

from dataclasses import dataclass, field
from enum import Enum
import logging
from typing import List, Optional, Tuple
import numpy as np

from config import DEFAULT_ISODOSE, DEFAULT_WINDOW, IsodoseConfig, WindowConfig
from core.base import StudyData
from core.errors import (
    DataUnavailableError, DegenerateCalibrationError, MissingDataError, OutOfRangeSliceError
)
from dose.conversion import DoseCalibration, calibrate_from_source, prescription_to_gray
from dose.isodose import IsodoseClassifier
from dose.reference import resolve_reference_dose
from geometry import VolumeGrid
from .window_level import render_grayscale


class RenderMode(Enum):
    """How classified dose is drawn."""
    WASH = "wash"        # Filled translucent bands
    CONTOUR = "contour"  # Thin lines at each band threshold


@dataclass(frozen=True)
class ViewState:
    """
    Immutable snapshot of everything one render depends on.

    Attributes:
        slice_index: CT slice to display
        window_level: Window center in HU
        window_width: Window width in HU
        hu_offset: Raw-to-HU storage offset of the CT
        mode: Wash or contour overlay
    """
    slice_index: int
    window_level: float
    window_width: float
    hu_offset: int = 0
    mode: RenderMode = RenderMode.WASH


@dataclass(frozen=True)
class OverlayShape:
    """A colored rectangle in CT pixel coordinates (already clipped)."""
    x: int
    y: int
    width: int
    height: int
    color: Tuple[int, int, int, int]  # RGBA
    fraction: float


@dataclass
class StatusSummary:
    """Per-render observability data shown in the status bar."""
    ct_slice: int
    dose_slice: Optional[int] = None
    dose_in_range: bool = False
    max_dose_gy: Optional[float] = None
    reference_dose_gy: Optional[float] = None
    reason: str = ""

    @property
    def out_of_range(self) -> bool:
        """Whether a dose slice was mapped but lies outside the dose grid."""
        return self.dose_slice is not None and not self.dose_in_range

    def __str__(self) -> str:
        if self.dose_slice is None:
            text = f"CT Z: {self.ct_slice} | No dose"
            return f"{text} ({self.reason})" if self.reason else text
        if self.out_of_range:
            return f"CT Z: {self.ct_slice} | Dose Z: {self.dose_slice} (Out of range)"
        return (
            f"CT Z: {self.ct_slice} | Dose Z: {self.dose_slice} | "
            f"Max: {self.max_dose_gy:.2f} Gy | Ref: {self.reference_dose_gy:.2f} Gy"
        )


@dataclass
class DoseOverlay:
    """Classified dose painted into CT pixel space."""
    raster: np.ndarray  # (height, width, 4) uint8 RGBA
    max_dose_gy: float = 0.0
    classified_cells: int = 0
    shapes: Optional[List[OverlayShape]] = None

    @property
    def colored_pixels(self) -> int:
        return int(np.count_nonzero(self.raster[..., 3]))


@dataclass
class RenderResult:
    """Output of one render, owned by the caller until displayed."""
    state: ViewState
    grayscale: np.ndarray  # (height, width) uint8
    overlay: np.ndarray  # (height, width, 4) uint8 RGBA
    status: StatusSummary
    shapes: Optional[List[OverlayShape]] = None
    classified_cells: int = 0

    @property
    def colored_pixels(self) -> int:
        return int(np.count_nonzero(self.overlay[..., 3]))

    def blended(self) -> np.ndarray:
        """Grayscale with the overlay alpha-blended on top, (height, width, 3) uint8."""
        return blend(self.grayscale, self.overlay)


def empty_overlay(shape: Tuple[int, int]) -> np.ndarray:
    return np.zeros((shape[0], shape[1], 4), dtype=np.uint8)


def blend(grayscale: np.ndarray, overlay: np.ndarray) -> np.ndarray:
    """
    Alpha-blend an RGBA overlay onto a grayscale raster.

    Args:
        grayscale: (H, W) uint8
        overlay: (H, W, 4) uint8 RGBA

    Returns:
        (H, W, 3) uint8 RGB
    """
    base = np.repeat(grayscale[..., np.newaxis].astype(np.float32), 3, axis=-1)
    alpha = overlay[..., 3:4].astype(np.float32) / 255.0
    mixed = base * (1.0 - alpha) + overlay[..., :3].astype(np.float32) * alpha
    return np.clip(np.rint(mixed), 0, 255).astype(np.uint8)


def compose_overlay(
    dose_voxels: np.ndarray,
    dose_grid: VolumeGrid,
    dose_slice: int,
    ct_grid: VolumeGrid,
    out_shape: Tuple[int, int],
    calibration: DoseCalibration,
    reference_dose_gy: float,
    classifier: IsodoseClassifier,
    mode: RenderMode = RenderMode.WASH,
    config: IsodoseConfig = DEFAULT_ISODOSE,
    collect_shapes: bool = False,
) -> DoseOverlay:
    """
    Classify one dose slice and paint it into CT pixel space.

    Args:
        dose_voxels: Raw (ny, nx) dose slice
        dose_grid: Geometry of the dose volume
        dose_slice: Index of ``dose_voxels`` within the dose volume
        ct_grid: Geometry of the CT volume
        out_shape: (height, width) of the CT raster
        calibration: Raw -> Gy conversion
        reference_dose_gy: Dose of the 100% isodose line
        classifier: Band classifier
        mode: Wash (filled bands) or contour (band lines)
        config: Overlay alpha and contour tolerance
        collect_shapes: Also return the painted rectangles as shapes

    Returns:
        DoseOverlay
    """
    height, width = out_shape
    raster = empty_overlay(out_shape)
    shapes: Optional[List[OverlayShape]] = [] if collect_shapes else None

    dose_gy = calibration.to_physical_gray(np.asarray(dose_voxels))
    finite = np.isfinite(dose_gy)
    max_dose = max(0.0, float(dose_gy[finite].max())) if finite.any() else 0.0

    if mode == RenderMode.CONTOUR:
        band_index = classifier.contour_array(dose_gy, reference_dose_gy, config.contour_tolerance)
        alpha = config.contour_alpha
    else:
        band_index = classifier.classify_array(dose_gy, reference_dose_gy)
        alpha = config.wash_alpha

    # Row-major order: later cells overwrite earlier ones where footprints overlap
    ys, xs = np.nonzero(band_index >= 0)
    if len(ys) == 0:
        return DoseOverlay(raster=raster, max_dose_gy=max_dose, shapes=shapes)

    cells = np.stack([xs, ys, np.full_like(xs, dose_slice)], axis=-1)
    ct_index = ct_grid.world_to_index(dose_grid.index_to_world(cells))
    px, py = ct_index[:, 0], ct_index[:, 1]

    scale_x = dose_grid.resolution[0] / ct_grid.resolution[0]
    scale_y = dose_grid.resolution[1] / ct_grid.resolution[1]
    start_x = np.floor(px - scale_x / 2.0).astype(np.int64)
    start_y = np.floor(py - scale_y / 2.0).astype(np.int64)
    end_x = np.maximum(np.floor(px + scale_x / 2.0).astype(np.int64), start_x + 1)
    end_y = np.maximum(np.floor(py + scale_y / 2.0).astype(np.int64), start_y + 1)

    bands = classifier.bands
    palette = np.array([(*band.color, alpha) for band in bands], dtype=np.uint8)

    for i in range(len(ys)):
        x0, x1 = max(int(start_x[i]), 0), min(int(end_x[i]), width)
        y0, y1 = max(int(start_y[i]), 0), min(int(end_y[i]), height)
        if x0 >= x1 or y0 >= y1:
            continue
        index = band_index[ys[i], xs[i]]
        raster[y0:y1, x0:x1] = palette[index]
        if shapes is not None:
            shapes.append(OverlayShape(
                x=x0, y=y0, width=x1 - x0, height=y1 - y0,
                color=tuple(int(c) for c in palette[index]),
                fraction=bands[index].fraction,
            ))

    return DoseOverlay(
        raster=raster,
        max_dose_gy=max_dose,
        classified_cells=len(ys),
        shapes=shapes,
    )


class SliceCompositor:
    """
    Renders CT slices with isodose overlays for one study.

    The compositor is stateless between renders: every call receives a
    ViewState snapshot and re-reads the slices it needs from the sources.
    """

    def __init__(
        self,
        study: StudyData,
        isodose_config: IsodoseConfig = DEFAULT_ISODOSE,
        window_config: WindowConfig = DEFAULT_WINDOW,
    ):
        self.study = study
        self.isodose_config = isodose_config
        self.window_config = window_config
        self.classifier = IsodoseClassifier(isodose_config.bands)

    def render(self, state: ViewState, collect_shapes: bool = False) -> RenderResult:
        """
        Render one CT slice and its dose overlay.

        Dose problems never abort the render: the result falls back to an
        empty overlay and the status summary says why.

        Raises:
            MissingDataError: If the study has no CT image
            DataUnavailableError: If the CT slice cannot be read
        """
        if not self.study.has_ct:
            raise MissingDataError("No CT image loaded")

        ct = self.study.ct
        ct_voxels = ct.get_slice_voxels(state.slice_index)
        grayscale = render_grayscale(
            ct_voxels, state.hu_offset, state.window_level, state.window_width
        )

        overlay, status = self._render_dose(state, ct.grid, grayscale.shape, collect_shapes)
        logging.info(str(status))

        return RenderResult(
            state=state,
            grayscale=grayscale,
            overlay=overlay.raster,
            status=status,
            shapes=overlay.shapes,
            classified_cells=overlay.classified_cells,
        )

    def _render_dose(
        self,
        state: ViewState,
        ct_grid: VolumeGrid,
        out_shape: Tuple[int, int],
        collect_shapes: bool,
    ) -> Tuple[DoseOverlay, StatusSummary]:
        """Build the dose overlay, or an empty one with the reason recorded."""
        status = StatusSummary(ct_slice=state.slice_index)
        empty = DoseOverlay(raster=empty_overlay(out_shape),
                            shapes=[] if collect_shapes else None)

        if not self.study.has_dose:
            status.reason = "no dose volume"
            return empty, status

        cfg = self.isodose_config
        plan = self.study.plan
        try:
            prescription_gy = prescription_to_gray(plan.prescription, plan.prescription_unit)
            reference_gy = resolve_reference_dose(
                prescription_gy,
                plan.normalization_percent,
                min_reference_gy=cfg.min_reference_dose_gy,
                rescale_below=cfg.normalization_rescale_below,
            )
            calibration = calibrate_from_source(
                self.study.dose_values, prescription_gy,
                low_raw=cfg.probe_low_raw, high_raw=cfg.probe_high_raw,
            )
        except DegenerateCalibrationError as e:
            logging.warning(f"Dose overlay skipped: {e}")
            status.reason = str(e)
            return empty, status

        status.reference_dose_gy = reference_gy
        dose_grid = self.study.dose.grid
        dose_slice = ct_grid.map_slice_index(dose_grid, state.slice_index)
        status.dose_slice = dose_slice

        try:
            dose_voxels = self._read_dose_slice(dose_slice)
        except OutOfRangeSliceError as e:
            logging.debug(f"No dose on CT slice {state.slice_index}: {e}")
            status.reason = "out of range"
            return empty, status
        except DataUnavailableError as e:
            logging.error(f"Failed to read dose slice {dose_slice}: {e}")
            status.dose_slice = None
            status.reason = f"dose slice unavailable: {e}"
            return empty, status

        overlay = compose_overlay(
            dose_voxels,
            dose_grid,
            dose_slice,
            ct_grid,
            out_shape,
            calibration,
            reference_gy,
            self.classifier,
            mode=state.mode,
            config=cfg,
            collect_shapes=collect_shapes,
        )
        status.dose_in_range = True
        status.max_dose_gy = overlay.max_dose_gy
        return overlay, status

    def _read_dose_slice(self, dose_slice: int) -> np.ndarray:
        dose = self.study.dose
        if not dose.grid.contains_slice(dose_slice):
            raise OutOfRangeSliceError(dose_slice, dose.grid.nz)
        return dose.get_slice_voxels(dose_slice)
