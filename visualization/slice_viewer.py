"""
Slice Viewer

Framework-agnostic view controller for the isodose overlay.
Holds the current view state, turns user requests into immutable ViewState
snapshots and drops render requests that arrive while a render is running.
"""

from dataclasses import replace
import logging
from typing import Optional

from config import DEFAULT_ISODOSE, DEFAULT_WINDOW, IsodoseConfig, WindowConfig
from core.base import DisplaySurface, StudyData
from core.errors import MissingDataError
from rendering.compositor import RenderMode, RenderResult, SliceCompositor, ViewState
from rendering.window_level import auto_window, center_voxel, detect_hu_offset, get_preset


class SliceViewer:
    """
    Slice viewer for a CT image with a dose overlay.

    This class handles the data logic for slice viewing,
    independent of any GUI framework.
    """

    def __init__(
        self,
        window_config: WindowConfig = DEFAULT_WINDOW,
        isodose_config: IsodoseConfig = DEFAULT_ISODOSE,
    ):
        self._window_config = window_config
        self._isodose_config = isodose_config
        self._study: Optional[StudyData] = None
        self._compositor: Optional[SliceCompositor] = None
        self._surface: Optional[DisplaySurface] = None
        self._state: Optional[ViewState] = None
        self._last_result: Optional[RenderResult] = None
        self._rendering: bool = False
        self.collect_shapes: bool = False

    def set_display(self, surface: Optional[DisplaySurface]) -> None:
        """Attach the surface that receives finished renders."""
        self._surface = surface

    def set_study(self, study: StudyData) -> Optional[RenderResult]:
        """
        Set the study to view and render its middle slice with an auto window.

        Raises:
            MissingDataError: If the study has no CT image
        """
        if not study.has_ct:
            raise MissingDataError("Study has no CT image")

        self._study = study
        self._compositor = SliceCompositor(study, self._isodose_config, self._window_config)
        self._last_result = None
        self._state = ViewState(
            slice_index=study.ct.grid.nz // 2,
            window_level=0.0,
            window_width=self._window_config.auto_window_width,
        )
        return self.apply_auto_preset()

    def clear(self) -> None:
        self._study = None
        self._compositor = None
        self._state = None
        self._last_result = None
        if self._surface is not None:
            self._surface.clear()

    # ========== Requests ==========

    def render(
        self,
        slice_index: Optional[int] = None,
        window_level: Optional[float] = None,
        window_width: Optional[float] = None,
    ) -> Optional[RenderResult]:
        """
        Render request from the host.

        Parameters left as None keep their current value.

        Returns:
            The new RenderResult, or None when nothing is loaded or the
            request was dropped because a render is already in progress
        """
        if self._state is None:
            return None
        changes = {}
        if slice_index is not None:
            changes["slice_index"] = self._clamp_slice(slice_index)
        if window_level is not None:
            changes["window_level"] = float(window_level)
        if window_width is not None:
            changes["window_width"] = float(window_width)
        return self._request(replace(self._state, **changes))

    def set_slice(self, index: int) -> Optional[RenderResult]:
        """Set the current slice index."""
        return self.render(slice_index=index)

    def set_window(self, center: float, width: float) -> Optional[RenderResult]:
        """Set window center and width for display."""
        return self.render(window_level=center, window_width=width)

    def set_mode(self, mode: RenderMode) -> Optional[RenderResult]:
        """Switch between wash and contour overlays."""
        if self._state is None:
            return None
        return self._request(replace(self._state, mode=mode))

    def apply_preset(self, name: str) -> Optional[RenderResult]:
        """Apply a named window preset (Soft Tissue, Lung, Bone)."""
        level, width = get_preset(name, self._window_config)
        return self.set_window(level, width)

    def apply_auto_preset(self) -> Optional[RenderResult]:
        """
        Window on the center voxel of the current slice.

        The HU offset comes from the CT source when it knows its rescale
        intercept, otherwise from the storage-convention heuristic.
        """
        if self._state is None:
            return None
        ct = self._study.ct
        center_raw = center_voxel(ct.get_slice_voxels(self._state.slice_index))
        hu_offset = ct.hu_offset
        if hu_offset is None:
            hu_offset = detect_hu_offset(center_raw, self._window_config)
            logging.info(f"Detected HU offset {hu_offset} (center raw value {center_raw})")
        level, width = auto_window(center_raw, hu_offset, self._window_config)
        return self._request(replace(
            self._state, hu_offset=hu_offset, window_level=level, window_width=width
        ))

    # ========== Rendering ==========

    def _request(self, state: ViewState) -> Optional[RenderResult]:
        """Render ``state`` unless a render is running; never queue."""
        # The latest requested state is kept so the next render honors it
        self._state = state
        if self._rendering:
            logging.debug(f"Render in progress; dropped request for slice {state.slice_index}")
            return None

        self._rendering = True
        try:
            result = self._compositor.render(state, collect_shapes=self.collect_shapes)
            self._last_result = result
            if self._surface is not None:
                self._surface.show(result)
        finally:
            self._rendering = False
        return result

    def _clamp_slice(self, index: int) -> int:
        return max(0, min(int(index), self.num_slices - 1))

    # ========== Properties ==========

    @property
    def study(self) -> Optional[StudyData]:
        return self._study

    @property
    def state(self) -> Optional[ViewState]:
        """Current view state snapshot."""
        return self._state

    @property
    def last_result(self) -> Optional[RenderResult]:
        """Most recent completed render."""
        return self._last_result

    @property
    def is_rendering(self) -> bool:
        return self._rendering

    @property
    def num_slices(self) -> int:
        """Get total number of slices."""
        return self._study.ct.grid.nz if self._study is not None else 0

    @property
    def current_slice(self) -> int:
        """Get current slice index."""
        return self._state.slice_index if self._state is not None else 0

    @property
    def window_center(self) -> float:
        """Get current window center."""
        return self._state.window_level if self._state is not None else 0.0

    @property
    def window_width(self) -> float:
        """Get current window width."""
        return self._state.window_width if self._state is not None else 0.0

    @property
    def hu_offset(self) -> int:
        return self._state.hu_offset if self._state is not None else 0
