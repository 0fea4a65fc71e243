"""
Viewer Panel

Displays a CT slice with its isodose overlay, plus slice navigation,
window/level presets and overlay mode controls.
"""

import logging
from typing import Callable, Optional
import numpy as np

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QHBoxLayout, QGroupBox,
    QLabel, QSlider, QSpinBox, QComboBox, QPushButton
)
from PySide6.QtCore import Qt, Signal
import pyqtgraph as pg

from config import DEFAULT_ISODOSE, DEFAULT_WINDOW
from core.base import DisplaySurface, StudyData
from core.errors import IsodoseViewerError
from rendering.compositor import RenderMode, RenderResult
from visualization.slice_viewer import SliceViewer


AUTO_PRESET = "Auto"
MODE_LABELS = {
    "Wash": RenderMode.WASH,
    "Contour": RenderMode.CONTOUR,
}


class ImageViewSurface(DisplaySurface):
    """Shows blended renders in a pyqtgraph ImageView."""

    def __init__(self, image_view: "pg.ImageView"):
        self._image_view = image_view
        self._has_image = False

    def show(self, result: RenderResult) -> None:
        rgb = result.blended()
        # pyqtgraph expects (x, y, channels)
        self._image_view.setImage(
            np.transpose(rgb, (1, 0, 2)),
            autoLevels=False,
            levels=(0, 255),
            autoRange=not self._has_image,
        )
        self._has_image = True

    def clear(self) -> None:
        self._image_view.clear()
        self._has_image = False


class ViewerPanel(QWidget):
    """Panel for viewing CT slices with an isodose overlay."""

    slice_changed = Signal(int)
    status_changed = Signal(str)
    render_failed = Signal(str)

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)

        self._viewer = SliceViewer()
        self._setup_ui()
        self._viewer.set_display(ImageViewSurface(self._image_view))

    def _setup_ui(self) -> None:
        """Set up the panel UI."""
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        # Image display area
        view_group = QGroupBox("CT / Dose")
        view_layout = QVBoxLayout(view_group)
        self._image_view = pg.ImageView()
        self._image_view.ui.roiBtn.hide()
        self._image_view.ui.menuBtn.hide()
        self._image_view.ui.histogram.hide()
        view_layout.addWidget(self._image_view)

        self._status_label = QLabel("No study loaded")
        self._status_label.setObjectName("statusLabel")
        view_layout.addWidget(self._status_label)
        layout.addWidget(view_group, stretch=1)

        # Slice navigation
        nav_group = QGroupBox("Navigation")
        nav_layout = QHBoxLayout(nav_group)
        nav_layout.addWidget(QLabel("Slice:"))

        self._slice_slider = QSlider(Qt.Horizontal)
        self._slice_slider.setRange(0, 0)
        self._slice_slider.valueChanged.connect(self._on_slice_changed)
        nav_layout.addWidget(self._slice_slider, stretch=1)

        self._slice_spin = QSpinBox()
        self._slice_spin.setRange(0, 0)
        self._slice_spin.valueChanged.connect(self._on_slice_changed)
        nav_layout.addWidget(self._slice_spin)

        self._total_slices_label = QLabel("/ 0")
        nav_layout.addWidget(self._total_slices_label)
        layout.addWidget(nav_group)

        # Window/Level controls
        wl_group = QGroupBox("Window/Level")
        wl_layout = QVBoxLayout(wl_group)

        preset_row = QHBoxLayout()
        for name in [AUTO_PRESET, *DEFAULT_WINDOW.window_presets.keys()]:
            btn = QPushButton(name)
            btn.setObjectName("presetButton")
            btn.clicked.connect(lambda checked=False, n=name: self._on_preset(n))
            preset_row.addWidget(btn)
        wl_layout.addLayout(preset_row)

        self._wc_slider, self._wc_label = self._add_slider_row(
            wl_layout, "Level:", -1500, 3000, 40)
        self._ww_slider, self._ww_label = self._add_slider_row(
            wl_layout, "Width:", 1, 4000, 400)
        layout.addWidget(wl_group)

        # Overlay controls
        overlay_group = QGroupBox("Isodose")
        overlay_layout = QHBoxLayout(overlay_group)
        overlay_layout.addWidget(QLabel("Mode:"))
        self._mode_combo = QComboBox()
        self._mode_combo.addItems(list(MODE_LABELS.keys()))
        self._mode_combo.currentTextChanged.connect(self._on_mode_changed)
        overlay_layout.addWidget(self._mode_combo)
        overlay_layout.addStretch()

        for band in DEFAULT_ISODOSE.bands:
            r, g, b = band.color
            swatch = QLabel(band.label or f"{band.fraction:.0%}")
            swatch.setStyleSheet(f"color: rgb({r}, {g}, {b}); font-weight: 600;")
            overlay_layout.addWidget(swatch)
        layout.addWidget(overlay_group)

    def _add_slider_row(self, parent_layout: QVBoxLayout, title: str,
                        minimum: int, maximum: int, value: int):
        row = QHBoxLayout()
        row.addWidget(QLabel(title))
        slider = QSlider(Qt.Horizontal)
        slider.setRange(minimum, maximum)
        slider.setValue(value)
        slider.valueChanged.connect(self._on_window_changed)
        row.addWidget(slider, stretch=1)
        label = QLabel(str(value))
        label.setMinimumWidth(50)
        row.addWidget(label)
        parent_layout.addLayout(row)
        return slider, label

    # ========== Public API ==========

    def set_study(self, study: StudyData) -> None:
        """Show a study, starting at its middle slice with an auto window."""
        num_slices = study.ct.grid.nz
        for widget in (self._slice_slider, self._slice_spin):
            widget.blockSignals(True)
            widget.setRange(0, num_slices - 1)
            widget.blockSignals(False)
        self._total_slices_label.setText(f"/ {num_slices}")

        result = self._viewer.set_study(study)
        self._sync_controls()
        self._publish(result)

    def clear(self) -> None:
        self._viewer.clear()
        self._status_label.setText("No study loaded")

    @property
    def viewer(self) -> SliceViewer:
        return self._viewer

    @property
    def current_slice(self) -> int:
        return self._viewer.current_slice

    @property
    def window_center(self) -> float:
        return self._viewer.window_center

    @property
    def window_width(self) -> float:
        return self._viewer.window_width

    # ========== Slots ==========

    def _on_slice_changed(self, value: int) -> None:
        result = self._run(lambda: self._viewer.render(slice_index=value))
        if result is not None:
            self.slice_changed.emit(self._viewer.current_slice)

    def _on_window_changed(self) -> None:
        self._run(lambda: self._viewer.render(
            window_level=self._wc_slider.value(),
            window_width=self._ww_slider.value(),
        ))

    def _on_preset(self, name: str) -> None:
        if name == AUTO_PRESET:
            self._run(self._viewer.apply_auto_preset)
        else:
            self._run(lambda: self._viewer.apply_preset(name))

    def _on_mode_changed(self, text: str) -> None:
        self._run(lambda: self._viewer.set_mode(MODE_LABELS[text]))

    # ========== Helpers ==========

    def _run(self, request: Callable[[], Optional[RenderResult]]) -> Optional[RenderResult]:
        """Run a viewer request. Render failures are reported, never raised out of a slot."""
        try:
            result = request()
        except IsodoseViewerError as e:
            logging.error(f"Render failed: {e}")
            self._status_label.setText(f"Error: {e}")
            self.render_failed.emit(str(e))
            return None
        self._sync_controls()
        self._publish(result)
        return result

    def _sync_controls(self) -> None:
        """Reflect the viewer state in the widgets without re-triggering renders."""
        state = self._viewer.state
        if state is None:
            return
        self._set_blocked(self._slice_slider, state.slice_index)
        self._set_blocked(self._slice_spin, state.slice_index)
        self._set_blocked(self._wc_slider, int(round(state.window_level)))
        self._set_blocked(self._ww_slider, int(round(state.window_width)))
        self._wc_label.setText(f"{state.window_level:.0f}")
        self._ww_label.setText(f"{state.window_width:.0f}")

    def _set_blocked(self, widget, value: int) -> None:
        widget.blockSignals(True)
        widget.setValue(value)
        widget.blockSignals(False)

    def _publish(self, result: Optional[RenderResult]) -> None:
        if result is None:
            return
        text = str(result.status)
        self._status_label.setText(text)
        self.status_changed.emit(text)
