import dataclasses
import os

import pytest

from core.base import VolumeSource
from core.errors import DataUnavailableError

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PySide6.QtWidgets")

from gui.main_window import MainWindow  # noqa: E402
from gui.panels import ViewerPanel  # noqa: E402


@pytest.fixture(scope="module")
def app():
    """Fixture for QApplication."""
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


@pytest.fixture
def panel(app, small_study):
    panel = ViewerPanel()
    panel.set_study(small_study)
    return panel


def test_panel_shows_study_status(panel):
    assert panel.current_slice == 10
    assert panel._status_label.text().startswith("CT Z: 10 | Dose Z: 5")


def test_slider_drives_slice(panel):
    emitted = []
    panel.slice_changed.connect(emitted.append)
    panel._slice_slider.setValue(0)
    assert panel.current_slice == 0
    assert emitted == [0]
    assert "Out of range" in panel._status_label.text()
    assert panel._slice_spin.value() == 0


def test_preset_button_updates_window(panel):
    panel._on_preset("Bone")
    assert (panel.window_center, panel.window_width) == (300.0, 1500.0)
    assert panel._ww_slider.value() == 1500


class FailingCTSource(VolumeSource):
    """CT source whose read of one slice fails like a lost file."""

    def __init__(self, inner, bad_slice):
        self._inner = inner
        self._bad_slice = bad_slice

    @property
    def grid(self):
        return self._inner.grid

    @property
    def hu_offset(self):
        return self._inner.hu_offset

    def get_slice_voxels(self, slice_index):
        if slice_index == self._bad_slice:
            raise DataUnavailableError("disk gone")
        return self._inner.get_slice_voxels(slice_index)


def test_slice_read_failure_is_reported_not_raised(app, small_study):
    study = dataclasses.replace(small_study, ct=FailingCTSource(small_study.ct, bad_slice=3))
    panel = ViewerPanel()
    panel.set_study(study)
    errors = []
    panel.render_failed.connect(errors.append)

    panel._slice_slider.setValue(3)

    assert errors == ["disk gone"]
    assert panel._status_label.text() == "Error: disk gone"
    assert not panel.viewer.is_rendering

    panel._slice_slider.setValue(5)
    assert panel.current_slice == 5
    assert panel._status_label.text().startswith("CT Z: 5")


def test_main_window_displays_loaded_study(app, small_study):
    window = MainWindow()
    try:
        assert window.windowTitle() == "Isodose Viewer"
        window._data_manager.set_study(small_study)
        assert window._export_action.isEnabled()
        assert window.statusBar().currentMessage().startswith("CT Z: 10")
    finally:
        window._log_panel.detach()
        window.close()
