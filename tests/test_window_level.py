import math

import numpy as np
import pytest

from config import WindowConfig
from rendering import (
    auto_window, center_voxel, detect_hu_offset, get_preset, render_grayscale, to_gray8
)


def test_window_edges_map_to_black_and_white():
    assert to_gray8(-160, 0, 40.0, 400.0) == 0
    assert to_gray8(240, 0, 40.0, 400.0) == 255
    assert to_gray8(-1000, 0, 40.0, 400.0) == 0
    assert to_gray8(3000, 0, 40.0, 400.0) == 255


@pytest.mark.parametrize("level, width", [(40.0, 400.0), (-600.0, 1500.0), (400.0, 1800.0), (50.0, 350.0)])
def test_top_of_window_is_full_white(level, width):
    assert to_gray8(level + width / 2, 0, level, width) == 255
    assert to_gray8(level - width / 2, 0, level, width) == 0


def test_narrow_positive_width_is_kept():
    # 0.15 HU above the window floor of a 0.5 HU window
    assert to_gray8(0, 0, 0.1, 0.5) == 76


def test_hu_offset_is_subtracted():
    assert to_gray8(32768 + 40, 32768, 40.0, 400.0) == to_gray8(40, 0, 40.0, 400.0)


def test_grayscale_is_monotonic_in_raw_value():
    raw = np.arange(-2000, 2000, 7)
    gray = to_gray8(raw, 0, 40.0, 400.0)
    assert gray.dtype == np.uint8
    assert np.all(np.diff(gray.astype(int)) >= 0)


@pytest.mark.parametrize("width", [0.0, -50.0, math.nan, math.inf])
def test_degenerate_width_stays_in_byte_range(width):
    gray = to_gray8(np.array([-100, 40, 100]), 0, 40.0, width)
    assert gray.min() >= 0 and gray.max() <= 255


def test_nan_level_does_not_crash():
    assert 0 <= to_gray8(0, 0, math.nan, 400.0) <= 255


def test_render_grayscale_keeps_shape():
    voxels = np.zeros((7, 9), dtype=np.int32)
    assert render_grayscale(voxels, 0, 40.0, 400.0).shape == (7, 9)


def test_detect_hu_offset():
    assert detect_hu_offset(32768) == 32768
    assert detect_hu_offset(30001) == 32768
    assert detect_hu_offset(30000) == 0
    assert detect_hu_offset(-1000) == 0


def test_detect_hu_offset_threshold_is_configurable():
    config = WindowConfig(hu_offset_threshold=1000, unsigned_hu_offset=1024)
    assert detect_hu_offset(1500, config) == 1024


def test_auto_window_centers_on_voxel():
    assert auto_window(32808, 32768) == (40.0, 400.0)


def test_center_voxel():
    voxels = np.arange(20).reshape(4, 5)
    assert center_voxel(voxels) == voxels[2, 2]


@pytest.mark.parametrize("name, expected", [
    ("Soft Tissue", (40.0, 400.0)),
    ("Lung", (-600.0, 1600.0)),
    ("Bone", (300.0, 1500.0)),
])
def test_presets(name, expected):
    assert get_preset(name) == expected


def test_unknown_preset():
    with pytest.raises(KeyError):
        get_preset("Brain")
