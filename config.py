"""
Isodose Viewer Configuration

Contains constants and default settings for the dose overlay engine.
"""

from dataclasses import dataclass, field
from typing import Tuple

from dose.isodose import IsodoseBand


# Unsigned storage convention: air stored near 32768 instead of -1000 HU
UNSIGNED_HU_OFFSET: int = 32768


@dataclass
class IsodoseConfig:
    """Configuration for isodose classification and overlay painting."""
    bands: Tuple[IsodoseBand, ...] = field(default_factory=lambda: (
        IsodoseBand(1.07, (255, 0, 0), "107%"),   # Red
        IsodoseBand(0.95, (0, 255, 0), "95%"),    # Lime
        IsodoseBand(0.80, (0, 255, 255), "80%"),  # Cyan
        IsodoseBand(0.50, (0, 0, 255), "50%"),    # Blue
    ))
    wash_alpha: int = 0x4C  # ~30% opacity
    contour_alpha: int = 0xFF
    contour_tolerance: float = 0.006  # Fraction of the reference dose

    # Widely separated probes keep the raw->dose scale numerically stable
    probe_low_raw: int = 0
    probe_high_raw: int = 10000

    min_reference_dose_gy: float = 0.1
    normalization_rescale_below: float = 5.0


@dataclass
class WindowConfig:
    """Configuration for CT window/level display."""
    auto_window_width: float = 400.0
    hu_offset_threshold: int = 30000
    unsigned_hu_offset: int = UNSIGNED_HU_OFFSET
    min_window_width: float = 1.0

    # Window/Level presets
    window_presets: dict = field(default_factory=lambda: {
        "Soft Tissue": {"center": 40, "width": 400},
        "Lung": {"center": -600, "width": 1600},
        "Bone": {"center": 300, "width": 1500},
    })


@dataclass
class GUIConfig:
    """Configuration for GUI appearance."""
    window_title: str = "Isodose Viewer"
    window_size: Tuple[int, int] = (1200, 900)
    min_size: Tuple[int, int] = (900, 700)

    # Typography
    font_family: str = "Segoe UI"
    font_size: int = 10


# Default configurations
DEFAULT_ISODOSE = IsodoseConfig()
DEFAULT_WINDOW = WindowConfig()
DEFAULT_GUI = GUIConfig()
