"""
Error Taxonomy

Exceptions raised by the dose overlay pipeline. Every one of them is
recoverable: the compositor turns them into a CT-only or empty-overlay render
and the host turns I/O failures into a user-facing message.
"""


class IsodoseViewerError(Exception):
    """Base class for all viewer errors."""


class MissingDataError(IsodoseViewerError):
    """CT image or dose volume is absent."""


class DataUnavailableError(IsodoseViewerError):
    """A volume source cannot provide the requested slice."""


class OutOfRangeSliceError(IsodoseViewerError):
    """A mapped dose slice index falls outside the dose grid."""

    def __init__(self, slice_index: int, num_slices: int):
        super().__init__(
            f"Slice index {slice_index} outside [0, {num_slices})"
        )
        self.slice_index = slice_index
        self.num_slices = num_slices


class DegenerateCalibrationError(IsodoseViewerError):
    """Calibration or prescription inputs cannot produce a finite dose."""


class HostIOError(IsodoseViewerError):
    """Reading or writing host files failed (study loading, debug export)."""
