"""
Isodose Classification

Maps physical dose to discrete isodose bands relative to the reference dose.
"""

from dataclasses import dataclass
import math
from typing import Iterable, Optional, Tuple
import numpy as np


Color = Tuple[int, int, int]


@dataclass(frozen=True)
class IsodoseBand:
    """
    One isodose level.

    Attributes:
        fraction: Threshold relative to the reference dose (1.0 = 100%)
        color: RGB display color
        label: Legend text
    """
    fraction: float
    color: Color
    label: str = ""

    def threshold(self, reference_dose_gy: float) -> float:
        """Absolute threshold in Gy."""
        return reference_dose_gy * self.fraction


class IsodoseClassifier:
    """
    Classifies doses into the hottest band whose threshold they reach.

    The band table is sorted by fraction, highest first, on construction so
    the supplied order never changes the result.
    """

    def __init__(self, bands: Iterable[IsodoseBand]):
        self._bands: Tuple[IsodoseBand, ...] = tuple(
            sorted(bands, key=lambda b: b.fraction, reverse=True)
        )
        if not self._bands:
            raise ValueError("At least one isodose band is required")

    @property
    def bands(self) -> Tuple[IsodoseBand, ...]:
        """Bands, highest fraction first."""
        return self._bands

    def classify(self, dose_gy: float, reference_dose_gy: float) -> Optional[IsodoseBand]:
        """
        Find the hottest band met or exceeded by ``dose_gy``.

        Returns:
            The band, or None when the dose is below every threshold
        """
        if not (math.isfinite(dose_gy) and math.isfinite(reference_dose_gy)):
            return None
        for band in self._bands:
            if dose_gy >= band.threshold(reference_dose_gy):
                return band
        return None

    def classify_array(self, dose_gy: np.ndarray, reference_dose_gy: float) -> np.ndarray:
        """
        Vectorised ``classify``.

        Returns:
            int array, same shape as ``dose_gy``, holding the index into
            ``bands`` of each sample's band, or -1 for no band
        """
        dose_gy = np.asarray(dose_gy, dtype=np.float64)
        result = np.full(dose_gy.shape, -1, dtype=np.int32)
        if not math.isfinite(reference_dose_gy):
            return result
        finite = np.isfinite(dose_gy)
        # Walk from the coolest band up so hotter bands overwrite
        for index in range(len(self._bands) - 1, -1, -1):
            hit = finite & (dose_gy >= self._bands[index].threshold(reference_dose_gy))
            result[hit] = index
        return result

    def contour_array(self, dose_gy: np.ndarray, reference_dose_gy: float,
                      tolerance: float = 0.006) -> np.ndarray:
        """
        Vectorised contour-mode classification.

        A sample belongs to a band when it lies within ``tolerance`` (a
        fraction of the reference dose) of that band's threshold. When two
        lines are that close the hotter one wins.
        """
        dose_gy = np.asarray(dose_gy, dtype=np.float64)
        result = np.full(dose_gy.shape, -1, dtype=np.int32)
        if not math.isfinite(reference_dose_gy):
            return result
        finite = np.isfinite(dose_gy)
        for index in range(len(self._bands) - 1, -1, -1):
            band = self._bands[index]
            hit = finite & is_near_band(dose_gy, reference_dose_gy, band.fraction, tolerance)
            result[hit] = index
        return result


def is_near_band(dose_gy, reference_dose_gy: float, fraction: float,
                 tolerance_fraction: float = 0.006):
    """
    Whether a dose lies on an isodose line.

    ``abs(dose - reference * fraction) < reference * tolerance_fraction``.
    Accepts scalars or arrays.
    """
    near = np.abs(dose_gy - reference_dose_gy * fraction) < reference_dose_gy * tolerance_fraction
    if np.ndim(near) == 0:
        return bool(near)
    return near
