"""
Debug Report Exporter

Writes a plain-text diagnostic report of the study geometry, dose
calibration and slice mapping, for checking a misaligned or mis-scaled
overlay outside the viewer.
"""

from pathlib import Path
from datetime import datetime
import logging
from typing import List, Optional

from config import DEFAULT_ISODOSE, IsodoseConfig
from core.base import StudyData, VolumeSource
from core.errors import DataUnavailableError, DegenerateCalibrationError, HostIOError
from dose.conversion import DoseCalibration, calibrate_from_source, prescription_to_gray
from dose.reference import resolve_reference_dose
from geometry import dot


RULE = "=" * 82


class DebugReportExporter:
    """
    Exports a diagnostic text dump for one study and CT slice.

    Sections: plan, CT geometry, dose geometry, raw-to-Gy scaling, slice
    mapping and a central x-axis dose profile.
    """

    def __init__(self, config: IsodoseConfig = DEFAULT_ISODOSE, profile_step: int = 5):
        """
        Initialize exporter.

        Args:
            config: Probe raw values used for the scaling section
            profile_step: Sample every n-th dose cell along the profile
        """
        self.config = config
        self.profile_step = profile_step

    def build_report(self, study: StudyData, ct_slice: int) -> str:
        """Build the report text."""
        lines: List[str] = [
            RULE,
            f"=== ISODOSE VIEWER DEBUG REPORT - {datetime.now():%Y-%m-%d %H:%M:%S} ===",
            RULE,
        ]
        self._plan_section(lines, study)

        lines.append("")
        lines.append("--- 2. IMAGE GEOMETRY (CT) ---")
        if study.ct is None:
            lines.append("IMAGE IS MISSING!")
            return "\n".join(lines) + "\n"
        self._geometry_section(lines, study.ct)

        lines.append("")
        lines.append("--- 3. DOSE GEOMETRY ---")
        if not study.has_dose:
            lines.append("DOSE IS MISSING!")
            return "\n".join(lines) + "\n"
        self._geometry_section(lines, study.dose)

        calibration = self._scaling_section(lines, study)
        self._mapping_section(lines, study, ct_slice, calibration)
        return "\n".join(lines) + "\n"

    def export(self, study: StudyData, ct_slice: int, path: str | Path) -> Path:
        """
        Write the report to ``path``.

        Raises:
            HostIOError: If the file cannot be written
        """
        path = Path(path)
        text = self.build_report(study, ct_slice)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        except OSError as e:
            raise HostIOError(f"Error writing debug report {path}: {e}") from e
        logging.info(f"Debug report written: {path}")
        return path

    # ========== Sections ==========

    def _plan_section(self, lines: List[str], study: StudyData) -> None:
        plan = study.plan
        lines.append("")
        lines.append("--- 1. PLAN & CONTEXT ---")
        lines.append(f"Plan ID: {plan.plan_id or '(none)'}")
        lines.append(f"Total Dose: {plan.prescription} {plan.prescription_unit.value}")
        lines.append(f"Plan Normalization: {plan.normalization_percent}%")
        for key, value in study.metadata.items():
            lines.append(f"{key}: {value}")

    @staticmethod
    def _geometry_section(lines: List[str], source: VolumeSource) -> None:
        grid = source.grid
        lines.append(f"Size (X, Y, Z): {grid.nx}, {grid.ny}, {grid.nz}")
        rx, ry, rz = grid.resolution
        lines.append(f"Res (X, Y, Z):  {rx:.4f}, {ry:.4f}, {rz:.4f} mm")
        ox, oy, oz = grid.origin
        lines.append(f"Origin (mm):    ({ox:.2f}, {oy:.2f}, {oz:.2f})")
        for name, vec in (("X", grid.x_direction), ("Y", grid.y_direction), ("Z", grid.z_direction)):
            lines.append(f"{name}-Direction:    ({vec[0]:.4f}, {vec[1]:.4f}, {vec[2]:.4f})")
        if source.hu_offset is not None:
            lines.append(f"HU offset (from metadata): {source.hu_offset}")

    def _scaling_section(self, lines: List[str], study: StudyData) -> Optional[DoseCalibration]:
        lines.append("")
        lines.append("--- 4. SCALING FACTORS (Raw Int -> Physical Gy) ---")
        low, high = self.config.probe_low_raw, self.config.probe_high_raw
        for raw in (low, high):
            value, unit = study.dose_values.voxel_to_physical(raw)
            lines.append(f"Voxel({raw}) -> {value} {unit.value}")

        try:
            prescription_gy = prescription_to_gray(study.plan.prescription,
                                                   study.plan.prescription_unit)
            calibration = calibrate_from_source(study.dose_values, prescription_gy, low, high)
            reference_gy = resolve_reference_dose(
                prescription_gy, study.plan.normalization_percent,
                min_reference_gy=self.config.min_reference_dose_gy,
                rescale_below=self.config.normalization_rescale_below,
            )
        except DegenerateCalibrationError as e:
            lines.append(f"!!! Calibration failed: {e} !!!")
            return None

        lines.append(f"Calculated Offset (native unit): {calibration.offset}")
        lines.append(f"Calculated Scale (native unit/raw): {calibration.scale:.8E}")
        lines.append(f"Unit to Gy factor: {calibration.unit_to_gray}")
        lines.append(f"Reference dose (100%): {reference_gy:.4f} Gy")
        return calibration

    def _mapping_section(self, lines: List[str], study: StudyData, ct_slice: int,
                         calibration: Optional[DoseCalibration]) -> None:
        ct_grid, dose_grid = study.ct.grid, study.dose.grid
        lines.append("")
        lines.append("--- 5. SLICE MAPPING (Current View) ---")
        lines.append(f"Current CT Slice Index: {ct_slice}")

        plane = ct_grid.slice_center_world(ct_slice)
        lines.append(f"CT Slice Z World Pos: {plane[2]:.2f} mm")
        z_diff = dot(plane - dose_grid.origin, dose_grid.z_direction)
        dose_slice = ct_grid.map_slice_index(dose_grid, ct_slice)
        lines.append(f"Diff from Dose Origin Z: {z_diff:.2f} mm")
        lines.append(f"Calculated Dose Slice Index (Double): {z_diff / dose_grid.resolution[2]:.4f}")
        lines.append(f"Calculated Dose Slice Index (Int):    {dose_slice}")

        if not dose_grid.contains_slice(dose_slice):
            lines.append("!!! WARNING: Dose slice index is outside the dose matrix !!!")
            return
        if calibration is None:
            return

        lines.append("")
        lines.append("--- 6. CENTRAL AXIS X-PROFILE (Dose Matrix) ---")
        lines.append("Format: [X-Index] | RawValue | CalculatedGy | WorldX (mm)")
        try:
            voxels = study.dose.get_slice_voxels(dose_slice)
        except DataUnavailableError as e:
            lines.append(f"!!! Dose slice unavailable: {e} !!!")
            return

        center_y = dose_grid.ny // 2
        for x in range(0, dose_grid.nx, self.profile_step):
            raw = int(voxels[center_y, x])
            dose_gy = calibration.to_physical_gray(raw)
            world = dose_grid.index_to_world((x, center_y, dose_slice))
            # Keep the log short: zero dose only every 20th cell
            if dose_gy > 0.05 or x % 20 == 0:
                lines.append(f"[{x:3d}] | {raw:6d} | {dose_gy:6.3f} Gy | X: {world[0]:6.1f}")
