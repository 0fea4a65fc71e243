"""
Background Workers

QThread workers for long-running operations (study loading, report export).
"""

import logging
from pathlib import Path
from typing import Optional

from PySide6.QtCore import QThread, Signal

from core.base import StudyData
from exporters.debug_report import DebugReportExporter
from loaders import load_study, make_phantom_study


class StudyLoaderWorker(QThread):
    """Background worker for loading a DICOM study or a synthetic phantom."""

    progress = Signal(float)
    finished = Signal(object)  # Emits StudyData
    error = Signal(str)

    def __init__(self, directory: Optional[str] = None):
        """
        Args:
            directory: DICOM folder; None loads the built-in phantom
        """
        super().__init__()
        self.directory = directory

    def run(self):
        try:
            self.progress.emit(0.0)

            if self.directory is None:
                logging.info("Building phantom study")
                study = make_phantom_study()
            else:
                logging.info(f"Loading DICOM study from {self.directory}")
                study = load_study(self.directory)

            self.progress.emit(1.0)
            self.finished.emit(study)

        except Exception as e:
            import traceback
            logging.error(f"Loading error: {e}\n{traceback.format_exc()}")
            self.error.emit(str(e))


class ReportExportWorker(QThread):
    """Background worker for writing a debug report."""

    finished = Signal(str)  # Emits written file path
    error = Signal(str)

    def __init__(self, study: StudyData, ct_slice: int, path: str):
        super().__init__()
        self.study = study
        self.ct_slice = ct_slice
        self.path = path

    def run(self):
        try:
            written = DebugReportExporter().export(self.study, self.ct_slice, Path(self.path))
            self.finished.emit(str(written))
        except Exception as e:
            import traceback
            logging.error(f"Export error: {e}\n{traceback.format_exc()}")
            self.error.emit(str(e))
