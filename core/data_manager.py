"""
Data Manager

Centralized study state management for the application.
"""

import logging
from typing import Optional

from PySide6.QtCore import QObject, Signal

from .base import StudyData


class DataManager(QObject):
    """
    Manages application data state.

    Provides a centralized location for:
    - The loaded study (CT, dose, plan)
    - State change notifications via signals
    """

    # Signals
    study_changed = Signal(object)  # Emits StudyData or None

    def __init__(self, parent=None):
        super().__init__(parent)

        self._study: Optional[StudyData] = None

    @property
    def study(self) -> Optional[StudyData]:
        """Current study."""
        return self._study

    @property
    def has_ct(self) -> bool:
        """Whether a CT image is loaded."""
        return self._study is not None and self._study.has_ct

    @property
    def has_dose(self) -> bool:
        """Whether a dose volume is loaded."""
        return self._study is not None and self._study.has_dose

    def set_study(self, study: Optional[StudyData]) -> None:
        """
        Set the current study.

        Args:
            study: StudyData instance or None to clear
        """
        self._study = study
        self.study_changed.emit(study)
        if study is None:
            logging.info("Study cleared")
            return
        if study.has_ct:
            logging.info(f"CT loaded: {study.ct.grid.describe()}")
        if study.has_dose:
            logging.info(f"Dose loaded: {study.dose.grid.describe()}")
        else:
            logging.warning("Study has no dose volume; CT-only rendering")

    def clear(self) -> None:
        """Clear all data."""
        self.set_study(None)
