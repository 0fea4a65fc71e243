"""GUI package for the isodose viewer."""

from .panels import ViewerPanel, LogPanel
from .main_window import MainWindow
from .style import ScientificStyle
from .workers import StudyLoaderWorker, ReportExportWorker

__all__ = [
    "MainWindow",
    "ScientificStyle",
    "ViewerPanel",
    "LogPanel",
    "StudyLoaderWorker",
    "ReportExportWorker",
]
