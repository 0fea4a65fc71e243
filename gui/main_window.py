"""
Main Window

The main application window for the isodose viewer.
"""

import logging
from typing import Optional

from PySide6.QtWidgets import (
    QMainWindow, QFileDialog, QStatusBar,
    QMessageBox, QDockWidget, QProgressDialog
)
from PySide6.QtCore import Qt, QThread, Slot
from PySide6.QtGui import QAction

from config import DEFAULT_GUI
from core.base import StudyData
from core.data_manager import DataManager
from core.errors import IsodoseViewerError
from .panels import ViewerPanel, LogViewerPanel
from .workers import StudyLoaderWorker, ReportExportWorker


class MainWindow(QMainWindow):
    """Main application window."""

    def __init__(self):
        super().__init__()

        self._data_manager = DataManager(self)
        self._worker: Optional[QThread] = None
        self._progress_dialog: Optional[QProgressDialog] = None

        self._setup_ui()
        self._setup_menu()
        self._connect_signals()

    def _setup_ui(self) -> None:
        """Set up the main window UI."""
        self.setWindowTitle(DEFAULT_GUI.window_title)
        self.setMinimumSize(*DEFAULT_GUI.min_size)
        self.resize(*DEFAULT_GUI.window_size)

        self._viewer_panel = ViewerPanel()
        self.setCentralWidget(self._viewer_panel)

        # Log dock
        self._log_panel = LogViewerPanel()
        log_dock = QDockWidget("Log", self)
        log_dock.setWidget(self._log_panel)
        log_dock.setAllowedAreas(Qt.BottomDockWidgetArea | Qt.RightDockWidgetArea)
        self.addDockWidget(Qt.BottomDockWidgetArea, log_dock)

        # Status bar
        self._status_bar = QStatusBar()
        self.setStatusBar(self._status_bar)

        self._status_bar.showMessage("Ready")

    def _setup_menu(self) -> None:
        """Set up the menu bar."""
        menubar = self.menuBar()

        # File menu
        file_menu = menubar.addMenu("File")

        open_action = QAction("Open DICOM Study...", self)
        open_action.setShortcut("Ctrl+O")
        open_action.triggered.connect(self._on_open_study)
        file_menu.addAction(open_action)

        phantom_action = QAction("Load Phantom", self)
        phantom_action.setShortcut("Ctrl+P")
        phantom_action.triggered.connect(self.load_phantom)
        file_menu.addAction(phantom_action)

        file_menu.addSeparator()

        self._export_action = QAction("Export Debug Report...", self)
        self._export_action.setShortcut("Ctrl+E")
        self._export_action.setEnabled(False)
        self._export_action.triggered.connect(self._on_export_report)
        file_menu.addAction(self._export_action)

        file_menu.addSeparator()

        exit_action = QAction("Exit", self)
        exit_action.setShortcut("Ctrl+Q")
        exit_action.triggered.connect(self.close)
        file_menu.addAction(exit_action)

        # Help menu
        help_menu = menubar.addMenu("Help")

        about_action = QAction("About", self)
        about_action.triggered.connect(self._on_about)
        help_menu.addAction(about_action)

    def _connect_signals(self) -> None:
        """Connect widget signals."""
        self._data_manager.study_changed.connect(self._on_study_changed)
        self._viewer_panel.status_changed.connect(self._status_bar.showMessage)
        self._viewer_panel.render_failed.connect(self._on_render_failed)

    # ========== Helper Methods ==========

    def _create_progress_dialog(self, title: str) -> QProgressDialog:
        """Create and configure a modal progress dialog."""
        dialog = QProgressDialog(title, "Cancel", 0, 100, self)
        dialog.setWindowModality(Qt.WindowModal)
        dialog.setAutoClose(False)
        dialog.setAutoReset(False)
        dialog.setCancelButton(None)  # Workers don't support interruption
        dialog.show()
        return dialog

    def _close_progress_dialog(self) -> None:
        """Close and clean up the progress dialog."""
        if self._progress_dialog:
            self._progress_dialog.close()
            self._progress_dialog = None

    def _show_error(self, title: str, message: str) -> None:
        """Display an error message and restore UI state."""
        self._close_progress_dialog()
        self._status_bar.showMessage(f"Error: {message}")
        QMessageBox.critical(self, title, f"An error occurred:\n\n{message}")

    def _worker_busy(self) -> bool:
        if self._worker is not None and self._worker.isRunning():
            QMessageBox.warning(
                self,
                "Task Running",
                "Please wait for the current task to complete."
            )
            return True
        return False

    # ========== Loading ==========

    def _on_open_study(self) -> None:
        """Handle File > Open DICOM Study."""
        directory = QFileDialog.getExistingDirectory(self, "Select DICOM Study Folder")
        if directory:
            self.load_study(directory)

    def load_phantom(self) -> None:
        """Load the built-in synthetic study."""
        self.load_study(None)

    def load_study(self, directory: Optional[str]) -> None:
        """Load a DICOM study folder in the background; None loads the phantom."""
        if self._worker_busy():
            return

        self._status_bar.showMessage("Loading study...")
        self._progress_dialog = self._create_progress_dialog("Loading Study...")

        self._worker = StudyLoaderWorker(directory)
        self._worker.progress.connect(self._on_load_progress)
        self._worker.finished.connect(self._on_load_finished)
        self._worker.error.connect(self._on_load_error)
        self._worker.start()

    @Slot(float)
    def _on_load_progress(self, progress: float) -> None:
        if self._progress_dialog:
            self._progress_dialog.setValue(int(progress * 100))

    @Slot(object)
    def _on_load_finished(self, study: StudyData) -> None:
        self._close_progress_dialog()
        self._data_manager.set_study(study)

    @Slot(str)
    def _on_load_error(self, error_msg: str) -> None:
        self._show_error("Loading Error", error_msg)

    @Slot(str)
    def _on_render_failed(self, error_msg: str) -> None:
        self._show_error("Render Error", error_msg)

    @Slot(object)
    def _on_study_changed(self, study: Optional[StudyData]) -> None:
        """Show the new study, or clear the view."""
        if study is None:
            self._viewer_panel.clear()
            self._export_action.setEnabled(False)
            self._status_bar.showMessage("Ready")
            return
        try:
            self._viewer_panel.set_study(study)
        except IsodoseViewerError as e:
            logging.error(f"Cannot display study: {e}")
            self._show_error("Display Error", str(e))
            return
        self._export_action.setEnabled(True)

    # ========== Export ==========

    def _on_export_report(self) -> None:
        """Write a debug report for the current slice."""
        study = self._data_manager.study
        if study is None:
            QMessageBox.warning(self, "No Data", "Please load a study first.")
            return
        if self._worker_busy():
            return

        path, _ = QFileDialog.getSaveFileName(
            self,
            "Save Debug Report",
            "isodose_debug.txt",
            "Text Files (*.txt);;All Files (*.*)"
        )
        if not path:
            return

        self._worker = ReportExportWorker(study, self._viewer_panel.current_slice, path)
        self._worker.finished.connect(self._on_export_finished)
        self._worker.error.connect(self._on_export_error)
        self._worker.start()

    @Slot(str)
    def _on_export_finished(self, path: str) -> None:
        self._status_bar.showMessage(f"Debug report written: {path}")

    @Slot(str)
    def _on_export_error(self, error_msg: str) -> None:
        self._show_error("Export Error", error_msg)

    def _on_about(self) -> None:
        """Show about dialog."""
        QMessageBox.about(
            self,
            "About Isodose Viewer",
            "<h3>Isodose Viewer</h3>"
            "<p>Version 1.0</p>"
            "<p>Overlays RT dose isodose bands on CT slices.</p>"
            "<ul>"
            "<li>DICOM CT, RT Dose and RT Plan import</li>"
            "<li>Wash and contour isodose display</li>"
            "<li>Window/level presets</li>"
            "<li>Geometry and calibration debug report</li>"
            "</ul>"
        )

    def closeEvent(self, event) -> None:
        self._log_panel.detach()
        super().closeEvent(event)
