"""
Log Viewer Panel

Shows application log records, including the per-render status summaries.
"""

import logging
from typing import Optional

from PySide6.QtWidgets import (
    QWidget, QVBoxLayout, QTextEdit, QHBoxLayout,
    QPushButton, QComboBox, QLabel
)
from PySide6.QtCore import Signal, Slot, QObject

from ..style import ScientificStyle


LEVEL_COLORS = (
    (logging.ERROR, "error"),
    (logging.WARNING, "warning"),
    (logging.INFO, "text"),
    (logging.DEBUG, "text_secondary"),
)


class LogEmitter(QObject):
    """Carries log records across threads as a Qt signal."""
    log_message = Signal(str, int)


class QLogHandler(logging.Handler):
    """Logging handler that forwards each formatted record as a signal."""

    def __init__(self, parent=None):
        super().__init__()
        self.emitter = LogEmitter(parent)

    def emit(self, record):
        self.emitter.log_message.emit(self.format(record), record.levelno)


class LogViewerPanel(QWidget):
    """Panel for viewing application logs."""

    def __init__(self, parent: Optional[QWidget] = None):
        super().__init__(parent)
        self._setup_ui()
        self._setup_logging()

    def _setup_ui(self) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        toolbar = QHBoxLayout()
        toolbar.setContentsMargins(4, 4, 4, 0)
        toolbar.addWidget(QLabel("Level:"))

        self._level_combo = QComboBox()
        self._level_combo.addItems(["DEBUG", "INFO", "WARNING", "ERROR"])
        self._level_combo.setCurrentText("INFO")
        self._level_combo.currentTextChanged.connect(self._on_level_changed)
        toolbar.addWidget(self._level_combo)
        toolbar.addStretch()

        clear_btn = QPushButton("Clear")
        clear_btn.setObjectName("presetButton")
        clear_btn.clicked.connect(self.clear_logs)
        toolbar.addWidget(clear_btn)
        layout.addLayout(toolbar)

        self._text_edit = QTextEdit()
        self._text_edit.setReadOnly(True)
        self._text_edit.setLineWrapMode(QTextEdit.NoWrap)
        layout.addWidget(self._text_edit)

    def _setup_logging(self) -> None:
        self._handler = QLogHandler(self)
        self._handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(levelname)s - %(message)s',
            datefmt='%H:%M:%S'
        ))
        self._handler.emitter.log_message.connect(self._append_log)
        logging.getLogger().addHandler(self._handler)

    def detach(self) -> None:
        """Remove the handler from the root logger."""
        logging.getLogger().removeHandler(self._handler)

    def _on_level_changed(self, text: str) -> None:
        logging.getLogger().setLevel(getattr(logging, text))
        logging.info(f"Log level set to {text}")

    @Slot(str, int)
    def _append_log(self, msg: str, levelno: int) -> None:
        color = ScientificStyle.get_color("text_secondary")
        for level, name in LEVEL_COLORS:
            if levelno >= level:
                color = ScientificStyle.get_color(name)
                break
        self._text_edit.append(f'<span style="color:{color};">{msg}</span>')

    def clear_logs(self) -> None:
        """Clear the log display."""
        self._text_edit.clear()
