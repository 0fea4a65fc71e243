"""
Isodose Viewer

Main entry point for the application.
"""

import argparse
import sys
from PySide6.QtWidgets import QApplication
from PySide6.QtCore import Qt
from PySide6.QtGui import QFont

from config import DEFAULT_GUI
from gui.main_window import MainWindow
from gui.style import ScientificStyle
import logging


def setup_logging():
    """Configure logging to stdout."""
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="CT viewer with RT dose isodose overlay")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("study", nargs="?", help="DICOM folder with CT, RT Dose and RT Plan")
    source.add_argument("--phantom", action="store_true", help="Start with the synthetic phantom study")
    return parser.parse_args(argv)


def main():
    """Application entry point."""
    setup_logging()
    args = parse_args()

    # Enable High DPI scaling
    QApplication.setHighDpiScaleFactorRoundingPolicy(
        Qt.HighDpiScaleFactorRoundingPolicy.PassThrough
    )

    app = QApplication(sys.argv[:1])
    app.setApplicationName(DEFAULT_GUI.window_title)
    app.setApplicationVersion("1.0")
    app.setOrganizationName("Research")

    app.setFont(QFont(DEFAULT_GUI.font_family, DEFAULT_GUI.font_size))
    ScientificStyle.apply(app)

    window = MainWindow()
    window.show()

    if args.phantom:
        window.load_phantom()
    elif args.study:
        window.load_study(args.study)

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
