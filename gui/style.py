"""
Viewer Theme Stylesheet

Qt stylesheet for the isodose viewer: light control panels around a black
image area, so the grayscale CT and translucent dose colors read correctly.
"""

# Color palette
COLORS = {
    "background": "#FFFFFF",
    "background_alt": "#F5F6F8",
    "viewport": "#000000",
    "border": "#DADDE2",
    "text": "#2B2B2B",
    "text_secondary": "#6B6B6B",
    "text_disabled": "#A0A0A0",
    "accent": "#2962FF",
    "accent_light": "#E3ECFF",
    "accent_pressed": "#1A4BD6",
    "warning": "#FB8C00",
    "error": "#E53935",
}

# Font settings
FONTS = {
    "family": "Segoe UI, Roboto, Helvetica Neue, Arial, sans-serif",
    "mono": "Consolas, DejaVu Sans Mono, monospace",
    "size": "10pt",
    "size_small": "9pt",
}


def get_stylesheet() -> str:
    """Get the complete Qt stylesheet for the viewer theme."""
    return f"""
    QWidget {{
        background-color: {COLORS["background"]};
        color: {COLORS["text"]};
        font-family: {FONTS["family"]};
        font-size: {FONTS["size"]};
    }}

    QMenuBar {{
        border-bottom: 1px solid {COLORS["border"]};
    }}

    QMenuBar::item:selected, QMenu::item:selected {{
        background-color: {COLORS["accent_light"]};
        color: {COLORS["accent"]};
    }}

    QPushButton {{
        background-color: {COLORS["accent"]};
        color: white;
        border: none;
        border-radius: 4px;
        padding: 6px 12px;
    }}

    QPushButton:pressed {{
        background-color: {COLORS["accent_pressed"]};
    }}

    QPushButton:disabled {{
        background-color: {COLORS["border"]};
        color: {COLORS["text_disabled"]};
    }}

    QPushButton#presetButton {{
        background-color: {COLORS["background_alt"]};
        color: {COLORS["text"]};
        border: 1px solid {COLORS["border"]};
    }}

    QPushButton#presetButton:hover {{
        border-color: {COLORS["accent"]};
        color: {COLORS["accent"]};
    }}

    QComboBox {{
        border: 1px solid {COLORS["border"]};
        border-radius: 4px;
        padding: 4px 8px;
    }}

    QSlider::groove:horizontal {{
        height: 4px;
        background: {COLORS["border"]};
        border-radius: 2px;
    }}

    QSlider::handle:horizontal {{
        width: 14px;
        margin: -6px 0;
        border-radius: 7px;
        background: {COLORS["accent"]};
    }}

    QSlider::sub-page:horizontal {{
        background: {COLORS["accent"]};
        border-radius: 2px;
    }}

    QGroupBox {{
        border: 1px solid {COLORS["border"]};
        border-radius: 6px;
        margin-top: 14px;
        padding-top: 8px;
        font-weight: 600;
    }}

    QGroupBox::title {{
        subcontrol-origin: margin;
        left: 10px;
        padding: 0 4px;
    }}

    QLabel#statusLabel {{
        font-family: {FONTS["mono"]};
        color: {COLORS["text_secondary"]};
    }}

    QTextEdit {{
        background-color: {COLORS["background_alt"]};
        font-family: {FONTS["mono"]};
        font-size: {FONTS["size_small"]};
        border: 1px solid {COLORS["border"]};
    }}

    QStatusBar {{
        background-color: {COLORS["background_alt"]};
        border-top: 1px solid {COLORS["border"]};
        color: {COLORS["text_secondary"]};
    }}
    """


class ScientificStyle:
    """Helper class for applying the viewer theme."""

    @staticmethod
    def apply(app) -> None:
        """
        Apply the viewer theme to a QApplication.

        Args:
            app: QApplication instance
        """
        app.setStyleSheet(get_stylesheet())

    @staticmethod
    def get_color(name: str) -> str:
        """Get a color value by name."""
        return COLORS.get(name, COLORS["text"])
