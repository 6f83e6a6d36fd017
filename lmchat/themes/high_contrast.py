"""High contrast palette."""

from .base import Theme


class HighContrastTheme(Theme):
    key = "high_contrast"

    ACCENT = "#00BFFF"
    DIM = "#AAAAAA"
    TEXT = "#FFFFFF"
    SUCCESS = "#00FF00"
    ERROR = "#FF0000"
    # Bright enough to read, still clearly not the answer.
    THOUGHT = "italic #AAAAAA"
