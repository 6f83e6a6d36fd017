"""Plain output for NO_COLOR terminals."""

from .base import Theme


class NoColorTheme(Theme):
    key = "no_color"
    # Attributes only: thoughts stay distinguishable without color.
    THOUGHT = "dim"
