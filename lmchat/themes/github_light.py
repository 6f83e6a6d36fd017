"""GitHub Light palette for light terminal backgrounds."""

from .base import Theme


class GithubLightTheme(Theme):
    key = "github_light"

    ACCENT = "#0969DA"
    DIM = "#57606A"
    TEXT = "#24292F"
    SUCCESS = "#1A7F37"
    ERROR = "#CF222E"
    THOUGHT = "italic #8C959F"
