"""GitHub Dark palette, the default."""

from .base import Theme


class GithubDarkTheme(Theme):
    key = "github_dark"

    ACCENT = "#7FA6D9"
    DIM = "#6E7681"
    TEXT = "#E6EDF3"
    SUCCESS = "#57DB9C"
    ERROR = "#F85149"
    THOUGHT = "italic #6E7681"
