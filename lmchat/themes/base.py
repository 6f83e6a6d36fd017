"""Palette shared by all themes."""


class Theme:
    """Rich style strings for each role in the chat UI.

    Subclasses override the class attributes; an empty string means
    "terminal default".
    """

    key = "base"

    ACCENT = ""
    DIM = ""
    TEXT = ""
    SUCCESS = ""
    ERROR = ""

    # Ephemeral thought line while the model reasons.
    THOUGHT = "dim"
