"""Color themes for the chat UI."""

import os
from typing import Dict, List, Optional, Type

from .base import Theme
from .github_dark import GithubDarkTheme
from .github_light import GithubLightTheme
from .high_contrast import HighContrastTheme
from .no_color import NoColorTheme

_THEMES: Dict[str, Type[Theme]] = {
    cls.key: cls
    for cls in (GithubDarkTheme, GithubLightTheme, HighContrastTheme, NoColorTheme)
}
_ALIASES = {"dark": "github_dark", "light": "github_light"}

_current_theme: Optional[Theme] = None


def get_theme() -> Theme:
    """Return the active theme, defaulting to GitHub Dark (or no color under NO_COLOR)."""
    global _current_theme
    if _current_theme is None:
        _current_theme = NoColorTheme() if os.environ.get("NO_COLOR") else GithubDarkTheme()
    return _current_theme


def set_theme(name: str) -> bool:
    """Activate ``name``; NO_COLOR in the environment overrides any choice."""
    global _current_theme
    if os.environ.get("NO_COLOR"):
        _current_theme = NoColorTheme()
        return True

    key = name.lower()
    theme_class = _THEMES.get(_ALIASES.get(key, key))
    if theme_class is None:
        return False
    _current_theme = theme_class()
    return True


def list_themes() -> List[str]:
    return list(_THEMES)


__all__ = ["Theme", "get_theme", "set_theme", "list_themes"]
