"""Startup banner and configuration panel."""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .config import Config
from .themes import get_theme


def render_banner(console: Console) -> None:
    theme = get_theme()
    console.print(Text.assemble(
        ("lmchat", f"bold {theme.ACCENT}".strip()),
        (f" v{__version__} · terminal chat", theme.DIM),
    ))


def render_startup(console: Console, config: Config) -> None:
    theme = get_theme()
    preset = config.get_active_preset()
    key_ok = bool(preset.resolve_api_key())

    console.print(Text.assemble(
        ("Using model ", theme.DIM),
        (preset.model, "bold"),
        (" on endpoint ", theme.DIM),
        preset.api_base or "(provider default)",
        (" • key ", theme.DIM),
        ("✓", theme.SUCCESS) if key_ok else ("✗", theme.ERROR),
    ))
    console.print(Text.assemble(("config ", theme.DIM), config.config_source))
    console.print(Text(
        f"Type '{config.exit_command}' to quit · ↑/↓ history · Esc clears the line",
        style=theme.DIM,
    ))
    console.print()


def show_config_panel(console: Console, config: Config) -> None:
    theme = get_theme()
    table = Table(show_header=False, padding=(0, 2), box=None)
    table.add_column("Key", style=f"bold {theme.ACCENT}".strip(), min_width=14)
    table.add_column("Value", style=theme.TEXT)
    for key, value in config.summary().items():
        table.add_row(key, str(value))
    console.print(Panel(table, title=Text(" Configuration ", style=f"bold {theme.ACCENT}".strip()),
                        title_align="left", border_style=theme.DIM, padding=(0, 1)))
