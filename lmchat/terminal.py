"""Raw keyboard input and cursor-addressable output for the line editor."""

import select
from collections import deque
from contextlib import contextmanager
from typing import Deque, Iterator, List, Optional

from prompt_toolkit.input import Input, create_input
from prompt_toolkit.key_binding import KeyPress
from rich.console import Console
from rich.control import Control

__all__ = ["Terminal"]

# How long a lone ESC may wait for the rest of an escape sequence.
ESCAPE_TIMEOUT = 0.05

_BRACKETED_PASTE_ON = "\x1b[?2004h"
_BRACKETED_PASTE_OFF = "\x1b[?2004l"


def _wait_readable(fileno: int, timeout: Optional[float]) -> bool:
    ready, _, _ = select.select([fileno], [], [], timeout)
    return bool(ready)


class Terminal:
    """Key source plus character grid.

    Output goes through a Rich ``Console``; keys come from prompt_toolkit's
    input layer, decoded into ``KeyPress`` objects.
    """

    def __init__(self, console: Optional[Console] = None, input: Optional[Input] = None):
        self.console = console or Console()
        self._input = input
        self._keys: Deque[KeyPress] = deque()

    @property
    def width(self) -> int:
        """Current width in cells, re-read on every call."""
        return max(1, self.console.width)

    def write(self, text: str) -> None:
        if not text:
            return
        stream = self.console.file
        stream.write(text)
        stream.flush()

    def move_cursor(self, rows: int, column: int) -> None:
        """Move ``rows`` up (negative) or down, then to ``column``."""
        column = min(max(0, column), self.width - 1)
        self.console.control(Control.move_to_column(column, rows))

    @contextmanager
    def raw_mode(self) -> Iterator[None]:
        inp = self._get_input()
        with inp.raw_mode():
            if self.console.is_terminal:
                self.write(_BRACKETED_PASTE_ON)
            try:
                yield
            finally:
                if self.console.is_terminal:
                    self.write(_BRACKETED_PASTE_OFF)

    def read_key(self) -> KeyPress:
        """Block until the next key press is available."""
        while not self._keys:
            self._keys.extend(self._poll())
        return self._keys.popleft()

    def _poll(self) -> List[KeyPress]:
        inp = self._get_input()
        keys = inp.read_keys()
        if keys:
            return keys
        if inp.closed:
            raise EOFError
        if _wait_readable(inp.fileno(), ESCAPE_TIMEOUT):
            return []
        # Nothing more arrived: a buffered ESC really was the Escape key.
        keys = inp.flush_keys()
        if not keys:
            _wait_readable(inp.fileno(), None)
        return keys

    def _get_input(self) -> Input:
        if self._input is None:
            self._input = create_input()
        return self._input
