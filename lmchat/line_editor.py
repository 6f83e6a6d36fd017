"""Single-line input editor with cursor motion and in-memory history.

The editor owns the input line while the user types: it decodes key presses
into edits of an ``EditorBuffer``, redraws ``prompt + buffer`` from a fixed
anchor after every key, and records committed lines in a ``HistoryLog``
that lives as long as the editor does.
"""

from typing import Callable, Dict, Iterator, List, Optional

from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from rich.cells import cell_len

from .terminal import Terminal

__all__ = ["EditorBuffer", "HistoryLog", "LineEditor"]

_COMMIT_KEYS = {Keys.ControlM, Keys.ControlJ}


def _is_word_char(ch: str) -> bool:
    return ch.isalnum() or ch == "_"


class EditorBuffer:
    """Text being edited plus a cursor offset, ``0 <= cursor <= len(text)``."""

    def __init__(self, text: str = ""):
        self.text = text
        self.cursor = len(text)

    def __len__(self) -> int:
        return len(self.text)

    def set_cursor(self, position: int) -> None:
        self.cursor = min(max(0, position), len(self.text))

    def replace(self, text: str) -> None:
        self.text = text
        self.cursor = len(text)

    def insert(self, text: str) -> None:
        self.text = self.text[:self.cursor] + text + self.text[self.cursor:]
        self.cursor += len(text)

    def delete_before(self) -> bool:
        if self.cursor == 0:
            return False
        self.text = self.text[:self.cursor - 1] + self.text[self.cursor:]
        self.cursor -= 1
        return True

    def delete_after(self) -> bool:
        if self.cursor >= len(self.text):
            return False
        self.text = self.text[:self.cursor] + self.text[self.cursor + 1:]
        return True

    def move_left(self) -> None:
        self.set_cursor(self.cursor - 1)

    def move_right(self) -> None:
        self.set_cursor(self.cursor + 1)

    def move_word_left(self) -> None:
        """Jump to the start of the word left of the cursor."""
        if self.cursor == 0:
            return
        i = self.cursor - 1
        while i > 0 and not _is_word_char(self.text[i]):
            i -= 1
        while i > 0 and _is_word_char(self.text[i - 1]):
            i -= 1
        self.cursor = i

    def move_word_right(self) -> None:
        """Jump past the current word to the start of the next one."""
        n = len(self.text)
        i = self.cursor
        while i < n and _is_word_char(self.text[i]):
            i += 1
        while i < n and not _is_word_char(self.text[i]):
            i += 1
        self.cursor = i

    def home(self) -> None:
        self.cursor = 0

    def end(self) -> None:
        self.cursor = len(self.text)

    def clear(self) -> None:
        self.replace("")


class HistoryLog:
    """Committed input lines, oldest first.

    ``position`` is ``-1`` while a new line is being edited, otherwise the
    index of the entry currently shown.  Entering navigation saves the line
    that was being typed so walking past the newest entry can restore it.
    """

    def __init__(self, entries: Optional[List[str]] = None):
        self._entries: List[str] = []
        self.position = -1
        self._snapshot = ""
        for entry in entries or []:
            self.record(entry)

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    @property
    def entries(self) -> tuple:
        return tuple(self._entries)

    @property
    def navigating(self) -> bool:
        return self.position != -1

    def record(self, line: str) -> bool:
        """Append ``line`` unless it is blank or repeats the newest entry."""
        if not line.strip():
            return False
        if self._entries and self._entries[-1] == line:
            return False
        self._entries.append(line)
        return True

    def previous(self, current: str) -> Optional[str]:
        """Step back one entry; stays on the oldest. ``None`` if history is empty."""
        if not self._entries:
            return None
        if self.position == -1:
            self._snapshot = current
            self.position = len(self._entries) - 1
        elif self.position > 0:
            self.position -= 1
        return self._entries[self.position]

    def next(self) -> Optional[str]:
        """Step forward; past the newest entry the saved line comes back."""
        if self.position == -1:
            return None
        if self.position < len(self._entries) - 1:
            self.position += 1
            return self._entries[self.position]
        snapshot = self._snapshot
        self.reset_navigation()
        return snapshot

    def reset_navigation(self) -> None:
        self.position = -1
        self._snapshot = ""


class LineEditor:
    """Reads one line at a time from a raw terminal."""

    def __init__(self, terminal: Terminal, history: Optional[HistoryLog] = None):
        self.terminal = terminal
        self.history = history if history is not None else HistoryLog()
        self._buffer = EditorBuffer()
        self._prompt = ""
        self._cursor_row = 0
        self._last_cells = 0
        # True when the last render left the cursor at the start of a fresh row.
        self._row_opened = False
        self._bindings: Dict[str, Callable[[], None]] = {
            Keys.Left: self._buffer_op("move_left"),
            Keys.Right: self._buffer_op("move_right"),
            Keys.ControlLeft: self._buffer_op("move_word_left"),
            Keys.ControlRight: self._buffer_op("move_word_right"),
            Keys.Home: self._buffer_op("home"),
            Keys.End: self._buffer_op("end"),
            Keys.ControlA: self._buffer_op("home"),
            Keys.ControlE: self._buffer_op("end"),
            Keys.ControlH: self._buffer_op("delete_before"),
            Keys.Delete: self._buffer_op("delete_after"),
            Keys.Escape: self._buffer_op("clear"),
            Keys.ControlU: self._buffer_op("clear"),
            Keys.Up: self._history_previous,
            Keys.Down: self._history_next,
        }

    @property
    def buffer(self) -> EditorBuffer:
        return self._buffer

    def read_line(self, prompt: str = "> ") -> str:
        """Block until Enter; return the committed text (may be blank)."""
        self._prompt = prompt
        self._buffer = EditorBuffer()
        self._cursor_row = 0
        self._last_cells = 0
        self.history.reset_navigation()

        with self.terminal.raw_mode():
            self.terminal.move_cursor(0, 0)
            self._render()
            while True:
                key_press = self.terminal.read_key()
                if key_press.key in _COMMIT_KEYS:
                    return self._commit()
                self.handle_key(key_press)

    def handle_key(self, key_press: KeyPress) -> None:
        key = key_press.key
        if key == Keys.ControlC:
            self._finish_line()
            raise KeyboardInterrupt
        if key == Keys.ControlD:
            if not self._buffer.text:
                self._finish_line()
                raise EOFError
            self._buffer.delete_after()
        elif key in self._bindings:
            self._bindings[key]()
        elif key == Keys.BracketedPaste:
            self._buffer.insert(key_press.data.replace("\r\n", " ").replace("\n", " ").replace("\r", " "))
        elif not isinstance(key, Keys) and len(key) == 1 and key.isprintable():
            self._buffer.insert(key)
        else:
            return
        self._render()

    # ── Key handlers ────────────────────────────

    def _buffer_op(self, name: str) -> Callable[[], None]:
        # Bound late so read_line() can swap in a fresh buffer.
        return lambda: getattr(self._buffer, name)()

    def _history_previous(self) -> None:
        entry = self.history.previous(self._buffer.text)
        if entry is not None:
            self._buffer.replace(entry)

    def _history_next(self) -> None:
        entry = self.history.next()
        if entry is not None:
            self._buffer.replace(entry)

    def _commit(self) -> str:
        self._finish_line()
        text = self._buffer.text
        self.history.record(text)
        self.history.reset_navigation()
        return text

    def _finish_line(self) -> None:
        self._buffer.end()
        self._render()
        if not self._row_opened:
            self.terminal.write("\r\n")
        self._cursor_row = 0
        self._last_cells = 0

    # ── Rendering ───────────────────────────────

    def _render(self) -> None:
        """Redraw ``prompt + buffer`` from the anchor and place the cursor."""
        width = self.terminal.width
        full = self._prompt + self._buffer.text
        cells = cell_len(full)
        blank = max(0, self._last_cells - cells)

        self.terminal.move_cursor(-self._cursor_row, 0)
        self.terminal.write(full + " " * blank)

        written = cells + blank
        end_row = (written - 1) // width if written else 0
        target = cell_len(self._prompt + self._buffer.text[:self._buffer.cursor])
        target_row, target_col = divmod(target, width)
        self._row_opened = target_row > end_row
        if self._row_opened:
            # The line exactly fills its last row; open the next one.
            self.terminal.write("\r\n")
            end_row += 1
            target_row = end_row
            target_col = 0
        self.terminal.move_cursor(target_row - end_row, target_col)

        self._cursor_row = target_row
        self._last_cells = cells
