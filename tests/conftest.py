"""Shared fixtures for lmchat tests."""

import io
import os
from collections import deque
from contextlib import contextmanager

import pytest
from prompt_toolkit.key_binding import KeyPress
from prompt_toolkit.keys import Keys
from rich.console import Console


@pytest.fixture
def tmp_dir(tmp_path):
    """Provide a temporary directory and cd into it."""
    orig = os.getcwd()
    os.chdir(tmp_path)
    yield tmp_path
    os.chdir(orig)


@pytest.fixture
def isolated_home(tmp_path, monkeypatch):
    """Point the global config dir at a temp dir so tests never touch ~/.lmchat."""
    from lmchat import config as config_module

    home = tmp_path / "home"
    monkeypatch.setattr(config_module, "CONFIG_DIR", home)
    monkeypatch.setattr(config_module, "CONFIG_FILE", home / "config.yml")
    monkeypatch.delenv("LMCHAT_MODEL", raising=False)
    monkeypatch.delenv("LMCHAT_VERBOSE", raising=False)
    return home


@pytest.fixture
def sample_config_data():
    """Minimal .lmchat.conf.yml data dict."""
    return {
        "active-model": "local",
        "system-prompt": "Be brief.",
        "exit-command": "quit",
        "prompt": ">> ",
        "theme": "github_light",
        "verbose": False,
        "log-file": "",
        "models": {
            "local": {
                "provider": "local",
                "model": "openai/test-model",
                "description": "Local test model",
                "temperature": 0.2,
                "max-tokens": 1024,
                "api-base": "http://localhost:1234/v1",
                "api-key": "lm-studio",
            }
        },
    }


@pytest.fixture
def string_console():
    """A Rich console writing plain text into a StringIO buffer."""
    buf = io.StringIO()
    return Console(file=buf, force_terminal=False, width=80), buf


class FakeTerminal:
    """Scripted key source over a tiny screen model.

    Writes land in a grid; ``\\n`` moves to the start of the next row as a
    tty with output post-processing does.  A cursor at ``col == width``
    means the row is full and the next printable character wraps.
    """

    def __init__(self, keys=(), width=80):
        self.width = width
        self._keys = deque(keys)
        self.rows = {}
        self.row = 0
        self.col = 0
        self.raw_entries = 0

    @contextmanager
    def raw_mode(self):
        self.raw_entries += 1
        yield

    def read_key(self):
        if not self._keys:
            raise EOFError
        return self._keys.popleft()

    def write(self, text):
        for ch in text:
            if ch == "\r":
                self.col = 0
            elif ch == "\n":
                self.row += 1
                self.col = 0
            else:
                if self.col >= self.width:
                    self.row += 1
                    self.col = 0
                line = self.rows.setdefault(self.row, [])
                while len(line) <= self.col:
                    line.append(" ")
                line[self.col] = ch
                self.col += 1

    def move_cursor(self, rows, column):
        self.row = max(0, self.row + rows)
        self.col = min(max(0, column), self.width - 1)

    def line(self, row):
        return "".join(self.rows.get(row, [])).rstrip()

    @property
    def cursor(self):
        return (self.row, self.col)


def type_text(text):
    return [KeyPress(ch, ch) for ch in text]


def press(key, times=1):
    return [KeyPress(key) for _ in range(times)]


ENTER = KeyPress(Keys.ControlM, "\r")


@pytest.fixture
def make_terminal():
    def _make(keys=(), width=80):
        return FakeTerminal(keys, width=width)
    return _make
