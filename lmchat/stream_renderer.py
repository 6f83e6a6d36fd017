"""Streaming response rendering: ephemeral thoughts and append-only answers."""

import logging
from typing import Iterable, Optional

from rich.cells import cell_len
from rich.console import Console
from rich.control import Control, ControlType
from rich.text import Text

from .errors import TransportError
from .tag_parser import EventKind, ParseEvent, TagStreamParser, extract_sections
from .themes import get_theme

__all__ = ["StreamRenderer", "render_stream"]

logger = logging.getLogger(__name__)

_ERASE_LINE = Control((ControlType.ERASE_IN_LINE, 2))


def _flatten(text: str) -> str:
    return text.replace("\r", " ").replace("\n", " ")


def _tail_cells(text: str, max_cells: int) -> str:
    """Longest suffix of ``text`` that fits in ``max_cells`` terminal cells."""
    if cell_len(text) <= max_cells:
        return text
    used = 0
    for index in range(len(text) - 1, -1, -1):
        used += cell_len(text[index])
        if used > max_cells:
            return text[index + 1:]
    return text


class StreamRenderer:
    """Projects parser events onto the console.

    Thoughts live on a single line that is redrawn in place and erased as
    soon as an answer shows up or the stream ends.  Answers are written
    verbatim and never erased.
    """

    def __init__(self, console: Console):
        self.console = console
        self._thought = ""
        self._thought_cells = 0
        self._thought_sealed = False
        self._answer_seen = False
        self._line_open = False

    @property
    def answer_seen(self) -> bool:
        return self._answer_seen

    @property
    def thought_visible(self) -> bool:
        return self._thought_cells > 0

    def handle(self, event: ParseEvent) -> None:
        if event.kind is EventKind.ANSWER_START:
            self._clear_thought()
        elif event.kind is EventKind.THOUGHT_CHUNK:
            self._append_thought(event.content)
        elif event.kind is EventKind.THOUGHT_COMPLETE:
            self._draw_thought()
            self._thought_sealed = True
        elif event.kind is EventKind.ANSWER_CHUNK:
            self._answer_seen = True
            self._clear_thought()
            self._write_answer(event.content)
        elif event.kind is EventKind.ANSWER_COMPLETE:
            self._answer_seen = True
            self._clear_thought()
            self._end_line()

    def finish(self, transcript: str) -> None:
        """End of stream: erase thoughts, close the answer line, fall back if needed."""
        self.abort()
        if self._answer_seen:
            return
        answers = extract_sections(transcript).answers
        if answers:
            logger.info("No streamed answer; recovered %d from transcript", len(answers))
        for answer in answers:
            self._write_answer(answer)
            self._end_line()

    def abort(self) -> None:
        """Leave the terminal clean after the stream stops for any reason."""
        self._clear_thought()
        self._end_line()

    # ── Thought line ────────────────────────────

    def _append_thought(self, chunk: str) -> None:
        if self._thought_sealed and self._thought:
            self._thought += " "
        self._thought_sealed = False
        self._thought += chunk
        self._draw_thought()

    def _draw_thought(self) -> None:
        text = _flatten(self._thought).lstrip()
        if not text and not self._thought_cells:
            return
        # An answer line still open would be overwritten by the redraw.
        self._end_line()
        visible = _tail_cells(text, max(1, self.console.width - 1))
        self.console.control(Control.move_to_column(0), _ERASE_LINE)
        self.console.print(
            Text(visible, style=get_theme().THOUGHT),
            end="",
            soft_wrap=True,
        )
        self._thought_cells = cell_len(visible)

    def _clear_thought(self) -> None:
        if self._thought_cells:
            self.console.control(Control.move_to_column(0), _ERASE_LINE)
        self._thought = ""
        self._thought_cells = 0
        self._thought_sealed = False

    # ── Answer text ─────────────────────────────

    def _write_raw(self, chunk: str) -> None:
        """Write a text chunk directly to the underlying stream (no processing)."""
        if not chunk:
            return
        stream = getattr(self.console, "file", None)
        if stream is not None and hasattr(stream, "write"):
            stream.write(chunk)
            if hasattr(stream, "flush"):
                stream.flush()
            return
        self.console.print(chunk, end="", markup=False, highlight=False, soft_wrap=True)

    def _write_answer(self, chunk: str) -> None:
        if not chunk:
            return
        self._write_raw(chunk)
        self._line_open = not chunk.endswith("\n")

    def _end_line(self) -> None:
        if self._line_open:
            self._write_raw("\n")
            self._line_open = False


def render_stream(
    console: Console,
    fragments: Iterable[str],
    *,
    renderer: Optional[StreamRenderer] = None,
) -> str:
    """Parse and render ``fragments`` one at a time; return the full transcript.

    Each fragment is parsed and drawn before the next one is requested.
    Failures of the fragment source surface as ``TransportError`` after the
    terminal has been cleaned up.
    """
    parser = TagStreamParser()
    if renderer is None:
        renderer = StreamRenderer(console)

    try:
        for fragment in fragments:
            for event in parser.feed(fragment):
                renderer.handle(event)
    except (TransportError, KeyboardInterrupt):
        renderer.abort()
        raise
    except Exception as e:
        renderer.abort()
        raise TransportError(f"Streaming error: {type(e).__name__}: {e}") from e

    for event in parser.finish():
        renderer.handle(event)
    transcript = parser.transcript
    renderer.finish(transcript)
    logger.debug("Stream complete: %d chars, answer=%s", len(transcript), renderer.answer_seen)
    return transcript
