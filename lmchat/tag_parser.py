"""Incremental parser for ``<thought>`` / ``<answer>`` tagged model output.

The model is asked to reply as::

    <thought>...</thought>
    <answer>...</answer>

Text arrives in fragments whose boundaries mean nothing, so a marker can be
split anywhere.  The parser keeps just enough of the tail to recognise a
split marker and classifies everything else as it arrives:

  - text outside any tag is dropped (it stays in the transcript),
  - text inside a tag is emitted as ``*_CHUNK`` events while streaming and
    once more, whole and trimmed, as a ``*_COMPLETE`` event when the close
    marker arrives,
  - entering an answer also emits ``ANSWER_START`` so a transient thought
    can be cleared before any answer text is known to be real.

``extract_sections()`` is the static variant: it replays a complete text
through a fresh parser, so both paths share one set of rules.
"""

import logging
import string
from enum import Enum
from typing import Iterable, List, NamedTuple

from .errors import ParserClosedError

__all__ = [
    "EventKind",
    "ParseEvent",
    "ParseState",
    "Sections",
    "TagStreamParser",
    "extract_sections",
]

logger = logging.getLogger(__name__)

OPEN_THOUGHT = "<thought>"
CLOSE_THOUGHT = "</thought>"
OPEN_ANSWER = "<answer>"
CLOSE_ANSWER = "</answer>"

# Echo of the format template rather than real content.
PLACEHOLDER = "..."

# ASCII-only folding keeps indices in the folded copy aligned with the original.
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


class ParseState(Enum):
    OUTSIDE = "outside"
    IN_THOUGHT = "in_thought"
    IN_ANSWER = "in_answer"


class EventKind(Enum):
    # Emitted as soon as the open marker of an answer is consumed.
    ANSWER_START = "answer_start"
    THOUGHT_CHUNK = "thought_chunk"
    THOUGHT_COMPLETE = "thought_complete"
    ANSWER_CHUNK = "answer_chunk"
    ANSWER_COMPLETE = "answer_complete"


class ParseEvent(NamedTuple):
    kind: EventKind
    content: str


class Sections(NamedTuple):
    thoughts: List[str]
    answers: List[str]


_OPENERS = (
    (OPEN_THOUGHT, ParseState.IN_THOUGHT),
    (OPEN_ANSWER, ParseState.IN_ANSWER),
)
_CLOSERS = {
    ParseState.IN_THOUGHT: CLOSE_THOUGHT,
    ParseState.IN_ANSWER: CLOSE_ANSWER,
}
_CHUNK_KINDS = {
    ParseState.IN_THOUGHT: EventKind.THOUGHT_CHUNK,
    ParseState.IN_ANSWER: EventKind.ANSWER_CHUNK,
}
_COMPLETE_KINDS = {
    ParseState.IN_THOUGHT: EventKind.THOUGHT_COMPLETE,
    ParseState.IN_ANSWER: EventKind.ANSWER_COMPLETE,
}

# Longest tail that could still be the start of an open marker.
_OUTSIDE_KEEP = max(len(OPEN_THOUGHT), len(OPEN_ANSWER)) - 1


def find_marker(text: str, marker: str, start: int = 0) -> int:
    """Case-insensitive ``str.find`` for a lower-case ASCII marker."""
    return text.translate(_ASCII_LOWER).find(marker, start)


def _may_be_placeholder(content: str) -> bool:
    return PLACEHOLDER.startswith(content.strip())


class TagStreamParser:
    """Single-pass state machine over a stream of text fragments.

    Call ``feed()`` for every fragment and ``finish()`` once at end of
    stream; both return the events produced by that call, in order.
    """

    def __init__(self):
        self.state = ParseState.OUTSIDE
        self._pending = ""
        self._section = ""
        self._emitted = 0
        self._received: List[str] = []
        self._finished = False

    @property
    def transcript(self) -> str:
        """Everything fed so far, tagged or not."""
        return "".join(self._received)

    @property
    def pending(self) -> str:
        """Received text not yet classified."""
        return self._pending

    @property
    def finished(self) -> bool:
        return self._finished

    def feed(self, fragment: str) -> List[ParseEvent]:
        if self._finished:
            raise ParserClosedError()
        if not fragment:
            return []
        self._received.append(fragment)
        self._pending += fragment

        events: List[ParseEvent] = []
        while True:
            if self.state is ParseState.OUTSIDE:
                advanced = self._scan_outside(events)
            else:
                advanced = self._scan_inside(events)
            if not advanced:
                return events

    def finish(self) -> List[ParseEvent]:
        """End of stream. An unterminated section is dropped, not emitted."""
        if self._finished:
            raise ParserClosedError()
        self._finished = True
        if self.state is not ParseState.OUTSIDE:
            logger.debug(
                "Stream ended inside %s; dropping %d unterminated chars",
                self.state.value, len(self._section) + len(self._pending),
            )
        self.state = ParseState.OUTSIDE
        self._pending = ""
        self._reset_section()
        return []

    # ── States ──────────────────────────────────

    def _scan_outside(self, events: List[ParseEvent]) -> bool:
        folded = self._pending.translate(_ASCII_LOWER)
        start = -1
        marker = ""
        target = None
        for opener, state in _OPENERS:
            index = folded.find(opener)
            if index != -1 and (start == -1 or index < start):
                start, marker, target = index, opener, state

        if target is None:
            if len(self._pending) > _OUTSIDE_KEEP:
                self._pending = self._pending[-_OUTSIDE_KEEP:]
            return False

        self._pending = self._pending[start + len(marker):]
        self.state = target
        self._reset_section()
        if target is ParseState.IN_ANSWER:
            events.append(ParseEvent(EventKind.ANSWER_START, ""))
        return True

    def _scan_inside(self, events: List[ParseEvent]) -> bool:
        closer = _CLOSERS[self.state]
        index = find_marker(self._pending, closer)
        if index == -1:
            safe = len(self._pending) - (len(closer) - 1)
            if safe > 0:
                self._section += self._pending[:safe]
                self._pending = self._pending[safe:]
                self._flush_chunk(events, final=False)
            return False

        self._section += self._pending[:index]
        self._pending = self._pending[index + len(closer):]
        content = self._section.strip()
        if content != PLACEHOLDER:
            self._flush_chunk(events, final=True)
            events.append(ParseEvent(_COMPLETE_KINDS[self.state], content))
        self.state = ParseState.OUTSIDE
        self._reset_section()
        return True

    # ── Helpers ─────────────────────────────────

    def _flush_chunk(self, events: List[ParseEvent], final: bool) -> None:
        # Hold output back while the section could still turn out to be "...".
        if not final and _may_be_placeholder(self._section):
            return
        chunk = self._section[self._emitted:]
        if chunk:
            events.append(ParseEvent(_CHUNK_KINDS[self.state], chunk))
            self._emitted = len(self._section)

    def _reset_section(self) -> None:
        self._section = ""
        self._emitted = 0


def parse_fragments(fragments: Iterable[str]) -> List[ParseEvent]:
    """Run a fresh parser over ``fragments`` and return every event."""
    parser = TagStreamParser()
    events: List[ParseEvent] = []
    for fragment in fragments:
        events.extend(parser.feed(fragment))
    events.extend(parser.finish())
    return events


def extract_sections(text: str) -> Sections:
    """Static extraction: all complete thought and answer sections of ``text``."""
    events = parse_fragments([text])
    return Sections(
        thoughts=[e.content for e in events if e.kind is EventKind.THOUGHT_COMPLETE],
        answers=[e.content for e in events if e.kind is EventKind.ANSWER_COMPLETE],
    )
