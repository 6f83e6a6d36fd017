"""Tests for the incremental <thought>/<answer> parser."""

import pytest

from lmchat.errors import ParserClosedError
from lmchat.tag_parser import (
    EventKind,
    ParseEvent,
    ParseState,
    TagStreamParser,
    extract_sections,
    find_marker,
    parse_fragments,
)

FULL_REPLY = (
    "Sure.<thought>Let me think\nabout it</thought>\n"
    "<answer>The answer\nis 42.</answer> trailing"
)


def _completes(events):
    return (
        [e.content for e in events if e.kind is EventKind.THOUGHT_COMPLETE],
        [e.content for e in events if e.kind is EventKind.ANSWER_COMPLETE],
    )


def _chunks(events, kind):
    return "".join(e.content for e in events if e.kind is kind)


class TestConcreteScenario:

    def test_three_fragments(self):
        events = parse_fragments(["<thou", "ght>hi</thought><ans", "wer>world</answer>"])
        assert events == [
            ParseEvent(EventKind.THOUGHT_CHUNK, "hi"),
            ParseEvent(EventKind.THOUGHT_COMPLETE, "hi"),
            ParseEvent(EventKind.ANSWER_START, ""),
            ParseEvent(EventKind.ANSWER_CHUNK, "world"),
            ParseEvent(EventKind.ANSWER_COMPLETE, "world"),
        ]

    def test_no_marker_text_in_any_event(self):
        events = parse_fragments(["<thou", "ght>hi</thought><ans", "wer>world</answer>"])
        for event in events:
            assert "<" not in event.content
            assert ">" not in event.content

    def test_state_returns_outside(self):
        parser = TagStreamParser()
        parser.feed("<thought>")
        assert parser.state is ParseState.IN_THOUGHT
        parser.feed("x</thought>")
        assert parser.state is ParseState.OUTSIDE
        parser.feed("<answer>")
        assert parser.state is ParseState.IN_ANSWER

    def test_answer_start_on_marker_consumption(self):
        parser = TagStreamParser()
        assert parser.feed("<thought>t</thought><ans") == [
            ParseEvent(EventKind.THOUGHT_CHUNK, "t"),
            ParseEvent(EventKind.THOUGHT_COMPLETE, "t"),
        ]
        assert parser.feed("wer>") == [ParseEvent(EventKind.ANSWER_START, "")]
        assert parser.feed("\n\n") == []


class TestFragmentationInvariance:

    def test_single_fragment(self):
        thoughts, answers = _completes(parse_fragments([FULL_REPLY]))
        assert thoughts == ["Let me think\nabout it"]
        assert answers == ["The answer\nis 42."]

    def test_every_single_split(self):
        expected = extract_sections(FULL_REPLY)
        for i in range(len(FULL_REPLY) + 1):
            events = parse_fragments([FULL_REPLY[:i], FULL_REPLY[i:]])
            assert _completes(events) == (expected.thoughts, expected.answers), i

    def test_every_double_split(self):
        text = "x<thought>ab</thought>y<answer>cd</answer>z"
        expected = (["ab"], ["cd"])
        for i in range(len(text) + 1):
            for j in range(i, len(text) + 1):
                events = parse_fragments([text[:i], text[i:j], text[j:]])
                assert _completes(events) == expected, (i, j)

    def test_byte_by_byte_matches_single_fragment(self):
        whole = parse_fragments([FULL_REPLY])
        single = parse_fragments(list(FULL_REPLY))
        assert _completes(single) == _completes(whole)

    def test_chunks_join_to_raw_section(self):
        events = parse_fragments(list(FULL_REPLY))
        assert _chunks(events, EventKind.THOUGHT_CHUNK) == "Let me think\nabout it"
        assert _chunks(events, EventKind.ANSWER_CHUNK) == "The answer\nis 42."

    def test_chunk_precedes_its_complete(self):
        events = parse_fragments(list(FULL_REPLY))
        kinds = [e.kind for e in events]
        assert kinds.index(EventKind.THOUGHT_COMPLETE) < kinds.index(EventKind.ANSWER_CHUNK)
        assert kinds[-1] is EventKind.ANSWER_COMPLETE

    def test_transcript_is_whole_input(self):
        parser = TagStreamParser()
        for ch in FULL_REPLY:
            parser.feed(ch)
        parser.finish()
        assert parser.transcript == FULL_REPLY


class TestPlaceholder:

    @pytest.mark.parametrize("body", ["...", " ... ", "\n...\n"])
    def test_placeholder_suppressed_streaming(self, body):
        text = f"<thought>{body}</thought><answer>{body}</answer>"
        for events in (parse_fragments(list(text)), parse_fragments([text])):
            assert [e.kind for e in events] == [EventKind.ANSWER_START]

    def test_placeholder_suppressed_static(self):
        sections = extract_sections("<thought>...</thought><answer>real</answer>")
        assert sections.thoughts == []
        assert sections.answers == ["real"]

    def test_text_starting_with_dots_kept(self):
        events = parse_fragments(list("<answer>...more</answer>"))
        assert _chunks(events, EventKind.ANSWER_CHUNK) == "...more"
        assert _completes(events) == ([], ["...more"])

    def test_short_dots_are_content(self):
        assert extract_sections("<answer>..</answer>").answers == [".."]


class TestUntaggedAndMalformed:

    def test_untagged_text_yields_nothing(self):
        text = "Plain reply without any markers, quite long indeed."
        parser = TagStreamParser()
        events = []
        for ch in text:
            events.extend(parser.feed(ch))
            assert len(parser.pending) <= 8
        events.extend(parser.finish())
        assert events == []
        assert parser.transcript == text

    def test_case_insensitive_markers(self):
        sections = extract_sections("<THOUGHT>x</Thought><Answer>y</ANSWER>")
        assert sections.thoughts == ["x"]
        assert sections.answers == ["y"]

    def test_open_marker_inside_tag_is_literal(self):
        sections = extract_sections("<answer>a <answer> b <thought> c</answer>")
        assert sections.answers == ["a <answer> b <thought> c"]
        assert sections.thoughts == []

    def test_stray_close_marker_outside_ignored(self):
        sections = extract_sections("</answer>noise<answer>ok</answer>")
        assert sections.answers == ["ok"]

    def test_multiple_sections(self):
        sections = extract_sections(
            "<thought>one</thought><thought>two</thought><answer>a</answer><answer>b</answer>"
        )
        assert sections.thoughts == ["one", "two"]
        assert sections.answers == ["a", "b"]

    def test_unterminated_section_dropped(self):
        parser = TagStreamParser()
        events = parser.feed("<answer>this never closes")
        assert events[0] == ParseEvent(EventKind.ANSWER_START, "")
        assert all(e.kind is EventKind.ANSWER_CHUNK for e in events[1:])
        assert parser.finish() == []
        assert parser.state is ParseState.OUTSIDE
        assert extract_sections("<answer>this never closes").answers == []

    def test_inside_pending_bounded_by_close_marker(self):
        parser = TagStreamParser()
        parser.feed("<thought>")
        for _ in range(50):
            parser.feed("x")
            assert len(parser.pending) <= len("</thought>") - 1
        parser.feed("<answer>")
        assert parser.state is ParseState.IN_THOUGHT

    def test_empty_fragment_is_noop(self):
        parser = TagStreamParser()
        assert parser.feed("") == []
        assert parser.transcript == ""


class TestLifecycle:

    def test_feed_after_finish_raises(self):
        parser = TagStreamParser()
        parser.finish()
        assert parser.finished
        with pytest.raises(ParserClosedError):
            parser.feed("more")

    def test_finish_twice_raises(self):
        parser = TagStreamParser()
        parser.finish()
        with pytest.raises(ParserClosedError):
            parser.finish()


class TestFindMarker:

    def test_case_insensitive(self):
        assert find_marker("abc</AnSwEr>", "</answer>") == 3

    def test_start_offset(self):
        assert find_marker("<answer><answer>", "<answer>", 1) == 8

    def test_missing(self):
        assert find_marker("nothing here", "<thought>") == -1
