"""Unit tests for transcript export and import."""
import re
from datetime import datetime, timezone

from hypothesis import given
from hypothesis import strategies as st

from vibedeck.workspace import (
    ConversationState,
    Message,
    MessageRole,
    Severity,
    export_session,
    export_transcript,
    parse_transcript,
    write_transcript,
)

_FIXED = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)

# Non-blank lines, some shaped like transcript headers; content never holds
# the blank-line separator
_plain_line = st.text(
    alphabet=st.characters(exclude_categories=("Cs",), exclude_characters="\r\n"),
    min_size=1,
    max_size=30,
)
_header_line = st.builds(
    lambda role, rest: f"[{_FIXED.isoformat()}] {role.value}: {rest}",
    st.sampled_from(list(MessageRole)),
    _plain_line,
)
_content = st.lists(st.one_of(_plain_line, _header_line), min_size=1, max_size=4).map("\n".join)
_messages = st.lists(
    st.builds(
        Message,
        role=st.sampled_from(list(MessageRole)),
        content=_content,
        timestamp=st.just(_FIXED),
    ),
    max_size=8,
)


class TestExportTranscript:
    """Tests for the flat text format."""

    def test_format(self):
        messages = [
            Message(role=MessageRole.USER, content="hi", timestamp=_FIXED),
            Message(role=MessageRole.MODEL, content="hello", timestamp=_FIXED),
        ]

        assert export_transcript(messages) == (
            "[2025-01-02T03:04:05+00:00] user: hi\n\n"
            "[2025-01-02T03:04:05+00:00] model: hello"
        )

    def test_empty(self):
        assert export_transcript([]) == ""
        assert parse_transcript("") == []

    def test_multiline_content_survives(self):
        messages = [
            Message(role=MessageRole.MODEL, content="line one\n\nline three", timestamp=_FIXED),
            Message(role=MessageRole.SYSTEM, content="end", timestamp=_FIXED),
        ]

        parsed = parse_transcript(export_transcript(messages))

        assert [m.content for m in parsed] == ["line one\n\nline three", "end"]

    def test_header_shaped_line_stays_in_message(self):
        content = "Log:\n[2025-01-01T00:00:00+00:00] user: hi"
        messages = [
            Message(role=MessageRole.MODEL, content=content, timestamp=_FIXED),
            Message(role=MessageRole.USER, content="next", timestamp=_FIXED),
        ]

        parsed = parse_transcript(export_transcript(messages))

        assert [(m.role, m.content) for m in parsed] == [
            (MessageRole.MODEL, content),
            (MessageRole.USER, "next"),
        ]

    @given(_messages)
    def test_round_trip_preserves_order_and_roles(self, messages: list[Message]):
        """Property test: export then parse keeps order, roles and content."""
        parsed = parse_transcript(export_transcript(messages))

        assert [(m.role, m.content) for m in parsed] == [(m.role, m.content) for m in messages]
        assert all(m.timestamp == _FIXED for m in parsed)


class TestWriteTranscript:
    """Tests for writing transcripts to disk."""

    def test_file_name_and_contents(self, tmp_path):
        messages = [Message(role=MessageRole.USER, content="hi", timestamp=_FIXED)]

        path = write_transcript(messages, tmp_path)

        assert re.fullmatch(r"manus-logs-\d+\.txt", path.name)
        assert path.read_text(encoding="utf-8") == export_transcript(messages)

    def test_export_session_logs_success(self, tmp_path):
        state = ConversationState()

        path = export_session(state, tmp_path)

        assert path.exists()
        line = state.terminal_lines[-1]
        assert (line.content, line.severity) == (">> Session logs exported.", Severity.SUCCESS)
