"""Plain-text transcript export.

Format: one block per message, ``[ISO-8601 timestamp] role: content``,
blocks separated by a blank line. ``parse_transcript`` reverses it.
"""

import re
import time
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from ..config import EXPORT_LOG_LINE
from .models import Message, MessageRole, Severity
from .state import ConversationState

_SEPARATOR = "\n\n"
_HEADER = re.compile(
    r"(?:\A|(?<=\n\n))"
    r"\[(?P<timestamp>\d{4}-\d{2}-\d{2}T[^\]\n]+)\] (?P<role>user|model|system): "
)


def export_transcript(messages: Sequence[Message]) -> str:
    """Serialize messages in conversation order."""
    return _SEPARATOR.join(
        f"[{message.timestamp.isoformat()}] {message.role.value}: {message.content}"
        for message in messages
    )


def parse_transcript(text: str) -> list[Message]:
    """Rebuild messages from an exported transcript.

    A header is only recognised at the start of the text or right after the
    blank-line separator, so header-shaped lines inside a message survive.
    Content holding a blank line followed by such a line is still split.
    """
    headers = list(_HEADER.finditer(text))
    messages = []
    for index, header in enumerate(headers):
        end = headers[index + 1].start() if index + 1 < len(headers) else len(text)
        content = text[header.end():end]
        if index + 1 < len(headers) and content.endswith(_SEPARATOR):
            content = content[: -len(_SEPARATOR)]
        messages.append(Message(
            role=MessageRole(header["role"]),
            content=content,
            timestamp=datetime.fromisoformat(header["timestamp"]),
        ))
    return messages


def write_transcript(messages: Sequence[Message], directory: str | Path = ".") -> Path:
    """Write the transcript to ``manus-logs-{epoch_ms}.txt`` in ``directory``."""
    path = Path(directory) / f"manus-logs-{int(time.time() * 1000)}.txt"
    path.write_text(export_transcript(messages), encoding="utf-8")
    return path


def export_session(state: ConversationState, directory: str | Path = ".") -> Path:
    """Write the conversation transcript and note the export in the terminal log."""
    path = write_transcript(state.messages, directory)
    state.add_log(EXPORT_LOG_LINE, Severity.SUCCESS)
    return path
