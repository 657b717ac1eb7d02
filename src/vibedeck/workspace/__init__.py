"""Conversation state and simulated workspace surfaces."""

from .models import (
    Attachment,
    BrowserSurface,
    Message,
    MessageRole,
    PreviewSurface,
    Severity,
    Surface,
    SurfaceKind,
    TerminalLine,
    TerminalSurface,
    WebSource,
    Workspace,
)
from .state import ConversationState
from .transcript import export_session, export_transcript, parse_transcript, write_transcript

__all__ = [
    "Attachment",
    "BrowserSurface",
    "ConversationState",
    "Message",
    "MessageRole",
    "PreviewSurface",
    "Severity",
    "Surface",
    "SurfaceKind",
    "TerminalLine",
    "TerminalSurface",
    "WebSource",
    "Workspace",
    "export_session",
    "export_transcript",
    "parse_transcript",
    "write_transcript",
]
