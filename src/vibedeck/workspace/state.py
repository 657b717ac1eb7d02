"""Mutable conversation state shared by the agent loop and the UI.

The state is the single record the loop writes to and presentation reads
from. Messages and terminal lines are append-only; the workspace is replaced
wholesale on every transition so readers never observe a half-updated
surface.
"""

import json
from collections.abc import Callable, Iterable, Sequence
from datetime import datetime, timezone

from ..config import (
    BROWSER_LOADING_TITLE,
    BROWSER_LOADING_URL,
    BROWSER_RESULTS_TITLE,
    BROWSER_RESULTS_URL,
    INITIAL_TERMINAL_LINES,
    RESET_MESSAGE,
    RESET_TERMINAL_LINES,
    WELCOME_MESSAGE,
)
from .models import (
    Attachment,
    BrowserSurface,
    Message,
    MessageRole,
    PreviewSurface,
    Severity,
    SurfaceKind,
    TerminalLine,
    WebSource,
    Workspace,
)

StateListener = Callable[[str], None]


class ConversationState:
    """Messages, terminal log, workspace surfaces and pending attachments.

    Listeners registered with ``add_listener`` are called with a short event
    name ("messages", "terminal", "workspace", "attachments", "thinking",
    "reset") after each transition.
    """

    def __init__(
        self,
        messages: Iterable[Message] | None = None,
        terminal_lines: Iterable[TerminalLine] | None = None,
    ):
        if messages is None:
            messages = [Message(role=MessageRole.MODEL, content=WELCOME_MESSAGE)]
        if terminal_lines is None:
            terminal_lines = [
                TerminalLine(content=content, severity=Severity(severity))
                for content, severity in INITIAL_TERMINAL_LINES
            ]
        self._messages: list[Message] = list(messages)
        self._terminal_lines: list[TerminalLine] = list(terminal_lines)
        self._workspace = Workspace()
        self._pending: list[Attachment] = []
        self._open_handles: set[str] = set()
        self._is_thinking = False
        self._listeners: list[StateListener] = []

    # -- observation ------------------------------------------------------

    def add_listener(self, listener: StateListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _notify(self, event: str) -> None:
        for listener in list(self._listeners):
            listener(event)

    # -- read access ------------------------------------------------------

    @property
    def messages(self) -> Sequence[Message]:
        return tuple(self._messages)

    @property
    def terminal_lines(self) -> Sequence[TerminalLine]:
        return tuple(self._terminal_lines)

    @property
    def workspace(self) -> Workspace:
        return self._workspace

    @property
    def pending_attachments(self) -> Sequence[Attachment]:
        return tuple(self._pending)

    @property
    def open_handles(self) -> frozenset[str]:
        """Preview handles of staged attachments that have not been released."""
        return frozenset(self._open_handles)

    @property
    def is_thinking(self) -> bool:
        return self._is_thinking

    # -- messages and log -------------------------------------------------

    def add_message(
        self,
        role: MessageRole,
        content: str,
        attachments: Sequence[Attachment] = (),
        is_error: bool = False,
    ) -> Message:
        message = Message(
            role=role,
            content=content,
            attachments=tuple(attachments),
            is_error=is_error,
        )
        self._messages.append(message)
        self._notify("messages")
        return message

    def add_log(self, content: str, severity: Severity = Severity.INFO) -> TerminalLine:
        line = TerminalLine(content=content, severity=severity)
        self._terminal_lines.append(line)
        self._notify("terminal")
        return line

    def set_thinking(self, value: bool) -> None:
        self._is_thinking = value
        self._notify("thinking")

    # -- workspace --------------------------------------------------------

    def _update_workspace(self, **changes) -> None:
        self._workspace = self._workspace.model_copy(update=changes)
        self._notify("workspace")

    def switch_surface(self, kind: SurfaceKind, open_workspace: bool = True) -> None:
        """Select the visible surface. Surface contents are untouched."""
        changes: dict = {"active": kind}
        if open_workspace:
            changes["is_open"] = True
        self._update_workspace(**changes)

    def toggle_workspace(self) -> bool:
        self._update_workspace(is_open=not self._workspace.is_open)
        return self._workspace.is_open

    def begin_navigation(self) -> None:
        """Put the browser into its loading state and bring it forward."""
        self._update_workspace(
            active=SurfaceKind.BROWSER,
            is_open=True,
            browser=BrowserSurface(
                url=BROWSER_LOADING_URL,
                is_loading=True,
                title=BROWSER_LOADING_TITLE,
            ),
        )

    def complete_navigation(self, sources: Sequence[WebSource]) -> None:
        """Reveal the citation list in the browser."""
        content = json.dumps([source.model_dump() for source in sources])
        self._update_workspace(
            browser=BrowserSurface(
                url=BROWSER_RESULTS_URL,
                is_loading=False,
                title=BROWSER_RESULTS_TITLE,
                content=content,
            ),
        )

    def render_preview(self, html: str) -> None:
        self._update_workspace(
            active=SurfaceKind.PREVIEW,
            is_open=True,
            preview=PreviewSurface(
                html=html,
                is_active=True,
                last_updated=datetime.now(timezone.utc),
            ),
        )

    # -- pending attachments ----------------------------------------------

    def stage_attachment(self, attachment: Attachment) -> None:
        self._pending.append(attachment)
        self._open_handles.add(attachment.handle)
        self._notify("attachments")

    def remove_attachment(self, index: int) -> Attachment:
        """Drop a staged attachment and release its preview handle.

        Raises:
            IndexError: If no attachment is staged at ``index``
        """
        attachment = self._pending.pop(index)
        self._open_handles.discard(attachment.handle)
        self._notify("attachments")
        return attachment

    def take_attachments(self) -> list[Attachment]:
        """Hand over every staged attachment and release their handles."""
        taken, self._pending = self._pending, []
        for attachment in taken:
            self._open_handles.discard(attachment.handle)
        self._notify("attachments")
        return taken

    # -- session ----------------------------------------------------------

    def reset(self) -> None:
        """Return to a fresh workspace with a reset banner."""
        for attachment in self._pending:
            self._open_handles.discard(attachment.handle)
        self._pending = []
        self._messages = [Message(role=MessageRole.MODEL, content=RESET_MESSAGE)]
        self._terminal_lines = [
            TerminalLine(content=content, severity=Severity(severity))
            for content, severity in RESET_TERMINAL_LINES
        ]
        self._workspace = Workspace(is_open=self._workspace.is_open)
        self._is_thinking = False
        self._notify("reset")
