"""Main Textual TUI application.

Orchestrates the UI components and forwards user actions to the AgentLoop.
The conversation state is the single source of truth: widgets are refreshed
from state change events, never written to directly by the loop.
"""

import asyncio
import contextlib
import os
import tempfile
import webbrowser
from pathlib import Path

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header, TabbedContent, TabPane

from ..agent import AgentLoop, LoopOutcome
from ..config import BUSY_NOTICE, FINISHING_NOTICE, LogLevel
from ..workspace import Attachment, ConversationState, SurfaceKind, export_session
from .screens import ConfirmationScreen, MissingCredentialScreen
from .styles import APP_CSS
from .themes import OPERATOR_DARK
from .widgets import (
    AttachmentBar,
    BrowserView,
    ChatHistoryWidget,
    ChatInputBar,
    DebugPanel,
    PreviewView,
    StatusPanel,
    TerminalView,
)


class VibedeckApp(App):
    """Textual TUI for the workspace agent."""

    CSS = APP_CSS
    TITLE = "Vibedeck"

    BINDINGS = [
        Binding("ctrl+c", "quit", "Quit"),
        Binding("escape", "cancel_execution", "Stop"),
        Binding("ctrl+r", "reset_session", "Reset"),
        Binding("ctrl+s", "export_transcript", "Export"),
        Binding("ctrl+w", "toggle_workspace", "Workspace"),
        Binding("ctrl+o", "open_preview", "Open Preview"),
        Binding("ctrl+d", "toggle_debug", "Debug"),
    ]

    def __init__(
        self,
        loop: AgentLoop | None,
        model_name: str = "unknown",
        log_level: str | None = None,
        config_error: str | None = None,
        export_dir: str | Path = ".",
    ) -> None:
        """Initialize the app.

        Args:
            loop: Agent loop to drive, or None when startup failed
            model_name: Model name shown in the subtitle
            log_level: Log level for the log panel, None to hide it
            config_error: Startup configuration error; shows the blocking
                missing-credential screen
            export_dir: Directory for exported transcripts
        """
        super().__init__()
        self._loop = loop
        self._state = loop.state if loop is not None else ConversationState()
        self._model_name = model_name
        self._log_level = log_level
        self._config_error = config_error
        self._export_dir = Path(export_dir)
        self._last_rounds: int | None = None
        self._preview_file: Path | None = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)

        yield ChatHistoryWidget(id="chat-history")

        with Vertical(id="workspace-panel"):
            with TabbedContent(id="surfaces", initial=SurfaceKind.TERMINAL.value):
                with TabPane("Terminal", id=SurfaceKind.TERMINAL.value):
                    yield TerminalView(id="terminal-view")
                with TabPane("Browser", id=SurfaceKind.BROWSER.value):
                    yield BrowserView(id="browser-view")
                with TabPane("Preview", id=SurfaceKind.PREVIEW.value):
                    yield PreviewView(id="preview-view")
            yield DebugPanel(id="debug-panel")

        with Vertical(id="bottom-bar"):
            yield StatusPanel(id="status")
            yield AttachmentBar(id="attachments")
            yield ChatInputBar(id="chat-input-bar")

        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.register_theme(OPERATOR_DARK)
        self.theme = "operator-dark"

        debug_panel = self.query_one("#debug-panel", DebugPanel)
        if self._log_level is not None:
            debug_panel.log_level = LogLevel.from_string(self._log_level)
            debug_panel.show()
            debug_panel.info("TUI", f"Log panel enabled with level: {self._log_level.upper()}")

        self.sub_title = self._model_name
        self._state.add_listener(self._on_state_event)
        self._refresh_all()

        if self._loop is None:
            self.push_screen(MissingCredentialScreen(self._config_error or "No agent configured."))
            return

        self._loop.set_debug_callback(debug_panel.route)
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def on_unmount(self) -> None:
        """Clean up resources when app exits."""
        self._state.remove_listener(self._on_state_event)
        if self._preview_file is not None:
            with contextlib.suppress(OSError):
                self._preview_file.unlink()

    # -- state -> widgets -------------------------------------------------

    def _on_state_event(self, event: str) -> None:
        if event == "messages":
            self.query_one("#chat-history", ChatHistoryWidget).sync(self._state.messages)
        elif event == "terminal":
            self.query_one("#terminal-view", TerminalView).sync(self._state.terminal_lines)
        elif event == "workspace":
            self._render_workspace()
        elif event == "attachments":
            self._render_attachments()
        elif event == "thinking":
            self._render_thinking()
        elif event == "reset":
            self.query_one("#chat-history", ChatHistoryWidget).clear_history()
            self.query_one("#terminal-view", TerminalView).reset()
            self._refresh_all()
        self._render_status()

    def _refresh_all(self) -> None:
        self.query_one("#chat-history", ChatHistoryWidget).sync(self._state.messages)
        self.query_one("#terminal-view", TerminalView).sync(self._state.terminal_lines)
        self._render_workspace()
        self._render_attachments()
        self._render_thinking()
        self._render_status()

    def _render_workspace(self) -> None:
        workspace = self._state.workspace
        self.query_one("#workspace-panel").display = workspace.is_open
        self.query_one("#chat-history").set_class(not workspace.is_open, "-wide")

        tabs = self.query_one("#surfaces", TabbedContent)
        if tabs.active != workspace.active.value:
            tabs.active = workspace.active.value

        self.query_one("#browser-view", BrowserView).show_browser(workspace.browser)
        self.query_one("#preview-view", PreviewView).show_preview(workspace.preview)

    def _render_attachments(self) -> None:
        self.query_one("#attachments", AttachmentBar).show_attachments(
            self._state.pending_attachments
        )

    def _render_thinking(self) -> None:
        thinking = self._state.is_thinking
        # After a cancel the abandoned gateway call keeps the loop running
        finishing = not thinking and self._loop is not None and self._loop.is_running
        input_bar = self.query_one("#chat-input-bar", ChatInputBar)
        input_bar.set_enabled(
            not (thinking or finishing),
            FINISHING_NOTICE if finishing else BUSY_NOTICE,
        )
        self.query_one("#surfaces", TabbedContent).set_class(thinking, "-thinking")
        if thinking:
            self.sub_title = f"{self._model_name} | thinking..."
        elif finishing:
            self.sub_title = f"{self._model_name} | finishing..."
        else:
            self.sub_title = self._model_name

    def _render_status(self) -> None:
        phase = self._loop.phase.value if self._loop is not None else "halted"
        self.query_one("#status", StatusPanel).update_status(
            phase=phase,
            messages=len(self._state.messages),
            log_lines=len(self._state.terminal_lines),
            rounds=self._last_rounds,
        )

    # -- user actions -----------------------------------------------------

    def on_tabbed_content_tab_activated(self, event: TabbedContent.TabActivated) -> None:
        """Manual tab switch: select the surface without changing its contents."""
        pane_id = event.pane.id
        if pane_id is None:
            return
        kind = SurfaceKind(pane_id)
        if kind != self._state.workspace.active:
            self._state.switch_surface(kind, open_workspace=False)

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle user input submission.

        Commands:
            /attach PATH   stage a file for the next message
            /detach N      drop staged attachment number N
            /export        write the transcript
        """
        user_input = event.value
        if user_input.startswith("/attach "):
            self._stage_attachment(user_input.removeprefix("/attach ").strip())
            return
        if user_input.startswith("/detach"):
            self._detach(user_input.removeprefix("/detach").strip())
            return
        if user_input == "/export":
            self.action_export_transcript()
            return

        if not user_input.strip() and not self._state.pending_attachments:
            return
        if self._loop is None:
            return
        if self._loop.is_running:
            notice = BUSY_NOTICE if self._state.is_thinking else FINISHING_NOTICE
            self.notify(notice, severity="warning", timeout=2)
            return

        self._run_loop(user_input)

    def _stage_attachment(self, raw_path: str) -> None:
        path = Path(raw_path).expanduser()
        if not path.is_file():
            self.notify(f"File not found: {raw_path}", severity="error", timeout=3)
            return
        self._state.stage_attachment(Attachment.from_path(path))
        self.notify(f"Attached {path.name}", timeout=2)

    def _detach(self, raw_index: str) -> None:
        try:
            removed = self._state.remove_attachment(int(raw_index))
        except (ValueError, IndexError):
            self.notify(f"No staged attachment '{raw_index}'", severity="warning", timeout=2)
            return
        self.notify(f"Removed {removed.name}", timeout=2)

    @work(exclusive=True)
    async def _run_loop(self, user_input: str) -> None:
        """Run one submission through the agent loop as a background async worker."""
        debug_panel = self.query_one("#debug-panel", DebugPanel)
        debug_panel.info("TUI", f"Submitting: '{user_input[:50]}'")

        try:
            run = await self._loop.submit(user_input)
        finally:
            self._render_thinking()
        self._last_rounds = run.rounds
        self._render_status()

        if run.outcome == LoopOutcome.COMPLETED:
            self.notify("Task completed", severity="information", timeout=3)
        elif run.outcome == LoopOutcome.FAILED:
            debug_panel.error("TUI", f"Task failed: {run.error}")
            self.notify(f"Error: {(run.error or '')[:50]}", severity="error", timeout=5)
        elif run.outcome == LoopOutcome.REJECTED:
            self.notify("Nothing to send", severity="warning", timeout=2)

    def action_cancel_execution(self) -> None:
        """Stop the running task."""
        if self._loop is not None and self._loop.cancel():
            self.notify("Cancelled", severity="warning", timeout=2)

    def action_reset_session(self) -> None:
        """Reset the workspace after confirmation."""

        def handle(confirmed: bool | None) -> None:
            if not confirmed:
                return
            if self._loop is not None:
                self._loop.cancel()
            self._last_rounds = None
            self._state.reset()
            self.notify("Session reset", timeout=2)

        self.push_screen(
            ConfirmationScreen("Reset the workspace? The chat and terminal log are cleared."),
            handle,
        )

    def action_export_transcript(self) -> None:
        """Write the transcript to the export directory."""
        try:
            path = export_session(self._state, self._export_dir)
        except OSError as e:
            self.notify(f"Export failed: {e}", severity="error", timeout=5)
            return
        self.notify(f"Transcript saved to {path}", timeout=3)

    def action_toggle_workspace(self) -> None:
        """Show or hide the workspace panel."""
        self._state.toggle_workspace()

    def action_open_preview(self) -> None:
        """Open the rendered preview in the system browser."""
        preview = self._state.workspace.preview
        if not preview.is_active:
            self.notify("No interface rendered yet", severity="warning", timeout=2)
            return
        if self._preview_file is None:
            fd, name = tempfile.mkstemp(prefix="vibedeck-preview-", suffix=".html")
            os.close(fd)
            self._preview_file = Path(name)
        self._preview_file.write_text(preview.html, encoding="utf-8")
        webbrowser.open(self._preview_file.as_uri())

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        debug_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = debug_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=2)


async def run_textual_tui(
    loop: AgentLoop | None,
    model_name: str = "unknown",
    log_level: str | None = None,
    config_error: str | None = None,
    export_dir: str | Path = ".",
) -> None:
    """Run the Textual TUI.

    Args:
        loop: Agent loop, or None to show the missing-credential screen
        model_name: Model name shown in the subtitle
        log_level: Log level for panel (debug/info/warning/error), None to hide
        config_error: Startup configuration error message
        export_dir: Directory for exported transcripts
    """
    app = VibedeckApp(
        loop=loop,
        model_name=model_name,
        log_level=log_level,
        config_error=config_error,
        export_dir=export_dir,
    )
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        if loop is not None:
            with contextlib.suppress(BaseException):
                await loop.close()
