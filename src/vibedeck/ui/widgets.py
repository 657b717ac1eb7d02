"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Chat message rendering
- Terminal line coloring and incremental sync
- Browser and preview surface rendering
- Input history management
- Level-filtered debug log
"""

from collections.abc import Sequence
from datetime import datetime

from rich.syntax import Syntax
from rich.text import Text
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message as TextualMessage
from textual.widgets import Button, Markdown, RichLog, Static, TextArea

from ..config import BUSY_NOTICE, LogLevel
from ..workspace.models import (
    Attachment,
    BrowserSurface,
    Message,
    MessageRole,
    PreviewSurface,
    Severity,
    TerminalLine,
)

_SEVERITY_STYLES = {
    Severity.INFO: "cyan",
    Severity.SUCCESS: "green",
    Severity.ERROR: "bold red",
    Severity.COMMAND: "yellow",
}


class ClickableMessage(Vertical):
    """A chat message container that copies its content when clicked."""

    def __init__(self, content: str, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._content = content

    def on_click(self, event: Click) -> None:
        event.stop()
        self.app.copy_to_clipboard(self._content)
        self.app.notify("Copied to clipboard", timeout=2)


class ChatHistoryWidget(VerticalScroll):
    """Scrollable chat history that mirrors the conversation messages."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_MAXIMIZE = True
    ALLOW_SELECT = True

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._rendered = 0

    def sync(self, messages: Sequence[Message]) -> None:
        """Render messages that are not on screen yet."""
        for message in messages[self._rendered:]:
            self._render_message(message)
        self._rendered = len(messages)
        self.border_subtitle = f"{self._rendered} messages"
        self.scroll_end(animate=False)

    def clear_history(self) -> None:
        self._rendered = 0
        self.remove_children()
        self.border_subtitle = "Conversation history"

    def _render_message(self, message: Message) -> None:
        if message.role == MessageRole.USER:
            prefix, css_class = "You", "user-message"
        elif message.role == MessageRole.SYSTEM:
            prefix, css_class = "System", "system-message"
        else:
            prefix, css_class = "Manus", "assistant-message"
        if message.is_error:
            css_class += " error-message"

        timestamp = message.timestamp.astimezone().strftime("%H:%M:%S")
        container = ClickableMessage(content=message.content, classes=f"chat-message {css_class}")
        container.compose_add_child(Static(f"{prefix} [{timestamp}]", classes="message-header", markup=False))

        if message.attachments:
            names = ", ".join(
                f"{'[img] ' if a.is_image else ''}{a.name}" for a in message.attachments
            )
            container.compose_add_child(Static(f"Attached: {names}", classes="message-attachments", markup=False))

        if message.role == MessageRole.MODEL:
            container.compose_add_child(Markdown(message.content, classes="message-content"))
        else:
            container.compose_add_child(Static(message.content, classes="message-content", markup=False))

        self.mount(container)


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea and Send button."""

    class Submitted(TextualMessage):
        """Message sent when user submits input."""

        def __init__(self, value: str) -> None:
            super().__init__()
            self.value = value

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._history: list[str] = []
        self._history_index: int = -1
        self._enabled = True
        self._busy_notice = BUSY_NOTICE

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Submit message (Ctrl+J)"
        )

    def on_mount(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        text_area.focus()
        text_area.highlight_cursor_line = False

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            self._submit()

    def on_key(self, event) -> None:
        """Handle keyboard shortcuts.

        Note: ctrl+enter cannot work in terminals (terminal doesn't pass
        ctrl/shift modifiers with Enter). Use ctrl+j as the submit shortcut.
        """
        if event.key == "ctrl+j":
            self._submit()
            event.prevent_default()
            event.stop()
        elif event.key == "up" and self._cursor_at_start():
            self._navigate_history(-1)
            event.prevent_default()
            event.stop()

    def _cursor_at_start(self) -> bool:
        return self.query_one("#chat-input", TextArea).cursor_location == (0, 0)

    def _navigate_history(self, direction: int) -> None:
        if not self._history:
            return
        text_area = self.query_one("#chat-input", TextArea)
        if self._history_index == -1:
            self._history_index = len(self._history) - 1
        elif 0 <= self._history_index + direction < len(self._history):
            self._history_index += direction
        text_area.text = self._history[self._history_index]

    @property
    def enabled(self) -> bool:
        return self._enabled

    def set_enabled(self, enabled: bool, busy_notice: str = BUSY_NOTICE) -> None:
        """Enable or disable submission while a task runs.

        Args:
            enabled: Whether input may be submitted
            busy_notice: Shown when a submission is attempted while disabled
        """
        self._enabled = enabled
        self._busy_notice = busy_notice
        self.query_one("#send-btn", Button).disabled = not enabled

    def _submit(self) -> None:
        text_area = self.query_one("#chat-input", TextArea)
        value = text_area.text.strip()
        if not self._enabled:
            self.app.notify(self._busy_notice, severity="warning", timeout=2)
            return
        if value and (not self._history or self._history[-1] != value):
            self._history.append(value)
        self._history_index = -1
        text_area.text = ""
        self.post_message(self.Submitted(value))

    def focus_input(self) -> None:
        """Focus the text input."""
        self.query_one("#chat-input", TextArea).focus()


class AttachmentBar(Static):
    """Shows the staged attachments waiting to be sent."""

    def show_attachments(self, attachments: Sequence[Attachment]) -> None:
        if not attachments:
            self.display = False
            return
        items = "  ".join(
            f"[bold]{index}[/] {attachment.name}" for index, attachment in enumerate(attachments)
        )
        self.update(f"[dim]Staged:[/] {items}  [dim](/detach N to remove)[/]")
        self.display = True


class StatusPanel(Static):
    """One-line status: phase, rounds and counters."""

    def update_status(
        self,
        phase: str,
        messages: int,
        log_lines: int,
        rounds: int | None = None,
    ) -> None:
        parts = [
            f"[bold cyan]Phase:[/] {phase}",
            f"[bold green]Messages:[/] {messages}",
            f"[bold yellow]Log:[/] {log_lines}",
        ]
        if rounds is not None:
            parts.append(f"[bold magenta]Last rounds:[/] {rounds}")
        self.update("  ".join(parts))


class TerminalView(RichLog):
    """Simulated terminal: renders the TerminalLine audit trail."""

    BORDER_TITLE = "Terminal"

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(
            *args,
            markup=False,
            highlight=False,
            auto_scroll=True,
            wrap=True,
            **kwargs
        )
        self._rendered = 0
        self._plain: list[str] = []

    def sync(self, lines: Sequence[TerminalLine]) -> None:
        """Write lines that are not on screen yet."""
        for line in lines[self._rendered:]:
            timestamp = line.timestamp.astimezone().strftime("%H:%M:%S")
            text = Text(f"{timestamp} ", style="dim")
            text.append(line.content, style=_SEVERITY_STYLES.get(line.severity, "white"))
            self.write(text)
            self._plain.append(f"{timestamp} {line.content}")
        self._rendered = len(lines)

    def reset(self) -> None:
        self.clear()
        self._rendered = 0
        self._plain = []

    def on_click(self, event: Click) -> None:
        """Copy log content to clipboard when clicked."""
        event.stop()
        text = "\n".join(self._plain)
        if not text.strip():
            self.app.notify("Log is empty", timeout=2)
            return
        try:
            import pyperclip
            pyperclip.copy(text)
            self.app.notify("Terminal log copied", timeout=2)
        except Exception:
            self.app.copy_to_clipboard(text)
            self.app.notify("Terminal log copied (terminal)", timeout=2)


class BrowserView(Static):
    """Simulated browser: address bar plus search results."""

    def show_browser(self, browser: BrowserSurface) -> None:
        lines = [f"[bold]{browser.title}[/]", f"[dim]{browser.url or 'about:blank'}[/]", ""]
        if browser.is_loading:
            lines.append("[yellow]Establishing secure tunnel... TLS handshake[/]")
        else:
            results = browser.search_results()
            if results:
                for index, source in enumerate(results, 1):
                    lines.append(f"[bold cyan]{index}. {source.title or source.uri}[/]")
                    lines.append(f"   [link={source.uri}]{source.uri}[/link]")
            elif browser.content:
                lines.append(browser.content)
            else:
                lines.append("[dim]No page loaded.[/]")
        self.update("\n".join(lines))


class PreviewView(VerticalScroll):
    """Rendered-HTML preview: shows the generated document source."""

    def compose(self):
        yield Static("[dim]No interface rendered yet.[/]", id="preview-header")
        yield Static("", id="preview-source")

    def show_preview(self, preview: PreviewSurface) -> None:
        header = self.query_one("#preview-header", Static)
        source = self.query_one("#preview-source", Static)
        if not preview.is_active:
            header.update("[dim]No interface rendered yet.[/]")
            source.update("")
            return
        updated = preview.last_updated.astimezone().strftime("%H:%M:%S") if preview.last_updated else "?"
        header.update(f"[bold green]LIVE[/] updated {updated}  [dim](Ctrl+O opens it in a browser)[/]")
        source.update(Syntax(preview.html, "html", word_wrap=True, theme="monokai"))


class DebugPanel(RichLog):
    """Log panel for real-time execution tracing with level filtering.

    Shows timestamped log messages from all components.
    Supports standard log levels: DEBUG < INFO < WARNING < ERROR.
    Hidden by default, shown with --log-level flag or toggled with Ctrl+D.
    """

    BORDER_TITLE = "Log"
    BORDER_SUBTITLE = "Trace log"

    def __init__(self, *args, log_level: int = LogLevel.DEBUG, **kwargs) -> None:
        super().__init__(
            *args,
            markup=True,
            highlight=False,
            auto_scroll=True,
            wrap=False,
            **kwargs
        )
        self._log_level = log_level

    @property
    def log_level(self) -> int:
        """Current log level threshold."""
        return self._log_level

    @log_level.setter
    def log_level(self, level: int) -> None:
        self._log_level = level
        self._update_subtitle()

    def _update_subtitle(self) -> None:
        if self.display:
            self.border_subtitle = f"Level: {LogLevel.name(self._log_level)}"
        else:
            self.border_subtitle = "Hidden"

    def on_mount(self) -> None:
        """Hide by default."""
        self.display = False

    def log(
        self,
        component: str,
        message: str,
        level: int = LogLevel.DEBUG
    ) -> None:
        """Add a log entry if it meets the current level threshold.

        Args:
            component: Component name (TUI, Loop, LLM, Tool, Browser)
            message: Log message
            level: Log level (LogLevel.DEBUG, INFO, WARNING, ERROR)
        """
        if level < self._log_level:
            return

        timestamp = datetime.now().strftime("%H:%M:%S")
        level_colors = {
            LogLevel.DEBUG: "dim white",
            LogLevel.INFO: "cyan",
            LogLevel.WARNING: "yellow",
            LogLevel.ERROR: "red",
        }
        component_colors = {
            "TUI": "cyan",
            "Loop": "green",
            "LLM": "magenta",
            "Tool": "bright_cyan",
            "Browser": "bright_blue",
        }
        level_color = level_colors.get(level, "white")
        comp_color = component_colors.get(component, "white")

        self.write(
            f"[dim]{timestamp}[/] "
            f"[{level_color}]{LogLevel.name(level):<5}[/] "
            f"[{comp_color}]\\[{component}][/] {message}"
        )

    def info(self, component: str, message: str) -> None:
        self.log(component, message, LogLevel.INFO)

    def error(self, component: str, message: str) -> None:
        self.log(component, message, LogLevel.ERROR)

    def route(self, level: str, component: str, message: str) -> None:
        """Debug-callback entry point: route by level name."""
        self.log(component, message, LogLevel.from_string(level))

    def show(self) -> None:
        self.display = True
        self._update_subtitle()

    def hide(self) -> None:
        self.display = False
        self.border_subtitle = "Hidden"

    def toggle(self) -> bool:
        """Toggle visibility. Returns new state."""
        if self.display:
            self.hide()
            return False
        self.show()
        return True
