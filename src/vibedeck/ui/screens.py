"""Modal screens for the TUI.

This module hides the design decisions about:
- Confirmation dialog appearance (CSS, layout)
- How the missing-credential halt is presented
- Keyboard shortcuts for dialogs
"""

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Static

_DIALOG_CSS = """
    #dialog {
        width: 64;
        height: auto;
        max-height: 20;
        border: tall $accent;
        background: $surface;
        padding: 1 2;
    }

    #dialog-title {
        width: 100%;
        height: auto;
        text-align: center;
        text-style: bold;
        color: $accent;
        padding: 0 0 1 0;
        border-bottom: solid $border;
        margin-bottom: 1;
    }

    #dialog-prompt {
        width: 100%;
        height: auto;
        text-align: center;
        padding: 1 2;
        background: $panel;
        border: round $border;
        color: $foreground;
        margin-bottom: 1;
    }

    #dialog-buttons {
        width: 100%;
        height: 3;
        align: center middle;
        margin-top: 1;
    }

    #dialog-buttons Button {
        margin: 0 1;
        min-width: 10;
    }
"""


class ConfirmationScreen(ModalScreen[bool]):
    """Yes/no confirmation dialog. Dismisses with True on yes."""

    CSS = """
    ConfirmationScreen {
        align: center middle;
        background: $background 70%;
    }
    """ + _DIALOG_CSS

    BINDINGS = [
        Binding("y", "confirm_yes", "Yes", show=False),
        Binding("n", "confirm_no", "No", show=False),
        Binding("escape", "confirm_no", "Cancel", show=False),
    ]

    def __init__(self, prompt: str, title: str = "Confirmation Required") -> None:
        super().__init__()
        self._prompt = prompt
        self._title = title

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static(self._title, id="dialog-title")
            yield Static(self._prompt, id="dialog-prompt")
            with Horizontal(id="dialog-buttons"):
                yield Button("Yes", id="btn-yes", variant="success")
                yield Button("No", id="btn-no", variant="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.dismiss(event.button.id == "btn-yes")

    def action_confirm_yes(self) -> None:
        self.dismiss(True)

    def action_confirm_no(self) -> None:
        self.dismiss(False)


class MissingCredentialScreen(ModalScreen[None]):
    """Blocking halt shown when no API credential is configured.

    There is no way back to the chat from here; the only action is quitting.
    """

    CSS = """
    MissingCredentialScreen {
        align: center middle;
        background: $background 85%;
    }

    MissingCredentialScreen #dialog {
        border: tall $error;
    }

    MissingCredentialScreen #dialog-title {
        color: $error;
    }
    """ + _DIALOG_CSS

    BINDINGS = [
        Binding("q", "app.quit", "Quit", show=False),
        Binding("escape", "app.quit", "Quit", show=False),
    ]

    def __init__(self, detail: str) -> None:
        super().__init__()
        self._detail = detail

    def compose(self) -> ComposeResult:
        with Vertical(id="dialog"):
            yield Static("System halted: API Key Missing", id="dialog-title")
            yield Static(
                f"{self._detail}\n\n"
                "Set GEMINI_API_KEY in your environment or in a .env file, "
                "then restart.",
                id="dialog-prompt",
            )
            with Horizontal(id="dialog-buttons"):
                yield Button("Quit", id="btn-quit", variant="error")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        self.app.exit()
