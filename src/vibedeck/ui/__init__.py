"""Terminal UI module for vibedeck.

Provides a Textual-based TUI for the workspace agent.

Module structure (Parnas principle - each module hides a design decision):
- widgets.py: Custom widgets (chat, surfaces, input history, log rendering)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palettes and theme configuration
- screens.py: Modal dialogs (reset confirmation, missing credential)
- app.py: Application orchestration (user interaction flow)
"""

from .app import VibedeckApp, run_textual_tui
from .widgets import (
    BrowserView,
    ChatHistoryWidget,
    ChatInputBar,
    DebugPanel,
    PreviewView,
    TerminalView,
)

__all__ = [
    "BrowserView",
    "ChatHistoryWidget",
    "ChatInputBar",
    "DebugPanel",
    "PreviewView",
    "TerminalView",
    "VibedeckApp",
    "run_textual_tui",
]
