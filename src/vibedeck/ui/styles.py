"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.

Layout:
- Left: chat history
- Right: workspace tabs (Terminal, Browser, Preview) above the log panel
- Bottom: status line, staged attachments and the input bar
"""

APP_CSS = """
/* ============================================
   Main Screen Layout - 2x2 Grid
   ============================================ */
Screen {
    layout: grid;
    grid-size: 2 2;
    grid-columns: 1fr 1fr;
    grid-rows: 1fr auto;
    background: $background;
}

/* Workspace closed: chat takes the full width */
#chat-history.-wide {
    column-span: 2;
}

/* ============================================
   Chat History Panel
   ============================================ */
#chat-history {
    height: 100%;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

/* ============================================
   Workspace Panel
   ============================================ */
#workspace-panel {
    height: 100%;
    padding: 0;
}

#surfaces {
    height: 1fr;
    background: $panel;
    border: round $secondary 60%;

    &.-thinking {
        border: round $warning;
    }
}

#terminal-view {
    height: 100%;
    background: #05080c;
    padding: 0 1;
    scrollbar-gutter: stable;
}

#browser-view {
    height: auto;
    padding: 1 2;
}

#preview-view {
    height: 100%;
    padding: 0 1;
}

#preview-header {
    height: auto;
    padding: 0 0 1 0;
}

/* ============================================
   Debug/Log Panel
   ============================================ */
#debug-panel {
    height: auto;
    min-height: 6;
    max-height: 14;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-title-align: left;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    overflow-y: scroll;
    overflow-x: auto;
    scrollbar-gutter: stable;
    margin-top: 1;
}

/* ============================================
   Bottom Bar - Status, Attachments, Input
   ============================================ */
#bottom-bar {
    column-span: 2;
    height: auto;
    padding: 0 1;
    background: $panel;
    border-top: solid $border;
}

#status {
    height: 1;
    padding: 0 2;
    background: $surface;
    color: $foreground;
}

#attachments {
    height: auto;
    padding: 0 2;
    color: $accent;
}

ChatInputBar {
    height: 5;
    border: round $primary 60%;
    background: $panel;

    &:focus-within {
        border: round $primary;
    }
}

#chat-input {
    width: 1fr;
    height: 100%;
    border: none;
    padding: 0 1;
    background: transparent;
}

#send-btn {
    width: 10;
    height: 100%;
    margin: 0 0 0 1;
    min-width: 8;
    border: tall $success;
    background: $success;
    color: $background;
    text-style: bold;

    &:disabled {
        background: $surface;
        border: tall $border;
        color: $text-muted;
    }
}

/* ============================================
   Chat Messages
   ============================================ */
.chat-message {
    width: 100%;
    height: auto;
    margin: 0 0 1 0;
    padding: 1 2;
    border: none;
    background: transparent;
}

.user-message {
    border-left: tall $success;
    background: $success 8%;

    & .message-header {
        color: $success;
        text-style: bold;
    }
}

.assistant-message {
    border-left: tall $secondary;
    background: $secondary 8%;

    & .message-header {
        color: $secondary;
        text-style: bold;
    }
}

.system-message {
    border-left: tall $warning;
    background: $warning 8%;

    & .message-header {
        color: $warning;
        text-style: bold;
    }
}

.error-message {
    border-left: tall $error;
    background: $error 10%;
}

.message-header {
    height: auto;
    padding: 0;
}

.message-attachments {
    height: auto;
    color: $accent;
}

.message-content {
    height: auto;
    padding: 0;
    margin: 0;
    color: $foreground;
}

/* ============================================
   Header, Footer, Toasts
   ============================================ */
Header {
    background: $panel;
    color: $foreground;
    dock: top;
    height: 1;
}

HeaderTitle {
    color: $primary;
    text-style: bold;
}

Footer {
    background: $panel;
    height: auto;
}

Toast {
    background: $surface;
    border: tall $border;
    padding: 0 1;

    &.-information {
        border: tall $primary;
    }

    &.-error {
        border: tall $error;
    }

    &.-warning {
        border: tall $warning;
    }
}

* {
    scrollbar-background: $panel;
    scrollbar-color: $surface-lighten-1;
    scrollbar-color-hover: $primary 50%;
    scrollbar-color-active: $primary;
    scrollbar-size: 1 1;
}

Markdown {
    margin: 0;
    padding: 0;
}

MarkdownFence {
    background: $panel;
    border: round $border;
    margin: 1 0;
    padding: 1;
}
"""
