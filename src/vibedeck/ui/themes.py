"""Theme definitions for the TUI.

This module hides the design decisions about:
- Color palettes and visual appearance
- Theme variables (borders, scrollbars, etc.)

To add a new theme, define it here and register in the app.
"""

from textual.theme import Theme

# Dark control-room palette: neon green for commands, cyan for navigation
OPERATOR_DARK = Theme(
    name="operator-dark",
    primary="#38bdf8",      # Sky - navigation and focus
    secondary="#a78bfa",    # Violet - model messages
    accent="#facc15",       # Amber - highlights and dialogs
    foreground="#e2e8f0",
    background="#0b0f14",
    success="#4ade80",
    warning="#fb923c",
    error="#f87171",
    surface="#111827",
    panel="#0f172a",
    dark=True,
    variables={
        "block-cursor-foreground": "#0b0f14",
        "block-cursor-background": "#4ade80",
        "block-cursor-text-style": "bold",
        "block-hover-background": "#1e293b 20%",

        "input-cursor-background": "#e2e8f0",
        "input-cursor-foreground": "#0b0f14",
        "input-selection-background": "#38bdf8 30%",

        "border": "#334155",
        "border-blurred": "#1e293b",

        "scrollbar": "#1e293b",
        "scrollbar-hover": "#334155",
        "scrollbar-active": "#38bdf8",
        "scrollbar-background": "#0f172a",
        "scrollbar-corner-color": "#0f172a",

        "footer-foreground": "#cbd5e1",
        "footer-background": "#0b0f14",
        "footer-key-foreground": "#facc15",
        "footer-key-background": "#1e293b",
        "footer-description-foreground": "#94a3b8",

        "text-muted": "#64748b",
        "text-disabled": "#334155",

        "link-color": "#38bdf8",
        "link-style": "underline",
        "link-color-hover": "#7dd3fc",

        "button-foreground": "#e2e8f0",
        "button-color-foreground": "#0b0f14",
        "button-focus-text-style": "bold reverse",
    },
)
