"""Configuration constants.

Centralizes magic numbers, default texts and environment settings.
"""

import os
from dataclasses import dataclass
from importlib import resources
from pathlib import Path

from .errors import ConfigurationError


class LogLevel:
    """Log level constants with numeric values for comparison.

    Standard logging hierarchy: DEBUG < INFO < WARNING < ERROR
    Lower numeric value = more verbose (shows more messages).
    """

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40

    _names = {
        DEBUG: "DEBUG",
        INFO: "INFO",
        WARNING: "WARNING",
        ERROR: "ERROR",
    }

    _from_string = {
        "debug": DEBUG,
        "info": INFO,
        "warning": WARNING,
        "error": ERROR,
    }

    @classmethod
    def name(cls, level: int) -> str:
        """Get the name for a log level."""
        return cls._names.get(level, "UNKNOWN")

    @classmethod
    def from_string(cls, level_str: str) -> int:
        """Convert string to log level. Returns DEBUG if invalid."""
        return cls._from_string.get(level_str.lower(), cls.DEBUG)


# Model defaults
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_MAX_ROUNDS = 25  # Tool rounds per submission before giving up

# Browser accordion
BROWSER_LATENCY_SECONDS = 0.8
BROWSER_LOADING_URL = "google://search-results"
BROWSER_LOADING_TITLE = "Connecting to Secure Gateway..."
BROWSER_RESULTS_URL = "https://www.google.com/search?q=query"
BROWSER_RESULTS_TITLE = "Search Results"
BROWSER_DEFAULT_TITLE = "Secure Browser"

# Code execution display limits
CODE_PREVIEW_LINES = 5
CODE_OUTPUT_MAX_LENGTH = 200

# Messages
WELCOME_MESSAGE = (
    "# Manus-Gemini Online\n\n"
    "I am your Autonomous Computer-Use Agent.\n\n"
    "**Capabilities:**\n"
    "* **Visual Perception:** I analyze screenshots.\n"
    "* **Precision Control:** I click and type using coordinates.\n"
    "* **Execution:** I run commands and browse the web.\n\n"
    "Upload a screenshot to begin."
)
RESET_MESSAGE = "System Reset. Manus-Gemini Ready."
ABORT_MESSAGE = "🛑 Task aborted by user."
CONNECTION_ALERT = "System Alert: Connection to Tool Registry Unstable."

# TUI notices
BUSY_NOTICE = "Agent is busy. Press Esc to stop it."
FINISHING_NOTICE = "Previous request is still finishing. Try again in a moment."

# Terminal lines
INITIAL_TERMINAL_LINES: list[tuple[str, str]] = [
    ("Manus-Gemini Core Initializing...", "info"),
    ("Loading Visual Perception Model...", "info"),
    (">> HID Controller [ACTIVE]", "success"),
    (">> Screen Capture Service [READY]", "success"),
    ("Manus-Gemini Online. Awaiting Visual Input.", "command"),
]
RESET_TERMINAL_LINES: list[tuple[str, str]] = [
    (">> System Reset initialized...", "info"),
    (">> Manus-Gemini Ready.", "success"),
]
ABORT_LOG_LINE = ">> PROCESS TERMINATED BY USER."
CONNECTION_ERROR_LOG_LINE = "Error communicating with Core."
EXPORT_LOG_LINE = ">> Session logs exported."

# Attachments
DEFAULT_MIME_TYPE = "application/octet-stream"
ATTACHMENT_HANDLE_SCHEME = "attachment://"

# System instruction shipped with the package
SYSTEM_INSTRUCTION_RESOURCE = "system_instruction.txt"


def read_system_instruction(path: str | Path | None = None) -> str:
    """Read the system instruction sent when the dialogue opens.

    Args:
        path: Replacement instruction file; the packaged text when None

    Raises:
        ConfigurationError: If the replacement file cannot be read
    """
    if path is None:
        return resources.files("vibedeck").joinpath(SYSTEM_INSTRUCTION_RESOURCE).read_text(
            encoding="utf-8"
        )
    try:
        return Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"Cannot read system instruction {path}: {e}") from e


def _env_number(name: str, default: int | float, kind: type) -> int | float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(
            f"{name} must be {'an integer' if kind is int else 'a number'}, got {raw!r}"
        ) from None


@dataclass(frozen=True)
class Settings:
    """Runtime settings resolved from the environment.

    Environment variables:
        GEMINI_API_KEY: Gemini API key (falls back to API_KEY)
        GEMINI_MODEL: Gemini model (default: gemini-2.5-flash)
        VIBEDECK_MAX_ROUNDS: Tool round cap, 0 disables it (default: 25)
        VIBEDECK_BROWSER_LATENCY: Accordion delay in seconds (default: 0.8)
        VIBEDECK_SYSTEM_INSTRUCTION: File replacing the packaged system
            instruction
    """

    api_key: str | None
    model: str = DEFAULT_MODEL
    max_rounds: int | None = DEFAULT_MAX_ROUNDS
    browser_latency: float = BROWSER_LATENCY_SECONDS
    system_instruction_path: str | None = None

    @classmethod
    def from_env(cls) -> "Settings":
        """Resolve settings, rejecting malformed numeric values.

        Raises:
            ConfigurationError: Naming the variable that failed to parse
        """
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None
        max_rounds = _env_number("VIBEDECK_MAX_ROUNDS", DEFAULT_MAX_ROUNDS, int)
        browser_latency = _env_number("VIBEDECK_BROWSER_LATENCY", BROWSER_LATENCY_SECONDS, float)
        if browser_latency < 0:
            raise ConfigurationError(
                f"VIBEDECK_BROWSER_LATENCY must not be negative, got {browser_latency}"
            )
        return cls(
            api_key=api_key,
            model=os.getenv("GEMINI_MODEL", DEFAULT_MODEL),
            max_rounds=max_rounds if max_rounds > 0 else None,
            browser_latency=browser_latency,
            system_instruction_path=os.getenv("VIBEDECK_SYSTEM_INSTRUCTION") or None,
        )

    def system_instruction(self) -> str:
        return read_system_instruction(self.system_instruction_path)
