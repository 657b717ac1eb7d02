"""Error taxonomy for vibedeck.

Every failure that can surface inside the agent loop is converted to one of
these types at the loop boundary. Raw transport exceptions never reach the
user.
"""


class VibedeckError(Exception):
    """Base class for all vibedeck errors."""


class ConfigurationError(VibedeckError):
    """Required configuration (the API credential) is missing.

    Fatal: the UI blocks instead of retrying.
    """


class SessionError(VibedeckError):
    """An operation needed an open dialogue but none exists."""


class EncodingError(VibedeckError):
    """An attachment could not be converted for transmission."""

    def __init__(self, attachment_name: str, reason: str):
        super().__init__(f"Could not encode attachment '{attachment_name}': {reason}")
        self.attachment_name = attachment_name
        self.reason = reason


class TransportError(VibedeckError):
    """A call to the model service failed."""


class InvalidArguments(VibedeckError):
    """A tool call arrived with missing or malformed arguments."""

    def __init__(self, tool_name: str, detail: str):
        super().__init__(f"invalid arguments for {tool_name}: {detail}")
        self.tool_name = tool_name
        self.detail = detail


class MaxRoundsExceeded(VibedeckError):
    """The model kept requesting tools past the configured round cap."""

    def __init__(self, max_rounds: int):
        super().__init__(f"Maximum tool rounds ({max_rounds}) reached.")
        self.max_rounds = max_rounds


class UserCancellation(VibedeckError):
    """Raised at a cancellation checkpoint after the user stopped the task.

    Not reported as an error: the loop treats it as a terminal state.
    """
