from abc import ABC, abstractmethod
from collections.abc import Sequence
from typing import Any

from ..workspace.models import Attachment
from .models import ModelResponse, ToolResult


class ModelGateway(ABC):
    """Abstract base class for the model gateway.

    This module hides the design decision of which model service is used.
    A gateway holds exactly one dialogue, opened lazily on the first send and
    carrying the system instruction and the declared tool set. Implementations
    must handle:
    - Client setup and authentication
    - Attachment encoding
    - Request/response format conversion
    - Wrapping service failures in TransportError

    Calls are single-flight: the caller must not overlap two calls on the
    same gateway.

    Supports async context manager protocol for proper resource cleanup:
        async with gateway:
            response = await gateway.send("hello")
    """

    def __init__(self) -> None:
        self._debug_callback: Any | None = None

    def set_debug_callback(self, callback: Any) -> None:
        """Set debug callback for logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback

    def _debug(self, level: str, component: str, message: str) -> None:
        """Send debug message if callback is set."""
        if self._debug_callback:
            self._debug_callback(level, component, message)

    @property
    @abstractmethod
    def has_session(self) -> bool:
        """Whether the dialogue has been opened."""

    @abstractmethod
    async def send(
        self,
        text: str,
        attachments: Sequence[Attachment] = ()
    ) -> ModelResponse:
        """Send a user turn, opening the dialogue if needed.

        Args:
            text: User text (may be empty when attachments are present)
            attachments: Files to send inline with the text

        Returns:
            The model's response

        Raises:
            ConfigurationError: If no credential is configured
            EncodingError: If any attachment cannot be encoded (nothing is sent)
            TransportError: If the service call fails
        """

    @abstractmethod
    async def send_tool_results(self, results: Sequence[ToolResult]) -> ModelResponse:
        """Send one combined turn carrying every tool result.

        Args:
            results: One result per tool call of the previous response, in order

        Returns:
            The model's response

        Raises:
            SessionError: If no dialogue is open
            TransportError: If the service call fails
        """

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""

    async def __aenter__(self) -> "ModelGateway":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
