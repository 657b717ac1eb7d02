"""Cooperative cancellation token."""

import asyncio
import contextlib

from ..errors import UserCancellation


class CancellationToken:
    """Signals that the user stopped the running task.

    The loop polls the token at every checkpoint; ``sleep`` is a checkpoint
    that also wakes up early when the token fires.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise UserCancellation if the token has fired."""
        if self._event.is_set():
            raise UserCancellation()

    async def sleep(self, seconds: float) -> None:
        """Wait for ``seconds``, returning early by raising on cancellation."""
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        self.raise_if_cancelled()
