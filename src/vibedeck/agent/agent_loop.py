"""Agent loop: drives model rounds until the model stops calling tools.

Hidden design decisions:
- Phase transitions and cancellation checkpoints
- Round counting and the round cap
- Mapping of failures to user-visible messages
"""

import time
from typing import Any

from ..config import (
    ABORT_LOG_LINE,
    ABORT_MESSAGE,
    CONNECTION_ALERT,
    CONNECTION_ERROR_LOG_LINE,
    DEFAULT_MAX_ROUNDS,
)
from ..errors import EncodingError, MaxRoundsExceeded, UserCancellation
from ..llm.base import ModelGateway
from ..llm.models import ModelResponse, ToolResult
from ..workspace.models import MessageRole, Severity
from ..workspace.state import ConversationState
from .cancellation import CancellationToken
from .data_structures import LoopOutcome, LoopPhase, LoopRun
from .dispatcher import ToolDispatcher
from .interpreter import interpret


class AgentLoop:
    """Runs one user submission through repeated model rounds.

    Only one submission runs at a time. The gateway and the state are
    injected so several loops can coexist, each with its own dialogue.
    """

    def __init__(
        self,
        gateway: ModelGateway,
        state: ConversationState,
        dispatcher: ToolDispatcher | None = None,
        max_rounds: int | None = DEFAULT_MAX_ROUNDS
    ):
        """Initialize the loop.

        Args:
            gateway: Model gateway holding the dialogue
            state: Conversation state to read and mutate
            dispatcher: Tool dispatcher (default: the six workspace tools)
            max_rounds: Maximum tool-result resubmissions per submission,
                None for no cap
        """
        self._gateway = gateway
        self._state = state
        self._dispatcher = dispatcher or ToolDispatcher()
        self._max_rounds = max_rounds
        self._phase = LoopPhase.IDLE
        self._token = CancellationToken()
        self._running = False
        self._debug_callback: Any | None = None

    @property
    def phase(self) -> LoopPhase:
        return self._phase

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def dispatcher(self) -> ToolDispatcher:
        return self._dispatcher

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback for detailed execution logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
                      level: 'debug', 'info', 'warning', 'error'
                      component: Source component name
                      message: Log message
        """
        self._debug_callback = callback
        self._dispatcher.set_debug_callback(callback)
        self._gateway.set_debug_callback(callback)

    def _debug(self, level: str, component: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, component, message)

    def _set_phase(self, phase: LoopPhase) -> None:
        self._phase = phase
        self._debug("debug", "Loop", f"Phase: {phase.value}")

    def cancel(self) -> bool:
        """Stop the running submission.

        Appends the abort message and log line once. The in-flight gateway
        call is not aborted; its response is discarded.

        Returns:
            True if a running submission was cancelled
        """
        if not self._state.is_thinking:
            return False

        self._token.cancel()
        self._set_phase(LoopPhase.CANCELLED)
        self._state.set_thinking(False)
        self._state.add_log(ABORT_LOG_LINE, Severity.ERROR)
        self._state.add_message(MessageRole.SYSTEM, ABORT_MESSAGE)
        self._debug("warning", "Loop", "Cancelled by user")
        return True

    async def submit(self, text: str) -> LoopRun:
        """Send a user turn and process rounds until the loop terminates.

        Pending attachments staged on the state are sent with the text.

        Args:
            text: User text

        Returns:
            LoopRun describing how the submission ended
        """
        if self._running or self._state.is_thinking:
            self._debug("warning", "Loop", "Submission rejected: a task is already running")
            return LoopRun(outcome=LoopOutcome.REJECTED)
        if not text.strip() and not self._state.pending_attachments:
            self._debug("debug", "Loop", "Submission rejected: nothing to send")
            return LoopRun(outcome=LoopOutcome.REJECTED)

        attachments = self._state.take_attachments()
        token = self._token = CancellationToken()
        self._running = True
        self._state.set_thinking(True)

        if text.startswith("http"):
            self._state.add_log(f"Analyzing URL: {text}", Severity.COMMAND)
        self._state.add_message(MessageRole.USER, text, attachments)

        rounds = 0
        start_time = time.time()
        self._debug("info", "Loop", f"Starting: '{text[:50]}' ({len(attachments)} attachment(s))")

        try:
            self._set_phase(LoopPhase.SENDING)
            response = await self._gateway.send(text, attachments)

            while True:
                token.raise_if_cancelled()
                at_cap = self._max_rounds is not None and rounds >= self._max_rounds
                results = await self._process_response(response, token, at_cap)
                if results is None:
                    break

                token.raise_if_cancelled()
                self._set_phase(LoopPhase.RESUBMITTING)
                response = await self._gateway.send_tool_results(results)
                rounds += 1

            self._debug(
                "info",
                "Loop",
                f"Completed in {rounds} round(s), {time.time() - start_time:.2f}s"
            )
            return LoopRun(outcome=LoopOutcome.COMPLETED, rounds=rounds)

        except UserCancellation:
            return LoopRun(outcome=LoopOutcome.CANCELLED, rounds=rounds)

        except EncodingError as e:
            if token.cancelled:
                return LoopRun(outcome=LoopOutcome.CANCELLED, rounds=rounds)
            self._report(MessageRole.SYSTEM, str(e), str(e))
            return LoopRun(outcome=LoopOutcome.FAILED, rounds=rounds, error=str(e))

        except MaxRoundsExceeded as e:
            self._report(MessageRole.SYSTEM, str(e), f">> HALTED: {e}")
            return LoopRun(outcome=LoopOutcome.FAILED, rounds=rounds, error=str(e))

        except Exception as e:
            if token.cancelled:
                return LoopRun(outcome=LoopOutcome.CANCELLED, rounds=rounds)
            self._debug("error", "Loop", f"Exception: {e}")
            self._report(MessageRole.MODEL, CONNECTION_ALERT, CONNECTION_ERROR_LOG_LINE)
            return LoopRun(outcome=LoopOutcome.FAILED, rounds=rounds, error=str(e))

        finally:
            self._running = False
            if self._state.is_thinking:
                self._state.set_thinking(False)
            self._set_phase(LoopPhase.IDLE)

    async def _process_response(
        self,
        response: ModelResponse,
        token: CancellationToken,
        at_cap: bool = False
    ) -> list[ToolResult] | None:
        """Apply one response to the state.

        Returns:
            One result per tool call, or None when the response requested no
            tools

        Raises:
            UserCancellation: At any checkpoint after the token fired
            MaxRoundsExceeded: When tools are requested with no rounds left;
                no tool runs
        """
        self._set_phase(LoopPhase.INTERPRETING)
        interpretation = interpret(response)

        if interpretation.citations:
            await self._dispatcher.navigate(interpretation.citations, self._state, token)

        for execution in interpretation.executions:
            self._dispatcher.show_execution(execution, self._state)

        if interpretation.text:
            self._state.add_message(MessageRole.MODEL, interpretation.text)

        token.raise_if_cancelled()
        if not interpretation.tool_calls:
            return None
        if at_cap:
            raise MaxRoundsExceeded(self._max_rounds)

        self._set_phase(LoopPhase.DISPATCHING)
        self._debug("info", "Loop", f"Dispatching {len(interpretation.tool_calls)} tool call(s)")
        results = []
        for index, tool_call in enumerate(interpretation.tool_calls):
            token.raise_if_cancelled()
            results.append(await self._dispatcher.dispatch(tool_call, self._state, index))
            token.raise_if_cancelled()
        return results

    def _report(self, role: MessageRole, message: str, log_line: str) -> None:
        self._state.add_message(role, message, is_error=True)
        self._state.add_log(log_line, Severity.ERROR)

    async def close(self) -> None:
        """Release the gateway's resources."""
        await self._gateway.close()
