"""Pytest configuration and shared fixtures."""
from collections.abc import Callable, Sequence

import pytest

from vibedeck.agent import AgentLoop, ToolDispatcher
from vibedeck.errors import SessionError
from vibedeck.llm import (
    CodeExecutionResult,
    ExecutableCode,
    GroundingEntry,
    ModelGateway,
    ModelResponse,
    ResponsePart,
    ToolCall,
    ToolResult,
)
from vibedeck.workspace import Attachment, ConversationState, WebSource

# A scripted step is either a response or an exception to raise
Step = ModelResponse | Exception | Callable[[], ModelResponse]


class ScriptedGateway(ModelGateway):
    """In-memory gateway that replays a fixed list of responses.

    Records every call so tests can assert on what was sent.
    """

    def __init__(self, steps: Sequence[Step] = ()):
        super().__init__()
        self._steps = list(steps)
        self._session = False
        self.sent: list[tuple[str, list[Attachment]]] = []
        self.tool_result_batches: list[list[ToolResult]] = []
        self.closed = False

    @property
    def has_session(self) -> bool:
        return self._session

    def _next(self) -> ModelResponse:
        if not self._steps:
            return text_response("done")
        step = self._steps.pop(0)
        if isinstance(step, Exception):
            raise step
        if callable(step):
            return step()
        return step

    async def send(self, text: str, attachments: Sequence[Attachment] = ()) -> ModelResponse:
        self._session = True
        self.sent.append((text, list(attachments)))
        return self._next()

    async def send_tool_results(self, results: Sequence[ToolResult]) -> ModelResponse:
        if not self._session:
            raise SessionError("No active chat session")
        self.tool_result_batches.append(list(results))
        return self._next()

    async def close(self) -> None:
        self.closed = True


def text_response(*texts: str) -> ModelResponse:
    """Build a response carrying only text fragments."""
    return ModelResponse(parts=[ResponsePart(text=t) for t in texts])


def call(name: str, call_id: str | None = None, **args) -> ResponsePart:
    """Build a function-call part."""
    return ResponsePart(function_call=ToolCall(name=name, args=args, id=call_id))


def tool_response(*parts: ResponsePart, text: str | None = None) -> ModelResponse:
    """Build a response with optional leading text and the given parts."""
    leading = [ResponsePart(text=text)] if text else []
    return ModelResponse(parts=leading + list(parts))


def cited_response(text: str, *sources: tuple[str, str]) -> ModelResponse:
    """Build a text response with web grounding entries."""
    return ModelResponse(
        parts=[ResponsePart(text=text)],
        grounding=[GroundingEntry(web=WebSource(uri=uri, title=title)) for uri, title in sources],
    )


def code_response(code: str, output: str, outcome: str = "OUTCOME_OK") -> ModelResponse:
    """Build a response with a server-side code execution pair."""
    return ModelResponse(parts=[
        ResponsePart(executable_code=ExecutableCode(code=code)),
        ResponsePart(code_execution_result=CodeExecutionResult(output=output, outcome=outcome)),
    ])


@pytest.fixture
def state():
    """Fresh conversation state with the default welcome and boot lines."""
    return ConversationState()


@pytest.fixture
def dispatcher():
    """Dispatcher with the default tools and no browser latency."""
    return ToolDispatcher(browser_latency=0)


@pytest.fixture
def make_loop(state, dispatcher):
    """Factory for an AgentLoop over a ScriptedGateway."""
    def _make(*steps: Step, max_rounds: int | None = 25, tools_dispatcher: ToolDispatcher | None = None):
        gateway = ScriptedGateway(steps)
        loop = AgentLoop(
            gateway=gateway,
            state=state,
            dispatcher=tools_dispatcher or dispatcher,
            max_rounds=max_rounds,
        )
        return loop, gateway
    return _make
