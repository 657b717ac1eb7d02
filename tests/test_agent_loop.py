"""Unit tests for the agent loop."""
import asyncio

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from vibedeck.agent import AgentLoop, ComputerTypeTool, LoopOutcome, LoopPhase, ToolDispatcher
from vibedeck.config import ABORT_MESSAGE, CONNECTION_ALERT
from vibedeck.errors import EncodingError, TransportError
from vibedeck.llm import ModelResponse, ResponsePart, ToolCall
from vibedeck.workspace import Attachment, ConversationState, MessageRole, Severity, SurfaceKind

from conftest import (
    ScriptedGateway,
    call,
    cited_response,
    code_response,
    text_response,
    tool_response,
)


class CancellingTypeTool(ComputerTypeTool):
    """computer_type that cancels the loop on its k-th call."""

    def __init__(self, cancel_on: int):
        super().__init__()
        self.cancel_on = cancel_on
        self.calls = 0
        self.loop: AgentLoop | None = None

    async def run(self, arguments, state):
        self.calls += 1
        if self.calls == self.cancel_on:
            self.loop.cancel()
        return await super().run(arguments, state)


def _roles(state: ConversationState) -> list[MessageRole]:
    return [m.role for m in state.messages]


class TestSubmission:
    """Tests for rejection and the basic round trip."""

    @pytest.mark.asyncio
    async def test_text_only_response_completes(self, make_loop, state):
        loop, gateway = make_loop(text_response("Hello there"))

        run = await loop.submit("hi")

        assert run.outcome == LoopOutcome.COMPLETED
        assert run.rounds == 0
        assert gateway.sent == [("hi", [])]
        assert gateway.tool_result_batches == []
        assert _roles(state)[-2:] == [MessageRole.USER, MessageRole.MODEL]
        assert state.messages[-1].content == "Hello there"
        assert not state.is_thinking
        assert loop.phase == LoopPhase.IDLE

    @pytest.mark.asyncio
    async def test_blank_submission_rejected(self, make_loop, state):
        loop, gateway = make_loop()
        before = len(state.messages)

        run = await loop.submit("   \n")

        assert run.outcome == LoopOutcome.REJECTED
        assert gateway.sent == []
        assert len(state.messages) == before

    @pytest.mark.asyncio
    async def test_submission_while_thinking_rejected(self, make_loop, state):
        loop, gateway = make_loop()
        state.set_thinking(True)

        run = await loop.submit("hello")

        assert run.outcome == LoopOutcome.REJECTED
        assert gateway.sent == []

    @pytest.mark.asyncio
    async def test_attachments_only_submission_sent(self, make_loop, state):
        loop, gateway = make_loop(text_response("I see a screenshot"))
        attachment = Attachment(name="shot.png", mime_type="image/png", data=b"\x89PNG")
        state.stage_attachment(attachment)

        run = await loop.submit("")

        assert run.outcome == LoopOutcome.COMPLETED
        assert gateway.sent == [("", [attachment])]
        assert state.pending_attachments == ()
        assert state.open_handles == frozenset()
        user_message = state.messages[-2]
        assert user_message.role == MessageRole.USER
        assert user_message.attachments == (attachment,)

    @pytest.mark.asyncio
    async def test_url_submission_logged(self, make_loop, state):
        loop, _ = make_loop(text_response("Looking"))

        await loop.submit("https://example.com")

        contents = [(line.content, line.severity) for line in state.terminal_lines]
        assert ("Analyzing URL: https://example.com", Severity.COMMAND) in contents


class TestToolRounds:
    """Tests for dispatching tool calls and resubmitting results."""

    @pytest.mark.asyncio
    async def test_one_round_then_done(self, make_loop, state):
        loop, gateway = make_loop(
            tool_response(
                call("computer_move", "a", x=100, y=200),
                call("computer_click", "b", x=100, y=200, button="left"),
                text="Clicking the button.",
            ),
            text_response("Done."),
        )

        run = await loop.submit("click it")

        assert run.outcome == LoopOutcome.COMPLETED
        assert run.rounds == 1
        assert len(gateway.tool_result_batches) == 1
        batch = gateway.tool_result_batches[0]
        assert [(r.call_id, r.name) for r in batch] == [("a", "computer_move"), ("b", "computer_click")]
        assert [m.content for m in state.messages[-2:]] == ["Clicking the button.", "Done."]

    @pytest.mark.asyncio
    async def test_multiple_rounds_counted(self, make_loop):
        loop, gateway = make_loop(
            tool_response(call("computer_type", "1", text="a")),
            tool_response(call("computer_type", "2", text="b")),
            tool_response(call("terminal_execute", "3", command="ls")),
            text_response("All done"),
        )

        run = await loop.submit("type things")

        assert run.rounds == 3
        assert [b[0].call_id for b in gateway.tool_result_batches] == ["1", "2", "3"]

    @pytest.mark.asyncio
    async def test_tools_only_response_appends_no_model_message(self, make_loop, state):
        loop, _ = make_loop(
            tool_response(call("computer_type", "1", text="a")),
            ModelResponse(),
        )

        await loop.submit("go")

        assert state.messages[-1].role == MessageRole.USER

    @pytest.mark.asyncio
    async def test_invalid_arguments_still_answered(self, make_loop, state):
        loop, gateway = make_loop(
            tool_response(call("computer_click", "bad", x=1), call("computer_type", "ok", text="x")),
            text_response("Recovered"),
        )

        run = await loop.submit("go")

        assert run.outcome == LoopOutcome.COMPLETED
        batch = gateway.tool_result_batches[0]
        assert [r.call_id for r in batch] == ["bad", "ok"]
        assert batch[0].error
        assert not batch[1].error

    @pytest.mark.asyncio
    async def test_round_cap_halts_loop(self, make_loop, state):
        endless = [tool_response(call("computer_type", str(i), text="x")) for i in range(10)]
        loop, gateway = make_loop(*endless, max_rounds=2)

        run = await loop.submit("never stop")

        assert run.outcome == LoopOutcome.FAILED
        assert run.rounds == 2
        assert len(gateway.tool_result_batches) == 2
        typed = [line.content for line in state.terminal_lines]
        assert sum(content.startswith(">> KEYBOARD_TYPE") for content in typed) == 2
        last = state.messages[-1]
        assert last.role == MessageRole.SYSTEM
        assert last.content == "Maximum tool rounds (2) reached."
        assert last.is_error
        assert state.terminal_lines[-1].severity == Severity.ERROR

    @pytest.mark.asyncio
    async def test_text_reply_at_cap_completes(self, make_loop, state):
        loop, _ = make_loop(
            tool_response(call("computer_type", "1", text="x")),
            text_response("Finished."),
            max_rounds=1,
        )

        run = await loop.submit("one step")

        assert run.outcome == LoopOutcome.COMPLETED
        assert run.rounds == 1
        assert state.messages[-1].content == "Finished."

    @pytest.mark.asyncio
    async def test_unbounded_rounds(self, make_loop):
        steps = [tool_response(call("computer_type", str(i), text="x")) for i in range(30)]
        loop, _ = make_loop(*steps, text_response("finally"), max_rounds=None)

        run = await loop.submit("long task")

        assert run.outcome == LoopOutcome.COMPLETED
        assert run.rounds == 30

    @given(st.integers(min_value=1, max_value=8))
    @settings(max_examples=20, deadline=None)
    def test_one_result_per_call_in_order(self, count: int):
        """Property test: a batch of n calls yields n results in call order."""
        calls = [call("computer_type", f"id-{i}", text=str(i)) for i in range(count)]
        gateway = ScriptedGateway([tool_response(*calls), text_response("ok")])
        loop = AgentLoop(gateway, ConversationState(), ToolDispatcher(browser_latency=0))

        asyncio.run(loop.submit("go"))

        batch = gateway.tool_result_batches[0]
        assert [r.call_id for r in batch] == [f"id-{i}" for i in range(count)]

    @given(st.integers(min_value=1, max_value=6))
    @settings(max_examples=20, deadline=None)
    def test_missing_ids_synthesized_by_position(self, count: int):
        """Property test: calls without ids get position-based correlation ids."""
        parts = [ResponsePart(function_call=ToolCall(name="computer_type", args={"text": "x"}))] * count
        gateway = ScriptedGateway([ModelResponse(parts=parts), text_response("ok")])
        loop = AgentLoop(gateway, ConversationState(), ToolDispatcher(browser_latency=0))

        asyncio.run(loop.submit("go"))

        assert [r.call_id for r in gateway.tool_result_batches[0]] == [
            f"unknown-id-{i}" for i in range(count)
        ]


class TestCancellation:
    """Tests for cooperative cancellation."""

    @pytest.mark.asyncio
    async def test_cancel_when_idle_is_noop(self, make_loop, state):
        loop, _ = make_loop()
        before = (len(state.messages), len(state.terminal_lines))

        assert loop.cancel() is False
        assert (len(state.messages), len(state.terminal_lines)) == before

    @pytest.mark.asyncio
    @pytest.mark.parametrize("k,m", [(1, 3), (2, 4), (3, 5)])
    async def test_mid_batch_cancellation_stops_after_k(self, state, k, m):
        tool = CancellingTypeTool(cancel_on=k)
        dispatcher = ToolDispatcher(tools=[tool], browser_latency=0)
        calls = [call("computer_type", str(i), text=f"t{i}") for i in range(m)]
        gateway = ScriptedGateway([tool_response(*calls), text_response("never")])
        loop = AgentLoop(gateway, state, dispatcher)
        tool.loop = loop

        run = await loop.submit("type")

        assert run.outcome == LoopOutcome.CANCELLED
        assert tool.calls == k
        assert gateway.tool_result_batches == []
        assert [msg.content for msg in state.messages].count(ABORT_MESSAGE) == 1
        assert state.messages[-1].content == ABORT_MESSAGE
        assert state.terminal_lines[-1].content == '>> KEYBOARD_TYPE: "t{}"'.format(k - 1)
        assert [line.content for line in state.terminal_lines].count(">> PROCESS TERMINATED BY USER.") == 1
        assert not state.is_thinking
        assert loop.phase == LoopPhase.IDLE

    @pytest.mark.asyncio
    async def test_response_arriving_after_cancel_discarded(self, state, dispatcher):
        loop_ref: list[AgentLoop] = []

        def cancel_then_reply():
            loop_ref[0].cancel()
            return text_response("too late")

        gateway = ScriptedGateway([cancel_then_reply])
        loop = AgentLoop(gateway, state, dispatcher)
        loop_ref.append(loop)

        run = await loop.submit("hello")

        assert run.outcome == LoopOutcome.CANCELLED
        assert "too late" not in [m.content for m in state.messages]
        assert state.messages[-1].content == ABORT_MESSAGE

    @pytest.mark.asyncio
    async def test_failure_after_cancel_not_reported(self, state, dispatcher):
        loop_ref: list[AgentLoop] = []

        def cancel_then_fail():
            loop_ref[0].cancel()
            raise TransportError("connection reset")

        gateway = ScriptedGateway([cancel_then_fail])
        loop = AgentLoop(gateway, state, dispatcher)
        loop_ref.append(loop)

        run = await loop.submit("hello")

        assert run.outcome == LoopOutcome.CANCELLED
        assert CONNECTION_ALERT not in [m.content for m in state.messages]

    @pytest.mark.asyncio
    async def test_cancel_interrupts_browser_accordion(self, state):
        dispatcher = ToolDispatcher(browser_latency=30)
        gateway = ScriptedGateway([cited_response("Answer", ("https://a.example", "A"))])
        loop = AgentLoop(gateway, state, dispatcher)

        task = asyncio.create_task(loop.submit("search"))
        while not state.workspace.browser.is_loading:
            await asyncio.sleep(0)
        assert loop.cancel() is True
        run = await asyncio.wait_for(task, timeout=5)

        assert run.outcome == LoopOutcome.CANCELLED
        assert state.workspace.browser.is_loading
        assert "Answer" not in [m.content for m in state.messages]

    @pytest.mark.asyncio
    async def test_new_submission_after_cancel(self, state):
        tool = CancellingTypeTool(cancel_on=1)
        dispatcher = ToolDispatcher(tools=[tool], browser_latency=0)
        gateway = ScriptedGateway([
            tool_response(call("computer_type", "1", text="a")),
            text_response("fresh start"),
        ])
        loop = AgentLoop(gateway, state, dispatcher)
        tool.loop = loop

        first = await loop.submit("one")
        second = await loop.submit("two")

        assert first.outcome == LoopOutcome.CANCELLED
        assert second.outcome == LoopOutcome.COMPLETED
        assert state.messages[-1].content == "fresh start"


class TestErrorMapping:
    """Tests for converting failures at the loop boundary."""

    @pytest.mark.asyncio
    async def test_transport_error_on_first_send(self, make_loop, state):
        loop, _ = make_loop(TransportError("503"))

        run = await loop.submit("hello")

        assert run.outcome == LoopOutcome.FAILED
        assert state.messages[-2].content == "hello"
        last = state.messages[-1]
        assert last.role == MessageRole.MODEL
        assert last.content == CONNECTION_ALERT
        assert last.is_error
        line = state.terminal_lines[-1]
        assert (line.content, line.severity) == ("Error communicating with Core.", Severity.ERROR)
        assert not state.is_thinking

    @pytest.mark.asyncio
    async def test_failure_mid_loop_preserves_history(self, make_loop, state):
        loop, gateway = make_loop(
            tool_response(call("computer_type", "1", text="a"), text="Typing."),
            RuntimeError("socket closed"),
        )

        run = await loop.submit("go")

        assert run.outcome == LoopOutcome.FAILED
        assert run.rounds == 0
        assert [m.content for m in state.messages[-3:]] == ["go", "Typing.", CONNECTION_ALERT]

    @pytest.mark.asyncio
    async def test_encoding_error_reported_as_system_message(self, make_loop, state):
        loop, _ = make_loop(EncodingError("shot.png", "file vanished"))

        run = await loop.submit("look")

        assert run.outcome == LoopOutcome.FAILED
        last = state.messages[-1]
        assert last.role == MessageRole.SYSTEM
        assert "shot.png" in last.content
        assert last.is_error

    @pytest.mark.asyncio
    async def test_loop_usable_after_failure(self, make_loop, state):
        loop, _ = make_loop(TransportError("down"), text_response("back online"))

        await loop.submit("first")
        run = await loop.submit("second")

        assert run.outcome == LoopOutcome.COMPLETED
        assert state.messages[-1].content == "back online"


class TestResponseChannels:
    """Tests for citations and code execution inside the loop."""

    @pytest.mark.asyncio
    async def test_citations_open_browser(self, make_loop, state):
        loop, _ = make_loop(cited_response("Found it", ("https://a.example", "A"), ("https://b.example", "B")))

        await loop.submit("search")

        browser = state.workspace.browser
        assert [s.uri for s in browser.search_results()] == ["https://a.example", "https://b.example"]
        assert state.workspace.active == SurfaceKind.BROWSER
        assert state.messages[-1].content == "Found it"

    @pytest.mark.asyncio
    async def test_code_execution_narrated(self, make_loop, state):
        loop, _ = make_loop(code_response("print(2 + 2)", "4\n"))

        run = await loop.submit("compute")

        assert run.outcome == LoopOutcome.COMPLETED
        contents = [line.content for line in state.terminal_lines]
        assert "print(2 + 2)" in contents
        assert contents[-1] == "4\n"

    @pytest.mark.asyncio
    async def test_debug_callback_receives_trace(self, make_loop):
        loop, _ = make_loop(tool_response(call("computer_type", "1", text="a")), text_response("ok"))
        trace = []
        loop.set_debug_callback(lambda level, component, message: trace.append((level, component)))

        await loop.submit("go")

        components = {component for _, component in trace}
        assert {"Loop", "Tool"} <= components
