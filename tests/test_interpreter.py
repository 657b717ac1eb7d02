"""Unit tests for the response interpreter."""
from hypothesis import given
from hypothesis import strategies as st

from vibedeck.agent import interpret
from vibedeck.llm import (
    CodeExecutionResult,
    ExecutableCode,
    GroundingEntry,
    ModelResponse,
    ResponsePart,
    ToolCall,
)
from vibedeck.workspace import WebSource

from conftest import call, cited_response, text_response


class TestInterpret:
    """Tests for splitting a response into channels."""

    def test_text_fragments_concatenated_in_order(self):
        """Test that text fragments are joined without separators."""
        result = interpret(text_response("Hello, ", "world", "!"))

        assert result.text == "Hello, world!"
        assert result.tool_calls == []
        assert result.citations == []

    def test_tool_calls_only_response_has_empty_text(self):
        """Test that a tools-only response yields empty text."""
        response = ModelResponse(parts=[call("computer_move", "a", x=1, y=2)])

        result = interpret(response)

        assert result.text == ""
        assert [c.name for c in result.tool_calls] == ["computer_move"]

    def test_empty_response_means_done(self):
        """Test that an empty response has no text and no tool calls."""
        result = interpret(ModelResponse())

        assert result.text == ""
        assert result.tool_calls == []
        assert result.executions == []

    def test_mixed_parts_preserve_call_order(self):
        """Test that tool calls keep arrival order across text fragments."""
        response = ModelResponse(parts=[
            ResponsePart(text="Thinking. "),
            call("computer_move", "1", x=10, y=20),
            ResponsePart(text="Clicking."),
            call("computer_click", "2", x=10, y=20, button="left"),
        ])

        result = interpret(response)

        assert result.text == "Thinking. Clicking."
        assert [c.id for c in result.tool_calls] == ["1", "2"]

    def test_citations_from_web_entries_only(self):
        """Test that grounding entries without a web source are skipped."""
        response = ModelResponse(
            parts=[ResponsePart(text="See sources.")],
            grounding=[
                GroundingEntry(web=WebSource(uri="https://a.example", title="A")),
                GroundingEntry(web=None),
                GroundingEntry(web=WebSource(uri="https://b.example", title="B")),
            ],
        )

        result = interpret(response)

        assert [s.uri for s in result.citations] == ["https://a.example", "https://b.example"]

    def test_cited_response_builder(self):
        """Test that citations and text are both extracted."""
        result = interpret(cited_response("Answer", ("https://x.example", "X")))

        assert result.text == "Answer"
        assert result.citations == [WebSource(uri="https://x.example", title="X")]

    def test_executions_in_fragment_order(self):
        """Test that code and its result form a fourth channel."""
        code = ExecutableCode(code="print(1)")
        output = CodeExecutionResult(output="1\n")
        response = ModelResponse(parts=[
            ResponsePart(executable_code=code),
            ResponsePart(code_execution_result=output),
        ])

        result = interpret(response)

        assert result.executions == [code, output]
        assert result.tool_calls == []

    @given(st.lists(st.text(min_size=1, max_size=20), max_size=10))
    def test_text_is_concatenation_of_fragments(self, fragments: list[str]):
        """Property test: interpreted text equals the joined fragments."""
        response = ModelResponse(parts=[ResponsePart(text=f) for f in fragments])

        assert interpret(response).text == "".join(fragments)

    @given(st.lists(st.sampled_from(["computer_move", "computer_type", "terminal_execute"]), max_size=8))
    def test_one_tool_call_per_function_part(self, names: list[str]):
        """Property test: every function-call part becomes exactly one tool call."""
        response = ModelResponse(parts=[
            ResponsePart(function_call=ToolCall(name=n, id=str(i))) for i, n in enumerate(names)
        ])

        result = interpret(response)

        assert [c.name for c in result.tool_calls] == names
