"""Response interpreter: splits a model response into its channels."""

from ..llm.models import CodeExecutionResult, ExecutableCode, ModelResponse, ToolCall
from ..workspace.models import WebSource
from .data_structures import Interpretation


def interpret(response: ModelResponse) -> Interpretation:
    """Walk one response and separate citations, text, tool calls and code runs.

    Text fragments are concatenated in arrival order; the result may be empty
    for a tool-calls-only response. An empty ``tool_calls`` list means the
    model is done.
    """
    citations: list[WebSource] = [
        entry.web for entry in response.grounding if entry.web is not None
    ]

    fragments: list[str] = []
    tool_calls: list[ToolCall] = []
    executions: list[ExecutableCode | CodeExecutionResult] = []

    for part in response.parts:
        if part.text:
            fragments.append(part.text)
        if part.executable_code is not None:
            executions.append(part.executable_code)
        if part.code_execution_result is not None:
            executions.append(part.code_execution_result)
        if part.function_call is not None:
            tool_calls.append(part.function_call)

    return Interpretation(
        citations=citations,
        text="".join(fragments),
        tool_calls=tool_calls,
        executions=executions,
    )
