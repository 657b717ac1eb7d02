"""Provider-neutral response and tool-call models.

The gateway converts whatever its SDK returns into these types so the rest
of the agent never touches provider objects.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..workspace.models import WebSource


class ToolCall(BaseModel):
    """A tool invocation requested by the model.

    Attributes:
        name: Name of the declared tool
        args: Argument mapping as sent by the model
        id: Correlation id, if the model supplied one
    """

    model_config = ConfigDict(frozen=True)

    name: str
    args: dict[str, Any] = Field(default_factory=dict)
    id: str | None = None


class ToolResult(BaseModel):
    """Outcome of dispatching one ToolCall.

    Attributes:
        call_id: Correlation id echoed back to the model
        name: Name of the tool that was called
        result: Human-readable result string
        error: Whether the call failed
    """

    model_config = ConfigDict(frozen=True)

    call_id: str
    name: str
    result: str
    error: bool = False


class ExecutableCode(BaseModel):
    """Code the model ran with its server-side code execution tool."""

    model_config = ConfigDict(frozen=True)

    code: str
    language: str = "PYTHON"


class CodeExecutionResult(BaseModel):
    """Output of server-side code execution."""

    model_config = ConfigDict(frozen=True)

    output: str = ""
    outcome: str = "OUTCOME_OK"

    @property
    def ok(self) -> bool:
        return self.outcome == "OUTCOME_OK"


class ResponsePart(BaseModel):
    """One fragment of a model response. Usually exactly one field is set."""

    model_config = ConfigDict(frozen=True)

    text: str | None = None
    function_call: ToolCall | None = None
    executable_code: ExecutableCode | None = None
    code_execution_result: CodeExecutionResult | None = None


class GroundingEntry(BaseModel):
    """Response-level grounding metadata entry. Web entries carry a source."""

    model_config = ConfigDict(frozen=True)

    web: WebSource | None = None


class ModelResponse(BaseModel):
    """A complete model response."""

    model_config = ConfigDict(frozen=True)

    parts: list[ResponsePart] = Field(default_factory=list)
    grounding: list[GroundingEntry] = Field(default_factory=list)
    model: str = ""
    usage: dict[str, int] | None = None
