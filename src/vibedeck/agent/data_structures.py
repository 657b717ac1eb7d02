"""Data structures for the agent loop.

Attributes of each model are documented on the model itself.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from ..llm.models import CodeExecutionResult, ExecutableCode, ToolCall
from ..workspace.models import WebSource


class LoopPhase(str, Enum):
    """Phases of one loop execution."""

    IDLE = "idle"
    SENDING = "sending"
    INTERPRETING = "interpreting"
    DISPATCHING = "dispatching"
    RESUBMITTING = "resubmitting"
    CANCELLED = "cancelled"


class LoopOutcome(str, Enum):
    """How a submission ended."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"
    REJECTED = "rejected"


class Interpretation(BaseModel):
    """One model response split into its channels.

    Attributes:
        citations: Web sources from the grounding metadata
        text: All text fragments concatenated in arrival order
        tool_calls: Requested tool calls in arrival order
        executions: Server-side code and its results in arrival order
    """

    model_config = ConfigDict(frozen=True)

    citations: list[WebSource] = Field(default_factory=list)
    text: str = ""
    tool_calls: list[ToolCall] = Field(default_factory=list)
    executions: list[ExecutableCode | CodeExecutionResult] = Field(default_factory=list)


class LoopRun(BaseModel):
    """Result of one submission.

    Attributes:
        outcome: Terminal state reached
        rounds: Number of tool-result resubmissions made
        error: Error description for FAILED runs
    """

    outcome: LoopOutcome
    rounds: int = 0
    error: str | None = None

    def __str__(self) -> str:
        return self.outcome.value
