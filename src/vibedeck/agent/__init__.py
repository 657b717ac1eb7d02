"""Agent module: response interpretation, tool dispatch and the agent loop."""

from .agent_loop import AgentLoop
from .cancellation import CancellationToken
from .data_structures import Interpretation, LoopOutcome, LoopPhase, LoopRun
from .dispatcher import ToolDispatcher
from .interpreter import interpret
from .tools import (
    BaseTool,
    ComputerClickTool,
    ComputerMoveTool,
    ComputerTypeTool,
    InternalSiteApiTool,
    TerminalExecuteTool,
    UpdateVibePreviewTool,
    default_tools,
)

__all__ = [
    "AgentLoop",
    "CancellationToken",
    "Interpretation",
    "LoopOutcome",
    "LoopPhase",
    "LoopRun",
    "ToolDispatcher",
    "interpret",
    "BaseTool",
    "ComputerClickTool",
    "ComputerMoveTool",
    "ComputerTypeTool",
    "InternalSiteApiTool",
    "TerminalExecuteTool",
    "UpdateVibePreviewTool",
    "default_tools",
]
