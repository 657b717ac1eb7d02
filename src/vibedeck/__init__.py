"""
Vibedeck: a terminal client for a tool-calling Gemini agent.

The model's tool calls are reflected into three simulated workspace surfaces:
a command log, a browser view and a rendered-HTML preview.
"""

__version__ = "0.1.0"

from .agent import AgentLoop, LoopOutcome, LoopRun, ToolDispatcher
from .errors import (
    ConfigurationError,
    EncodingError,
    InvalidArguments,
    MaxRoundsExceeded,
    SessionError,
    TransportError,
    UserCancellation,
    VibedeckError,
)
from .llm import ModelGateway, create_gateway
from .workspace import ConversationState

__all__ = [
    "AgentLoop",
    "ConfigurationError",
    "ConversationState",
    "EncodingError",
    "InvalidArguments",
    "LoopOutcome",
    "LoopRun",
    "MaxRoundsExceeded",
    "ModelGateway",
    "SessionError",
    "ToolDispatcher",
    "TransportError",
    "UserCancellation",
    "VibedeckError",
    "create_gateway",
]
