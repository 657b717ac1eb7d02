from .base import ModelGateway
from .factory import create_gateway
from .models import (
    CodeExecutionResult,
    ExecutableCode,
    GroundingEntry,
    ModelResponse,
    ResponsePart,
    ToolCall,
    ToolResult,
)
from .providers import GeminiGateway

__all__ = [
    "ModelGateway",
    "create_gateway",
    "CodeExecutionResult",
    "ExecutableCode",
    "GroundingEntry",
    "ModelResponse",
    "ResponsePart",
    "ToolCall",
    "ToolResult",
    "GeminiGateway",
]
