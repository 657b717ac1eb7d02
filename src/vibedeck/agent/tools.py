"""Simulated workspace tools.

Each tool narrates its action into the terminal log and may switch the
visible surface. Nothing is executed for real.
"""

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..errors import InvalidArguments
from ..llm.models import ToolCall
from ..workspace.models import Severity, SurfaceKind
from ..workspace.state import ConversationState


def format_number(value: float) -> str:
    """Render 500.0 as "500" and 12.5 as "12.5"."""
    if float(value).is_integer():
        return str(int(value))
    return str(value)


class BaseTool(ABC):
    """Abstract base class for tools.

    Subclasses declare their argument model; arguments are validated before
    ``run`` is called.
    """

    arguments_model: type[BaseModel]

    def __init__(self) -> None:
        self._debug_callback: Any | None = None

    def set_debug_callback(self, callback: Any) -> None:
        """Set debug callback for logging.

        Args:
            callback: Callable(level: str, component: str, message: str)
        """
        self._debug_callback = callback

    def _debug(self, level: str, component: str, message: str) -> None:
        """Send debug message if callback is set."""
        if self._debug_callback:
            self._debug_callback(level, component, message)

    @property
    @abstractmethod
    def name(self) -> str:
        """Get the tool name."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Get the tool description for the LLM."""
        pass

    @property
    @abstractmethod
    def parameters_schema(self) -> dict[str, Any]:
        """Get the JSON schema for tool parameters."""
        pass

    def parse_arguments(self, tool_call: ToolCall) -> BaseModel:
        """Validate the call's arguments against ``arguments_model``.

        Raises:
            InvalidArguments: If a required argument is missing or malformed
        """
        try:
            return self.arguments_model.model_validate(tool_call.args)
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(p) for p in err['loc']) or 'arguments'}: {err['msg']}"
                for err in e.errors()
            )
            raise InvalidArguments(self.name, problems) from e

    async def execute(self, tool_call: ToolCall, state: ConversationState) -> str:
        """Validate arguments and apply the simulated effect.

        Returns:
            Human-readable result string for the model
        """
        arguments = self.parse_arguments(tool_call)
        self._debug("debug", "Tool", f"{self.name} arguments: {arguments.model_dump(by_alias=True)}")
        return await self.run(arguments, state)

    @abstractmethod
    async def run(self, arguments: Any, state: ConversationState) -> str:
        """Apply the simulated effect for validated arguments."""
        pass

    def to_llm_spec(self) -> dict[str, Any]:
        """Convert tool to LLM-friendly specification.

        Returns:
            Dictionary describing the tool for the LLM
        """
        return {
            "name": self.name,
            "description": self.description,
            "parameters": self.parameters_schema
        }


class PointArguments(BaseModel):
    x: float
    y: float


class ClickArguments(PointArguments):
    button: str


class TypeArguments(BaseModel):
    text: str


class CommandArguments(BaseModel):
    command: str


class EndpointArguments(BaseModel):
    endpoint: str


class PreviewArguments(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    html_code: str = Field(alias="htmlCode")
    description: str


def _coordinate_schema(axis: str) -> dict[str, Any]:
    return {"type": "number", "description": f"{axis} coordinate (0-1000)"}


class ComputerMoveTool(BaseTool):
    """Moves the simulated cursor."""

    arguments_model = PointArguments

    @property
    def name(self) -> str:
        return "computer_move"

    @property
    def description(self) -> str:
        return "Moves the cursor to specific X,Y coordinates on the screen (0-1000 scale)."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {"x": _coordinate_schema("X"), "y": _coordinate_schema("Y")},
            "required": ["x", "y"]
        }

    async def run(self, arguments: PointArguments, state: ConversationState) -> str:
        x, y = format_number(arguments.x), format_number(arguments.y)
        state.add_log(f">> MOUSE_MOVE: [{x}, {y}]", Severity.COMMAND)
        state.switch_surface(SurfaceKind.TERMINAL)
        return f"Cursor moved to {x}, {y}"


class ComputerClickTool(BaseTool):
    """Clicks at a point."""

    arguments_model = ClickArguments

    @property
    def name(self) -> str:
        return "computer_click"

    @property
    def description(self) -> str:
        return "Performs a mouse click at specific coordinates."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "x": _coordinate_schema("X"),
                "y": _coordinate_schema("Y"),
                "button": {"type": "string", "description": "'left', 'right', or 'middle'"}
            },
            "required": ["x", "y", "button"]
        }

    async def run(self, arguments: ClickArguments, state: ConversationState) -> str:
        x, y = format_number(arguments.x), format_number(arguments.y)
        state.add_log(
            f">> MOUSE_CLICK: {arguments.button.upper()} at [{x}, {y}]",
            Severity.SUCCESS
        )
        return f"Clicked {arguments.button} at {x}, {y}"


class ComputerTypeTool(BaseTool):
    """Types into the focused element."""

    arguments_model = TypeArguments

    @property
    def name(self) -> str:
        return "computer_type"

    @property
    def description(self) -> str:
        return "Simulates keyboard input into the currently focused element."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "text": {"type": "string", "description": "The text string to type."}
            },
            "required": ["text"]
        }

    async def run(self, arguments: TypeArguments, state: ConversationState) -> str:
        state.add_log(f'>> KEYBOARD_TYPE: "{arguments.text}"', Severity.COMMAND)
        return f'Typed "{arguments.text}"'


class TerminalExecuteTool(BaseTool):
    """Narrates a sandbox command and a synthetic stdout line."""

    arguments_model = CommandArguments

    @property
    def name(self) -> str:
        return "terminal_execute"

    @property
    def description(self) -> str:
        return "Executes a shell or python command in the sandbox environment."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "command": {"type": "string", "description": "The command to run."}
            },
            "required": ["command"]
        }

    async def run(self, arguments: CommandArguments, state: ConversationState) -> str:
        state.add_log(f">> EXEC: {arguments.command}", Severity.COMMAND)
        state.add_log(">> STDOUT: Command executed.", Severity.SUCCESS)
        state.switch_surface(SurfaceKind.TERMINAL)
        return f"Executed: {arguments.command}"


class InternalSiteApiTool(BaseTool):
    """Narrates a call to an internal site API."""

    arguments_model = EndpointArguments

    @property
    def name(self) -> str:
        return "internal_site_api"

    @property
    def description(self) -> str:
        return "Access internal site APIs directly."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "endpoint": {"type": "string", "description": "API endpoint"}
            },
            "required": ["endpoint"]
        }

    async def run(self, arguments: EndpointArguments, state: ConversationState) -> str:
        state.add_log(f">> API_CALL: {arguments.endpoint}", Severity.INFO)
        state.add_log(">> 200 OK", Severity.SUCCESS)
        return "API Response: 200 OK"


class UpdateVibePreviewTool(BaseTool):
    """Renders model-generated HTML in the preview surface."""

    arguments_model = PreviewArguments

    @property
    def name(self) -> str:
        return "update_vibe_preview"

    @property
    def description(self) -> str:
        return "Generates/Renders HTML content. Use when asked to show UI."

    @property
    def parameters_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "htmlCode": {"type": "string", "description": "Complete HTML document to render."},
                "description": {"type": "string", "description": "Short summary of the UI."}
            },
            "required": ["htmlCode", "description"]
        }

    async def run(self, arguments: PreviewArguments, state: ConversationState) -> str:
        state.add_log(f"Rendering UI: {arguments.description}", Severity.INFO)
        state.render_preview(arguments.html_code)
        state.add_log("Vibe Interface Deployed.", Severity.SUCCESS)
        return "UI Rendered Successfully."


def default_tools() -> list[BaseTool]:
    """The fixed tool set declared to the model."""
    return [
        ComputerMoveTool(),
        ComputerClickTool(),
        ComputerTypeTool(),
        TerminalExecuteTool(),
        InternalSiteApiTool(),
        UpdateVibePreviewTool(),
    ]
