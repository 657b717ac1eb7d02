"""Tool dispatcher: maps tool calls to simulated effects.

Hidden design decisions:
- Tool registry lookup and the fallback for unknown tools
- Containment of argument errors per call
- Browser accordion timing
- How server-side code execution is narrated
"""

from collections.abc import Sequence
from typing import Any

from ..config import BROWSER_LATENCY_SECONDS, CODE_OUTPUT_MAX_LENGTH, CODE_PREVIEW_LINES
from ..errors import InvalidArguments
from ..llm.models import CodeExecutionResult, ExecutableCode, ToolCall, ToolResult
from ..workspace.models import Severity, SurfaceKind, WebSource
from ..workspace.state import ConversationState
from .cancellation import CancellationToken
from .tools import BaseTool, default_tools


class ToolDispatcher:
    """Applies tool calls to the conversation state, one at a time."""

    def __init__(
        self,
        tools: Sequence[BaseTool] | None = None,
        browser_latency: float = BROWSER_LATENCY_SECONDS
    ):
        """Initialize the dispatcher.

        Args:
            tools: Tools to register (default: the six workspace tools)
            browser_latency: Simulated navigation delay in seconds
        """
        self._tools = list(tools) if tools is not None else default_tools()
        self._tools_registry = {t.name: t for t in self._tools}
        self._browser_latency = browser_latency
        self._debug_callback: Any | None = None

    @property
    def tools(self) -> list[BaseTool]:
        """Get the list of tools."""
        return list(self._tools_registry.values())

    def tool_specs(self) -> list[dict[str, Any]]:
        """Declarations for every registered tool, for the gateway."""
        return [tool.to_llm_spec() for tool in self._tools]

    def set_debug_callback(self, callback: Any) -> None:
        """Set the debug callback and propagate it to all tools."""
        self._debug_callback = callback
        for tool in self._tools:
            tool.set_debug_callback(callback)

    def _debug(self, level: str, component: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, component, message)

    async def dispatch(
        self,
        tool_call: ToolCall,
        state: ConversationState,
        index: int = 0
    ) -> ToolResult:
        """Apply one tool call and build its result.

        Args:
            tool_call: The call to apply
            state: Conversation state to mutate
            index: Position of the call in its batch, used to synthesize a
                correlation id when the model omitted one

        Returns:
            ToolResult tagged with the call's correlation id
        """
        call_id = tool_call.id or f"unknown-id-{index}"
        tool = self._tools_registry.get(tool_call.name)

        if tool is None:
            self._debug("warning", "Tool", f"Unknown tool requested: {tool_call.name}")
            state.add_log(f">> TOOL: {tool_call.name}", Severity.INFO)
            return ToolResult(
                call_id=call_id,
                name=tool_call.name,
                result=f"Tool {tool_call.name} executed."
            )

        self._debug("info", "Tool", f"Executing {tool_call.name}...")
        try:
            result = await tool.execute(tool_call, state)
        except InvalidArguments as e:
            self._debug("warning", "Tool", str(e))
            state.add_log(f">> {tool_call.name.upper()} REJECTED: {e.detail}", Severity.ERROR)
            return ToolResult(call_id=call_id, name=tool_call.name, result=f"Error: {e}", error=True)
        except Exception as e:
            self._debug("error", "Tool", f"{tool_call.name} failed: {e}")
            state.add_log(f">> {tool_call.name.upper()} FAILED", Severity.ERROR)
            return ToolResult(
                call_id=call_id,
                name=tool_call.name,
                result=f"Error executing tool: {str(e)}",
                error=True
            )

        self._debug("debug", "Tool", f"Result: {result}")
        return ToolResult(call_id=call_id, name=tool_call.name, result=result)

    async def navigate(
        self,
        sources: Sequence[WebSource],
        state: ConversationState,
        token: CancellationToken
    ) -> None:
        """Play the browser accordion for a set of citations.

        Shows the loading state, waits the simulated latency and reveals the
        citation list. The wait is a cancellation checkpoint: when the token
        fires the browser is left loading and UserCancellation propagates.
        """
        self._debug("info", "Browser", f"Navigating to {len(sources)} source(s)")
        state.begin_navigation()
        state.add_log(">> INIT: SECURE WEB GATEWAY", Severity.INFO)

        await token.sleep(self._browser_latency)

        state.complete_navigation(sources)
        state.add_log(">> DATA RECEIVED: 200 OK", Severity.SUCCESS)

    def show_execution(
        self,
        execution: ExecutableCode | CodeExecutionResult,
        state: ConversationState
    ) -> None:
        """Narrate server-side code execution in the terminal."""
        if isinstance(execution, ExecutableCode):
            state.switch_surface(SurfaceKind.TERMINAL)
            state.add_log(
                f">> REQUEST: PROVISION_SANDBOX_{execution.language.upper()}_ENV",
                Severity.INFO
            )
            state.add_log(">> EXECUTING SCRIPT...", Severity.SUCCESS)
            for line in execution.code.split("\n")[:CODE_PREVIEW_LINES]:
                if line.strip():
                    state.add_log(line, Severity.COMMAND)
            return

        output = execution.output
        if len(output) > CODE_OUTPUT_MAX_LENGTH:
            output = output[:CODE_OUTPUT_MAX_LENGTH] + "..."
        state.add_log(">> STDOUT:", Severity.INFO)
        state.add_log(output, Severity.SUCCESS if execution.ok else Severity.ERROR)
