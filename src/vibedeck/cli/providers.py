"""Provider factory functions for CLI.

Centralizes creation of the gateway and the agent loop from environment
variables. Hides configuration details from command implementations.
"""

from rich.console import Console

from ..agent import AgentLoop, ToolDispatcher
from ..config import Settings
from ..errors import ConfigurationError
from ..llm import ModelGateway, create_gateway
from ..workspace import ConversationState

# Default console for output
_console = Console()


def get_gateway(settings: Settings, dispatcher: ToolDispatcher) -> ModelGateway:
    """Create the Gemini gateway declaring the dispatcher's tools.

    Args:
        settings: Resolved settings
        dispatcher: Dispatcher whose tools are declared to the model

    Returns:
        Gemini gateway instance

    Raises:
        ConfigurationError: If GEMINI_API_KEY (or API_KEY) is not set, or the
            system instruction file cannot be read

    Environment variables:
        GEMINI_API_KEY: Gemini API key (required)
        GEMINI_MODEL: Gemini model (default: gemini-2.5-flash)
    """
    if not settings.api_key:
        raise ConfigurationError("GEMINI_API_KEY not set in environment")

    return create_gateway(
        "gemini",
        api_key=settings.api_key,
        model=settings.model,
        system_instruction=settings.system_instruction(),
        tools=dispatcher.tool_specs(),
    )


def build_loop(settings: Settings | None = None) -> AgentLoop:
    """Wire dispatcher, gateway and a fresh conversation state into a loop.

    Raises:
        ConfigurationError: If no API credential is configured
    """
    settings = settings or Settings.from_env()
    dispatcher = ToolDispatcher(browser_latency=settings.browser_latency)
    gateway = get_gateway(settings, dispatcher)
    return AgentLoop(
        gateway=gateway,
        state=ConversationState(),
        dispatcher=dispatcher,
        max_rounds=settings.max_rounds,
    )


def require_loop(settings: Settings | None = None, console: Console | None = None) -> AgentLoop:
    """Build the agent loop, exiting with an error if not configured.

    Raises:
        SystemExit: If no API credential is configured
    """
    import typer

    con = console or _console
    try:
        return build_loop(settings)
    except ConfigurationError as e:
        con.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(code=1)
