"""Main CLI application using Typer."""
import asyncio
import contextlib
import dataclasses
import signal
from pathlib import Path

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..agent import AgentLoop, LoopOutcome, default_tools
from ..config import LogLevel, Settings
from ..errors import ConfigurationError
from ..workspace import Attachment, ConversationState, MessageRole, Severity, export_session
from .providers import build_loop, require_loop

# Load environment variables
load_dotenv()

# Create Typer app
app = typer.Typer(
    name="vibedeck",
    help="Terminal client for a tool-calling Gemini agent with a simulated workspace",
    no_args_is_help=True,
    add_completion=True,
)

# Console for rich output
console = Console()

_SEVERITY_STYLES = {
    Severity.INFO: "cyan",
    Severity.SUCCESS: "green",
    Severity.ERROR: "bold red",
    Severity.COMMAND: "yellow",
}


class ConsoleRenderer:
    """Prints new messages and terminal lines as the state changes."""

    def __init__(self, state: ConversationState, console: Console, show_terminal: bool = True):
        self._state = state
        self._console = console
        self._show_terminal = show_terminal
        self._messages = len(state.messages)
        self._lines = len(state.terminal_lines)
        self._browser_title: str | None = None

    def __call__(self, event: str) -> None:
        if event == "messages":
            self._print_messages()
        elif event == "terminal" and self._show_terminal:
            self._print_lines()
        elif event == "workspace":
            self._print_browser()
        elif event == "reset":
            self._messages = len(self._state.messages)
            self._lines = len(self._state.terminal_lines)

    def _print_messages(self) -> None:
        for message in self._state.messages[self._messages:]:
            if message.role == MessageRole.USER:
                continue
            if message.role == MessageRole.MODEL and not message.is_error:
                self._console.print(Panel(
                    Markdown(message.content),
                    title="[bold green]Manus[/bold green]",
                    border_style="green"
                ))
            else:
                style = "red" if message.is_error else "yellow"
                self._console.print(Text(message.content, style=style))
        self._messages = len(self._state.messages)

    def _print_lines(self) -> None:
        for line in self._state.terminal_lines[self._lines:]:
            text = Text("$ ", style="dim")
            text.append(line.content, style=_SEVERITY_STYLES.get(line.severity, "white"))
            self._console.print(text, highlight=False)
        self._lines = len(self._state.terminal_lines)

    def _print_browser(self) -> None:
        browser = self._state.workspace.browser
        if browser.is_loading or browser.title == self._browser_title:
            return
        self._browser_title = browser.title
        results = browser.search_results()
        if not results:
            return
        table = Table(title=browser.title, show_header=True, header_style="bold cyan")
        table.add_column("#", style="dim", width=3)
        table.add_column("Title", style="cyan")
        table.add_column("URL", style="blue")
        for index, source in enumerate(results, 1):
            table.add_row(str(index), source.title, source.uri)
        self._console.print(table)


def _print_debug(level: str, component: str, message: str, threshold: int) -> None:
    if LogLevel.from_string(level) < threshold:
        return
    colors = {"debug": "dim white", "info": "cyan", "warning": "yellow", "error": "red"}
    color = colors.get(level, "white")
    console.print(f"[{color}]{level.upper():<7}[/] [dim]\\[{component}][/dim] {message}")


@app.command(name="tui")
def tui_command(
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Show log panel with level: debug (all), info, warning, or error"
    ),
    max_rounds: int | None = typer.Option(
        None,
        "--max-rounds",
        "-r",
        help="Maximum tool rounds per task, 0 for unbounded (default: VIBEDECK_MAX_ROUNDS or 25)"
    ),
    export_dir: Path = typer.Option(
        Path("."),
        "--export-dir",
        "-e",
        file_okay=False,
        help="Directory for exported transcripts"
    ),
):
    """Launch the interactive TUI."""
    async def _tui():
        from ..ui import run_textual_tui

        settings = _settings(max_rounds)
        loop = None
        config_error = None
        try:
            loop = build_loop(settings)
        except ConfigurationError as e:
            config_error = str(e)

        try:
            await run_textual_tui(
                loop=loop,
                model_name=settings.model,
                log_level=log_level,
                config_error=config_error,
                export_dir=export_dir,
            )
        finally:
            console.print("\n[dim]Goodbye![/dim]")

    try:
        asyncio.run(_tui())
    except KeyboardInterrupt:
        pass


@app.command()
def run(
    task: str = typer.Argument(
        None,
        help="Task to run. Omit for interactive mode."
    ),
    attach: list[Path] = typer.Option(
        [],
        "--attach",
        "-a",
        exists=True,
        dir_okay=False,
        help="File to send with the first task (repeatable)"
    ),
    max_rounds: int | None = typer.Option(
        None,
        "--max-rounds",
        "-r",
        help="Maximum tool rounds per task, 0 for unbounded (default: VIBEDECK_MAX_ROUNDS or 25)"
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        "-l",
        help="Print trace log with level: debug (all), info, warning, or error"
    ),
    quiet: bool = typer.Option(
        False,
        "--quiet",
        "-q",
        help="Hide the simulated terminal log"
    ),
    export_dir: Path | None = typer.Option(
        None,
        "--export",
        "-e",
        file_okay=False,
        help="Write the transcript to this directory when done"
    ),
):
    """Run tasks headless, printing the conversation and terminal log.

    Press Ctrl+C while a task runs to stop it.
    """
    async def _process_task(loop: AgentLoop, text: str) -> LoopOutcome:
        event_loop = asyncio.get_running_loop()
        with contextlib.suppress(NotImplementedError):
            event_loop.add_signal_handler(signal.SIGINT, loop.cancel)
        try:
            with console.status("[dim]Thinking...[/dim]", spinner="dots"):
                result = await loop.submit(text)
        finally:
            with contextlib.suppress(NotImplementedError):
                event_loop.remove_signal_handler(signal.SIGINT)

        if result.outcome == LoopOutcome.REJECTED:
            console.print("[yellow]Nothing to send.[/yellow]")
        else:
            console.print(f"[dim]{result.outcome.value} after {result.rounds} tool round(s)[/dim]\n")
        return result.outcome

    async def _run():
        loop = require_loop(_settings(max_rounds), console)
        state = loop.state
        renderer = ConsoleRenderer(state, console, show_terminal=not quiet)
        state.add_listener(renderer)
        if log_level is not None:
            threshold = LogLevel.from_string(log_level)
            loop.set_debug_callback(
                lambda level, component, message: _print_debug(level, component, message, threshold)
            )

        for path in attach:
            state.stage_attachment(Attachment.from_path(path))

        failed = False
        try:
            if task is not None:
                console.print(f"[bold cyan]Task:[/bold cyan] {task}\n")
                outcome = await _process_task(loop, task)
                failed = outcome == LoopOutcome.FAILED
            else:
                console.print("[bold cyan]Vibedeck[/bold cyan]")
                console.print("[dim]Type 'exit', 'quit', or 'q' to leave\n[/dim]")

                while True:
                    try:
                        user_input = console.input("[bold yellow]You:[/bold yellow] ")

                        if not user_input.strip() and not state.pending_attachments:
                            continue

                        if user_input.strip().lower() in ('exit', 'quit', 'q'):
                            console.print("[dim]Goodbye![/dim]")
                            break

                        console.print()
                        await _process_task(loop, user_input)

                    except KeyboardInterrupt:
                        console.print("\n[dim]Goodbye![/dim]")
                        break
                    except EOFError:
                        console.print("\n[dim]Goodbye![/dim]")
                        break
        finally:
            state.remove_listener(renderer)
            if export_dir is not None:
                export_dir.mkdir(parents=True, exist_ok=True)
                path = export_session(state, export_dir)
                console.print(f"[green]Transcript written to {path}[/green]")
            await loop.close()

        if failed:
            raise typer.Exit(code=1)

    asyncio.run(_run())


@app.command()
def health():
    """Check configuration."""
    settings = _settings(None)
    all_healthy = True

    if settings.api_key:
        console.print("[green]+[/green] Gemini API key: SET")
    else:
        console.print("[red]x[/red] Gemini API key: NOT SET (GEMINI_API_KEY)")
        all_healthy = False

    console.print(f"[green]+[/green] Model: {settings.model}")
    rounds = settings.max_rounds if settings.max_rounds is not None else "unbounded"
    console.print(f"[green]+[/green] Max tool rounds: {rounds}")
    console.print(f"[green]+[/green] Browser latency: {settings.browser_latency:.2f}s")

    try:
        settings.system_instruction()
        source = settings.system_instruction_path or "packaged"
        console.print(f"[green]+[/green] System instruction: OK ({source})")
    except ConfigurationError as e:
        console.print(f"[red]x[/red] System instruction: MISSING ({escape(str(e))})")
        all_healthy = False

    if not all_healthy:
        raise typer.Exit(code=1)


@app.command()
def tools():
    """Show the tools declared to the model."""
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("Tool", style="cyan", no_wrap=True)
    table.add_column("Description")
    table.add_column("Parameters", style="yellow")

    for tool in default_tools():
        schema = tool.parameters_schema
        required = set(schema.get("required", []))
        params = ", ".join(
            f"{name}: {prop.get('type', 'any')}{'' if name in required else '?'}"
            for name, prop in schema.get("properties", {}).items()
        )
        table.add_row(tool.name, tool.description, params)

    console.print(table)
    console.print("[dim]Also enabled: Google Search grounding, server-side code execution[/dim]")


def _settings(max_rounds: int | None) -> Settings:
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        console.print(Text(f"Error: {e}", style="red"))
        raise typer.Exit(code=1)
    if max_rounds is None:
        return settings
    return dataclasses.replace(settings, max_rounds=max_rounds if max_rounds > 0 else None)


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
