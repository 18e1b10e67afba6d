"""CLI entry point for codelens."""

from __future__ import annotations

import logging
import mimetypes
import subprocess
import sys
from pathlib import Path
from typing import NoReturn

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.progress import Progress, SpinnerColumn, TextColumn

from codelens.activity import read_activity_log
from codelens.assistant.errors import AssistantError
from codelens.assistant.models import AUTO_DETECT, EXPLANATION_MODES
from codelens.assistant.orchestrator import DebugAssistant
from codelens.config import Config
from codelens.report import format_analysis, format_execution, format_practice
from codelens.session.controller import build_practice_context
from codelens.storage.db import get_connection
from codelens.storage.history import HistoryStore

err_console = Console(stderr=True)

app = typer.Typer(help="Debug code with an AI assistant: analysis, fixes, simulated tests and practice.")


@app.callback()
def main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Show retry and fallback logs")) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(show_path=False)],
    )


def _write_env(project_dir: Path, anthropic_key: str) -> None:
    """Write or update .env file with codelens credentials."""
    env_path = project_dir / ".env"
    lines: list[str] = [f"ANTHROPIC_API_KEY={anthropic_key}"]

    our_keys = {"ANTHROPIC_API_KEY"}
    if env_path.exists():
        for line in env_path.read_text().splitlines():
            key = line.split("=")[0].strip()
            if key and key not in our_keys:
                lines.append(line)

    env_path.write_text("\n".join(lines) + "\n")
    rprint(f"Credentials saved to {env_path}")


def _check_mode(mode: str) -> str:
    if mode not in EXPLANATION_MODES:
        rprint(f"[red]Mode must be one of: {', '.join(EXPLANATION_MODES)}[/red]")
        raise typer.Exit(1)
    return mode


def _assistant(config: Config) -> DebugAssistant:
    for issue in config.validate():
        err_console.print(f"[yellow]Config warning: {issue}[/yellow]")
    return DebugAssistant.from_config(config)


def _fail(error: AssistantError) -> NoReturn:
    rprint(f"[red]{escape(error.message)}[/red]")
    raise typer.Exit(1)


@app.command()
def init(
    anthropic_key: str = typer.Option(
        ..., "--anthropic-key", prompt="Anthropic API key", hide_input=True, help="Anthropic API key"
    ),
) -> None:
    """Save the Anthropic API key to a .env file in the current directory."""
    _write_env(Path.cwd(), anthropic_key)
    rprint("\n[green bold]codelens initialized[/green bold]")
    rprint("\nNext steps:")
    rprint("  1. Run [bold]codelens analyze path/to/file.py[/bold]")
    rprint("  2. Or start the web UI with [bold]codelens ui[/bold]")


@app.command()
def analyze(
    path: Path = typer.Argument(None, help="Source file to debug (reads stdin when omitted)"),
    language: str = typer.Option(AUTO_DETECT, "--language", "-l", help="R, Python, C++, JavaScript, Java"),
    mode: str = typer.Option("beginner", "--mode", "-m", help="beginner or advanced"),
    format: str = typer.Option("text", "--format", "-f", help="Output format: text or json"),
    run_tests: bool = typer.Option(False, "--run-tests", help="Simulate the suggested tests"),
    practice: bool = typer.Option(False, "--practice", help="Generate a practice problem"),
    db_path: str = typer.Option(None, help="Database file path for history"),
) -> None:
    """Analyze code for bugs and propose a fix."""
    config = Config.load()
    mode = _check_mode(mode)
    code = path.read_text() if path else sys.stdin.read()
    if not code.strip():
        rprint("[red]No code to analyze.[/red]")
        raise typer.Exit(1)

    assistant = _assistant(config)
    try:
        with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), transient=True) as progress:
            progress.add_task("Analyzing code...", total=None)
            result = assistant.analyze(code, language, mode)
    except AssistantError as e:
        _fail(e)

    conn = get_connection(Path(db_path) if db_path else config.db_path)
    try:
        HistoryStore(conn).add(code, result)
    finally:
        conn.close()

    if format == "json":
        typer.echo(result.to_json())
    else:
        rprint(escape(format_analysis(result, code)))

    if run_tests and result.correction:
        try:
            execution = assistant.run_tests(result.correction.corrected_code, result.correction.tests)
        except AssistantError as e:
            _fail(e)
        rprint("\n[bold]Simulated tests:[/bold]")
        rprint(escape(format_execution(execution)))

    if practice:
        try:
            response = assistant.generate_practice(
                build_practice_context(result, code), language, mode, result.concept_label
            )
        except AssistantError as e:
            _fail(e)
        rprint("\n[bold]Practice:[/bold]")
        rprint(escape(format_practice(response.problems[0])))


@app.command()
def extract(
    image: Path = typer.Argument(help="Image containing code or a math problem"),
    output: Path = typer.Option(None, "--output", "-o", help="Write the extracted code to this file"),
) -> None:
    """Extract code from an image."""
    if not image.exists():
        rprint(f"[red]Image not found at {image}[/red]")
        raise typer.Exit(1)
    mime_type = mimetypes.guess_type(image.name)[0]
    if not mime_type or not mime_type.startswith("image/"):
        rprint(f"[red]Unsupported image type: {image.name}[/red]")
        raise typer.Exit(1)

    assistant = _assistant(Config.load())
    try:
        result = assistant.extract_code(image.read_bytes(), mime_type)
    except AssistantError as e:
        _fail(e)

    if result.is_mock:
        rprint("[yellow]Demo Mode: Quota exceeded. Loaded sample code instead.[/yellow]")
    elif result.is_low_confidence:
        rprint(f"[yellow]Low confidence ({result.confidence:.0%}). Crop closer or paste the code manually.[/yellow]")

    if output:
        output.write_text(result.text + "\n")
        rprint(f"[green]Wrote {len(result.lines)} line(s) of {result.language} to {output}[/green]")
    else:
        typer.echo(result.text)


@app.command()
def practice(
    index: int = typer.Option(0, "--index", "-i", help="History entry to practice on (0 = newest)"),
    avoid: str = typer.Option(None, "--avoid", help="A previous prompt not to repeat"),
    language: str = typer.Option(AUTO_DETECT, "--language", "-l"),
    mode: str = typer.Option("beginner", "--mode", "-m"),
    show_solution: bool = typer.Option(False, "--solution", help="Also print the solution"),
    db_path: str = typer.Option(None, help="Database file path"),
) -> None:
    """Generate a practice problem from a past analysis."""
    config = Config.load()
    mode = _check_mode(mode)
    db = Path(db_path) if db_path else config.db_path
    if not db.exists():
        rprint(f"[red]Database not found at {db}. Run 'codelens analyze' first.[/red]")
        raise typer.Exit(1)

    conn = get_connection(db)
    try:
        entries = HistoryStore(conn).list()
    finally:
        conn.close()
    if not 0 <= index < len(entries):
        rprint(f"[red]No history entry at index {index} ({len(entries)} stored).[/red]")
        raise typer.Exit(1)

    entry = entries[index]
    assistant = _assistant(config)
    try:
        response = assistant.generate_practice(
            build_practice_context(entry.result, entry.code),
            language,
            mode,
            entry.result.concept_label,
            previous_prompt=avoid,
        )
    except AssistantError as e:
        _fail(e)
    rprint(escape(format_practice(response.problems[0], show_solution=show_solution)))


@app.command()
def history(
    db_path: str = typer.Option(None, help="Database file path"),
) -> None:
    """List the most recent analyses."""
    config = Config.load()
    db = Path(db_path) if db_path else config.db_path
    if not db.exists():
        rprint("No history yet.")
        return

    conn = get_connection(db)
    try:
        entries = HistoryStore(conn).list()
    finally:
        conn.close()

    if not entries:
        rprint("No history yet.")
        return
    rprint("[bold]Recent analyses:[/bold]")
    for i, entry in enumerate(entries):
        first_line = entry.code.strip().splitlines()[0] if entry.code.strip() else ""
        badge = " [yellow](demo)[/yellow]" if entry.result.is_mock else ""
        rprint(
            f"  [{i}] {entry.created_at:%Y-%m-%d %H:%M}  {escape(entry.result.concept_label)}{badge}\n"
            f"      {escape(first_line[:70])}"
        )


@app.command(name="clear-history")
def clear_history(
    db_path: str = typer.Option(None, help="Database file path"),
) -> None:
    """Delete all stored analyses."""
    config = Config.load()
    db = Path(db_path) if db_path else config.db_path
    if not db.exists():
        rprint("No history yet.")
        return
    conn = get_connection(db)
    try:
        HistoryStore(conn).clear()
    finally:
        conn.close()
    rprint("History cleared")


@app.command()
def activity(
    limit: int = typer.Option(20, "--limit", "-n", help="Number of entries"),
    tool: str = typer.Option(None, "--tool", help="Only show this tool"),
) -> None:
    """Show recent MCP tool calls."""
    entries = read_activity_log(limit=limit, tool_name=tool)
    if not entries:
        rprint("No activity recorded yet.")
        return
    for e in entries:
        status = "[red]error[/red]" if e.get("error") else "[green]ok[/green]"
        mock = " [yellow]mock[/yellow]" if e.get("is_mock") else ""
        rprint(f"{e['timestamp']}  {e['tool_name']}  {status}{mock}  {e.get('duration_ms', 0)}ms")


@app.command()
def serve() -> None:
    """Start the MCP server (called by Claude Code / Cursor automatically)."""
    import asyncio
    from codelens.mcp_server import main as mcp_main
    asyncio.run(mcp_main())


@app.command()
def ui(
    port: int = typer.Option(8501, help="Port for the Streamlit server"),
) -> None:
    """Launch the Streamlit web UI."""
    app_path = Path(__file__).resolve().parent / "ui" / "app.py"
    raise typer.Exit(
        subprocess.call(
            [sys.executable, "-m", "streamlit", "run", str(app_path), "--server.port", str(port)]
        )
    )


if __name__ == "__main__":
    app()
