"""phpintel CLI - PHP code intelligence.

This module provides the command-line interface for phpintel: completion,
navigation and type queries against a PHP project, plus maintenance of the
class hierarchy index.
"""

from __future__ import annotations

import json
import logging
import traceback
from pathlib import Path
from typing import Annotated, Any, Optional

import typer
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError
from rich.console import Console

# Load environment variables from .env file
load_dotenv()

app = typer.Typer(
    name="phpintel",
    help="Code intelligence for PHP projects",
    no_args_is_help=True,
)

# Rich console for formatted output
console = Console()
err_console = Console(stderr=True)

# Global verbose flag
_verbose: bool = False

RootOption = Annotated[
    Path,
    typer.Option(
        "--root",
        "-r",
        help="Project root (directory holding composer.json)",
        file_okay=False,
        dir_okay=True,
        resolve_path=True,
    ),
]
ClassOption = Annotated[
    Optional[str],
    typer.Option("--class", "-c", help="Class name; omit for free functions"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", help="Output machine-readable JSON"),
]


def set_verbose(verbose: bool) -> None:
    """Set global verbose mode."""
    global _verbose
    _verbose = verbose


def is_verbose() -> bool:
    """Check if verbose mode is enabled."""
    return _verbose


def print_exception(e: Exception) -> None:
    """Print exception details in verbose mode."""
    if _verbose:
        err_console.print("\n[dim]--- Traceback (verbose mode) ---[/dim]")
        err_console.print(f"[dim]{traceback.format_exc()}[/dim]")


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Enable verbose output with full tracebacks"),
    ] = False,
) -> None:
    """phpintel CLI - Code intelligence for PHP projects."""
    set_verbose(verbose)
    from phpintel.core.config import get_config

    try:
        level = "DEBUG" if verbose else get_config().log_level
    except ValidationError as e:
        err_console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        raise typer.Exit(1)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def get_client(root: Path):
    """Create a client for ``root`` with error handling."""
    from phpintel.client import PhpIntelClient
    from phpintel.core.config import ConfigurationError

    try:
        return PhpIntelClient(root)
    except (ConfigurationError, ValidationError) as e:
        err_console.print(f"[red]Error:[/red] Invalid configuration: {e}")
        err_console.print("[yellow]Hint:[/yellow] Check PHPINTEL_* environment variables")
        print_exception(e)
        raise typer.Exit(1)


def echo_json(data: Any) -> None:
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json", by_alias=True)
    elif isinstance(data, list):
        data = [
            item.model_dump(mode="json", by_alias=True) if isinstance(item, BaseModel) else item
            for item in data
        ]
    typer.echo(json.dumps(data, ensure_ascii=False, indent=2))


@app.command()
def serve(
    host: Annotated[
        str,
        typer.Option("--host", help="Bind host for the HTTP API"),
    ] = "127.0.0.1",
    port: Annotated[
        int,
        typer.Option("--port", help="Bind port for the HTTP API"),
    ] = 8000,
    reload: Annotated[
        bool,
        typer.Option("--reload", help="Auto-reload on code changes (dev only)"),
    ] = False,
) -> None:
    """Run the phpintel HTTP API server (optional dependency).

    Requires the `api` extra (FastAPI + Uvicorn). The project root is taken
    from PHPINTEL_ROOT or the current directory.
    """
    try:
        import uvicorn  # type: ignore[import-not-found]
    except ImportError as e:
        err_console.print(
            "[red]Error:[/red] HTTP API dependencies are not installed.\n"
            "[yellow]Hint:[/yellow] Install with: pip install 'phpintel[api]'"
        )
        print_exception(e)
        raise typer.Exit(1)

    uvicorn.run(
        "phpintel.api.app:create_app",
        host=host,
        port=port,
        reload=reload,
        factory=True,
    )


@app.command()
def info(
    pattern: Annotated[str, typer.Argument(help="Typed prefix (or subsequence)")] = "",
    class_name: ClassOption = None,
    static_mode: Annotated[
        str,
        typer.Option("--static-mode", "-s", help="both, only_nonstatic or only_static"),
    ] = "both",
    include_private: Annotated[
        bool,
        typer.Option("--all", "-a", help="Include protected and private members"),
    ] = False,
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """List completion candidates.

    Example:
        phpintel info get --class 'App\\Service\\Mailer'
        phpintel info array_
    """
    from phpintel.cli._tables import build_completion_table

    if static_mode not in ("both", "only_nonstatic", "only_static"):
        err_console.print(f"[red]Error:[/red] Invalid static mode: {static_mode}")
        err_console.print("  Valid options: both, only_nonstatic, only_static")
        raise typer.Exit(1)

    client = get_client(root)
    items = client.info(class_name, pattern, static_mode, public_only=not include_private)

    if json_output:
        echo_json(items)
        return

    if not items:
        console.print("[yellow]No candidates found[/yellow]")
        return
    console.print(build_completion_table(items))


@app.command()
def location(
    name: Annotated[str, typer.Argument(help="Member or function name")],
    class_name: ClassOption = None,
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """Show where a class member or function is declared.

    Example:
        phpintel location send --class 'App\\Service\\Mailer'
    """
    client = get_client(root)
    result = client.location(class_name, name)

    if json_output:
        echo_json(list(result.as_tuple()))
        return

    if not result.path:
        console.print(f"[yellow]Not found:[/yellow] {name}")
        raise typer.Exit(1)
    console.print(f"{result.path}:{result.line}")


@app.command()
def doc(
    name: Annotated[str, typer.Argument(help="Member or function name")],
    class_name: ClassOption = None,
    is_property: Annotated[
        bool,
        typer.Option("--property", "-p", help="Look up a property instead of a method"),
    ] = False,
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """Show the documentation of a member or function."""
    client = get_client(root)
    result = client.doc(class_name, name, is_method=not is_property)

    if json_output:
        echo_json([result.path, result.doc])
        return

    if result.doc is None:
        console.print(f"[yellow]Not found:[/yellow] {name}")
        raise typer.Exit(1)
    console.print(f"[dim]{result.path}[/dim]")
    console.print(result.doc, highlight=False)


@app.command()
def nsuse(
    path: Annotated[Path, typer.Argument(help="PHP source file")],
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """Show a file's namespace, declared class and imports."""
    from phpintel.cli._tables import build_imports_table

    facts = get_client(root).nsuse(path)

    if json_output:
        echo_json(facts)
        return

    console.print(f"Namespace: [cyan]{facts.namespace or '-'}[/cyan]")
    console.print(f"Class: [cyan]{facts.declared_class or '-'}[/cyan]")
    console.print(build_imports_table(facts))


@app.command()
def functype(
    name: Annotated[str, typer.Argument(help="Method or function name")],
    class_name: ClassOption = None,
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """Resolve the return type(s) of a method or function."""
    _print_names(get_client(root).functype(class_name, name), "Types", json_output)


@app.command()
def proptype(
    name: Annotated[str, typer.Argument(help="Property name")],
    class_name: ClassOption = None,
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """Resolve the type(s) of a property."""
    _print_names(get_client(root).proptype(class_name, name), "Types", json_output)


@app.command()
def psr4ns(
    path: Annotated[Path, typer.Argument(help="PHP source file")],
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """Suggest namespaces for a file from composer.json PSR-4 rules."""
    _print_names(get_client(root).psr4ns(path), "Namespaces", json_output)


@app.command()
def update(
    class_name: Annotated[str, typer.Argument(help="Fully qualified class name")],
    path: Annotated[
        Optional[Path],
        typer.Option("--file", "-f", help="Source file to (re)load first"),
    ] = None,
    root: RootOption = Path("."),
) -> None:
    """Index one class under its parent and interfaces.

    Example:
        phpintel update 'App\\Mail\\SmtpTransport' --file src/Mail/SmtpTransport.php
    """
    from phpintel.reflection.base import FatalLoadError

    client = get_client(root)
    if path is not None:
        try:
            client.index.load(path)
        except FatalLoadError as e:
            err_console.print(f"[red]Error:[/red] {e}")
            print_exception(e)
            raise typer.Exit(1)
    client.update(class_name)
    console.print(f"[green]✓[/green] Indexed {class_name}")


@app.command()
def ls(
    name: Annotated[str, typer.Argument(help="Interface or class name")],
    is_abstract: Annotated[
        bool,
        typer.Option("--abstract", "-a", help="List implementors of an interface"),
    ] = False,
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """List indexed subclasses (or implementors with --abstract)."""
    title = "Implementors" if is_abstract else "Subclasses"
    _print_names(get_client(root).ls(name, is_abstract), title, json_output)


@app.command()
def index(
    show_progress: Annotated[
        bool,
        typer.Option("--progress/--no-progress", help="Show a progress bar"),
    ] = True,
    root: RootOption = Path("."),
    json_output: JsonOption = False,
) -> None:
    """Rebuild the class hierarchy index of the whole project.

    Example:
        phpintel index --root /path/to/project
    """
    from phpintel.index.classmap import ClassMapError
    from phpintel.index.progress import NullProgress, RichProgress
    from phpintel.index.supervisor import WorkerStartupError

    client = get_client(root)
    progress = RichProgress(console=err_console) if show_progress and not json_output else NullProgress()
    try:
        result = client.run_index(progress)
    except ClassMapError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        err_console.print("[yellow]Hint:[/yellow] Run 'composer dump-autoload -o' manually")
        print_exception(e)
        raise typer.Exit(1)
    except WorkerStartupError as e:
        err_console.print(f"[red]Error:[/red] {e}")
        print_exception(e)
        raise typer.Exit(1)

    if json_output:
        echo_json(
            {
                "total": result.total,
                "generations": result.generations,
                "abandoned": result.abandoned,
                "failed": [e.model_dump() for e in result.failed],
            }
        )
        return

    console.print("[green]✓[/green] Index completed")
    console.print(f"  Classes: {result.total}")
    console.print(f"  Workers: {result.generations}")
    if result.failed:
        console.print(f"  [yellow]Lost to crashes: {len(result.failed)}[/yellow]")
        for entry in result.failed:
            console.print(f"  [yellow]- {entry.class_name} ({entry.path})[/yellow]")


def _print_names(names: list[str], title: str, json_output: bool) -> None:
    from phpintel.cli._tables import build_names_table

    if json_output:
        echo_json(names)
        return
    if not names:
        console.print(f"[yellow]No {title.lower()} found[/yellow]")
        return
    console.print(build_names_table(names, title))


if __name__ == "__main__":
    app()
