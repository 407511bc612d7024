"""Command line tools for working with story documents on disk."""

import logging
from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich import print
from rich.table import Table

from .models.story import StoryDocument
from .services.canvas import build_scene
from .services.errors import StoryGraphError, StoryValidationError
from .services.graph_store import GraphStore
from .services.story_io import build_payload, document_json, ensure_valid, export_story
from .services.validator import StoryValidator

logger = logging.getLogger(__name__)

APP_HELP = """
storyweaver: inspect and tidy branching story documents.

Every command reads a story document (the JSON written by an export) and
works on it offline, without the API server.
"""

app = typer.Typer(name="storyweaver", help=APP_HELP, no_args_is_help=True)


def _load_store(path: Path) -> GraphStore:
    try:
        document = StoryDocument.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        print(f"[red]Cannot read {path}: {exc}[/red]")
        raise typer.Exit(code=1)
    except ValidationError as exc:
        print(f"[red]{path} is not a story document:[/red]")
        typer.echo(str(exc), err=True)
        raise typer.Exit(code=1)
    logger.debug("Loaded %s with %d node(s)", path, len(document.nodes))
    try:
        return GraphStore.from_document(document)
    except StoryValidationError as exc:
        for error in exc.errors:
            print(f"[red]- {error}[/red]")
        raise typer.Exit(code=1)


@app.command()
def validate(path: Path = typer.Argument(..., help="Story document JSON file")):
    """
    Run the pre-save checks and list every violation.

    Exits with status 1 when the story could not be saved.
    """
    store = _load_store(path)
    errors = StoryValidator().validate(store.to_document())
    if not errors:
        print(f"[green]{store.title or path.name}: {len(store)} nodes, no problems found[/green]")
        return

    table = Table(title=f"Validation errors ({len(errors)})")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Problem", style="red")
    for index, error in enumerate(errors, start=1):
        table.add_row(str(index), error)
    print(table)
    raise typer.Exit(code=1)


@app.command()
def scene(
    path: Path = typer.Argument(..., help="Story document JSON file"),
    viewport_width: float = typer.Option(800.0, "--width", help="Viewport width"),
    viewport_height: float = typer.Option(600.0, "--height", help="Viewport height"),
):
    """Show connector geometry for every branch and the canvas size."""
    store = _load_store(path)
    result = build_scene(store, viewport_width=viewport_width, viewport_height=viewport_height)

    table = Table(title="Connectors")
    table.add_column("Branch", style="cyan")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Start", justify="right")
    table.add_column("End", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Angle", justify="right")
    table.add_column("Label", style="magenta")
    for connector in result.connectors:
        line = connector.line
        table.add_row(
            connector.branch_id,
            connector.source_id,
            connector.target_id,
            f"({line.start.x:.1f}, {line.start.y:.1f})",
            f"({line.end.x:.1f}, {line.end.y:.1f})",
            f"{line.length:.1f}",
            f"{line.angle:.1f}",
            connector.label,
        )
    print(table)

    bounds = result.bounds
    print(
        f"Canvas: {bounds.width:.0f} x {bounds.height:.0f} "
        f"from ({bounds.min_x:.0f}, {bounds.min_y:.0f})"
    )
    if result.skipped_branches:
        print(f"[yellow]Skipped branches: {', '.join(result.skipped_branches)}[/yellow]")


@app.command()
def layout(
    path: Path = typer.Argument(..., help="Story document JSON file"),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write here instead of overwriting the input"
    ),
):
    """Re-position nodes breadth-first from the root and write the document back."""
    store = _load_store(path)
    store.layout.auto_layout(store.nodes)
    target = output or path
    target.write_text(document_json(store), encoding="utf-8")
    print(f"[green]Laid out {len(store)} nodes -> {target}[/green]")


@app.command()
def payload(path: Path = typer.Argument(..., help="Story document JSON file")):
    """Print the storage payload that a save would send."""
    store = _load_store(path)
    try:
        ensure_valid(store)
    except StoryValidationError as exc:
        for error in exc.errors:
            print(f"[red]- {error}[/red]")
        raise typer.Exit(code=1)
    typer.echo(build_payload(store).model_dump_json(by_alias=True, indent=2))


@app.command()
def export(
    path: Path = typer.Argument(..., help="Story document JSON file"),
    directory: Optional[Path] = typer.Option(
        None, "--dir", "-d", help="Export directory (defaults to STORY_EXPORT_PATH)"
    ),
):
    """Validate the story and write a timestamped JSON export."""
    store = _load_store(path)
    try:
        written = export_story(store, directory)
    except StoryValidationError as exc:
        for error in exc.errors:
            print(f"[red]- {error}[/red]")
        raise typer.Exit(code=1)
    except StoryGraphError as exc:
        print(f"[red]{exc.message}[/red]")
        raise typer.Exit(code=1)
    print(f"[green]Exported to {written}[/green]")


if __name__ == "__main__":
    app()
