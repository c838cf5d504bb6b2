"""Command-line interface for creating and resolving anchors against HTML files."""

import logging
from pathlib import Path

import typer
import yaml
from lxml import etree
from rich.console import Console
from rich.markup import escape

from textanchor.config import AnchorConfig
from textanchor.containers import AttributeContainerResolver
from textanchor.coordinator import AnchorCoordinator
from textanchor.logging_config import setup_logging
from textanchor.models import Anchor, InvalidSelectionError
from textanchor.selection import capture_selection
from textanchor.tree import parse_html, text_content

app = typer.Typer(
    name="textanchor",
    help="Create text anchors in HTML documents and re-locate them after edits.",
)
console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log resolution steps to stderr"),
) -> None:
    """Create text anchors in HTML documents and re-locate them after edits."""
    if verbose:
        setup_logging(logging.DEBUG)


@app.command()
def create(
    html_file: Path = typer.Argument(..., help="HTML document containing the text"),
    container_id: str = typer.Option(
        ...,
        "--container-id",
        "-c",
        help="Logical id of the container (data-container-id, data-message-id or id)",
    ),
    text: str = typer.Option(..., "--text", "-t", help="Text to anchor"),
    occurrence: int = typer.Option(
        1,
        "--occurrence",
        "-n",
        min=1,
        help="Which occurrence of the text to anchor",
    ),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the anchor YAML to this file instead of stdout",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="YAML file with engine configuration",
    ),
) -> None:
    """Create an anchor for TEXT inside a container and print it as YAML."""
    try:
        config = AnchorConfig.from_yaml_file(config_file) if config_file else AnchorConfig()
        tree = parse_html(html_file.read_bytes())
        resolver = AttributeContainerResolver(attributes=config.container_attributes)
        container = resolver.find_container(tree, container_id)
        if container is None:
            raise InvalidSelectionError(f"No container with id '{container_id}'")

        start = _find_occurrence(text_content(container), text, occurrence)
        selection = capture_selection(
            container,
            start,
            start + len(text),
            container_id,
            context_length=config.context_length,
        )
        anchor = AnchorCoordinator(config).create_anchor(selection, tree)
    except (OSError, ValueError, yaml.YAMLError, etree.ParserError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e

    document = anchor.to_yaml()
    if output is None:
        console.print(document, markup=False, highlight=False, emoji=False, soft_wrap=True)
        return

    output.write_text(document, encoding="utf-8")
    console.print(
        f"[bold green]Saved anchor[/bold green] (confidence {anchor.confidence}) to {output}"
    )


@app.command()
def resolve(
    html_file: Path = typer.Argument(..., help="Current version of the HTML document"),
    anchor_file: Path = typer.Argument(..., help="Anchor YAML written by 'create'"),
    budget_ms: float | None = typer.Option(
        None,
        "--budget-ms",
        "-b",
        min=0.0,
        help="Wall-clock budget for the resolution (default 50)",
    ),
    min_confidence: float | None = typer.Option(
        None,
        "--min-confidence",
        min=0.0,
        max=1.0,
        help="Similarity needed to accept an approximate match (default 0.7)",
    ),
    config_file: Path | None = typer.Option(
        None,
        "--config",
        help="YAML file with engine configuration",
    ),
) -> None:
    """Resolve an anchor against the current document."""
    try:
        config = AnchorConfig.from_yaml_file(config_file) if config_file else AnchorConfig()
        tree = parse_html(html_file.read_bytes())
        anchor = Anchor.from_yaml(anchor_file.read_text(encoding="utf-8"))
    except (OSError, ValueError, yaml.YAMLError, etree.ParserError) as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1) from e

    overrides = {"max_resolution_ms": budget_ms, "min_confidence": min_confidence}
    config = config.model_copy(update={k: v for k, v in overrides.items() if v is not None})
    result = AnchorCoordinator(config).resolve(anchor, tree)

    strategy = result.strategy.value if result.strategy else "-"
    console.print(f"  Status: {result.status.value}")
    console.print(f"  Strategy: {strategy}")
    console.print(f"  Elapsed: {result.elapsed_ms:.2f}ms")

    if not result.found:
        console.print("[bold red]Anchor could not be resolved[/bold red]")
        raise typer.Exit(1)

    console.print(f"  Match: [green]{escape(result.span.text)}[/green]")
    console.print(f"  Offsets: {result.span.start}-{result.span.end}")


@app.command()
def version() -> None:
    """Show version information."""
    console.print("textanchor 0.1.0")


def _find_occurrence(haystack: str, text: str, occurrence: int) -> int:
    position = -1
    for _ in range(occurrence):
        position = haystack.find(text, position + 1)
        if position == -1:
            raise InvalidSelectionError(
                f"Text {text!r} occurs fewer than {occurrence} time(s) in the container"
            )
    return position


def main() -> None:
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
