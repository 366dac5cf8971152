"""Command line interface for dirfinder."""

import logging
from pathlib import Path
from typing import List, Optional

import typer

from . import __version__
from .config.parser import ConfigurationError, load_config
from .finder import Finder
from .models.rank import Rank
from .tools.tree_walker import VENDOR_DIR


VENDOR_TOKEN = "^"

app = typer.Typer(
    add_completion=False,
    help="Print the path of a directory under the workspace root matching QUERY.",
)


def vendor_parent(cwd: Path) -> Optional[Path]:
    """
    Get the directory containing the innermost vendor directory of cwd.

    Returns:
        The parent of the last 'vendor' component, or None if cwd is not
        inside a vendor tree
    """
    parts = cwd.parts
    for i in range(len(parts) - 1, 0, -1):
        if parts[i] == VENDOR_DIR:
            return Path(*parts[:i])
    return None


def format_matches(matches: List[Rank]) -> List[str]:
    """Format ambiguous matches as numbered lines for a later selection."""
    return [f"{i}  {rank.target}" for i, rank in enumerate(matches)]


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"dirfinder {__version__}")
        raise typer.Exit()


@app.command()
def main(
    query: Optional[str] = typer.Argument(None, help="Directory name or trailing path fragment to find."),
    index: Optional[int] = typer.Argument(None, help="Select one of the candidates listed by a previous run."),
    depth: Optional[int] = typer.Option(None, "--depth", "-d", help="Maximum depth of the search, -1 for unlimited."),
    root: Optional[Path] = typer.Option(None, "--root", help="Workspace root (defaults to $DIRFINDER_ROOT or the current directory)."),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Path to a YAML configuration file."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log lookup details to stderr."),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True, help="Show version and exit."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {'root': str(root) if root else None, 'depth_limit': depth}
    try:
        result = load_config(config, overrides)
    except ConfigurationError as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    finder_config = result.config
    if query is None:
        typer.echo(finder_config.root, nl=False)
        return

    if query == VENDOR_TOKEN:
        parent = vendor_parent(Path.cwd())
        if parent is not None:
            typer.echo(str(parent), nl=False)
            return

    finder = Finder(finder_config)
    matches = finder.find(query)

    if not matches:
        typer.echo("no match found")
        raise typer.Exit(code=1)

    if len(matches) == 1:
        typer.echo(matches[0].resolve(finder_config.root))
        return

    if index is not None:
        if index < 0 or index >= len(matches):
            typer.echo(f"{index} is an invalid index (max {len(matches) - 1})", err=True)
            raise typer.Exit(code=1)
        typer.echo(matches[index].resolve(finder_config.root))
        return

    for line in format_matches(matches):
        typer.echo(line)


def run() -> None:
    """Entry point used by the console script."""
    app()
