"""CLI entry point for bulletgraph."""

from pathlib import Path
from typing import Callable, Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from bullet_outline import OutlineStructureError
from bullet_outline.graph import ParsedGraph, TreeNode
from bullet_outline.line import LineRecord
from bulletgraph.config.loader import load_config as load_config_file
from bulletgraph.document import OutlineDocument
from bulletgraph.models.config import Config
from bulletgraph.rendering.dot import render_dot
from bulletgraph.services.exceptions import DocumentError, FileModifiedError
from bulletgraph.services.file_monitor import FileMonitor
from bulletgraph.services.file_operations import atomic_write, read_outline
from bulletgraph.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)
console = Console()

OUTLINE_FILE = click.Path(exists=True, dir_okay=False, path_type=Path)


def load_config(config_path: Optional[Path]) -> Config:
    """
    Load configuration, defaulting to ~/.config/bulletgraph/config.yaml.

    Raises:
        click.ClickException: If the configuration file is invalid
    """
    try:
        config = load_config_file(config_path)
        logger.info("config_loaded", path=str(config_path) if config_path else "default")
        return config
    except FileNotFoundError as e:
        logger.error("config_not_found", path=str(config_path))
        raise click.ClickException(str(e))
    except ValueError as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")


def open_document(path: Path, config: Config, file_monitor: Optional[FileMonitor] = None) -> OutlineDocument:
    text = read_outline(path, file_monitor)
    return OutlineDocument.from_text(text, indent_size=config.parser.indent_size)


def compile_document(document: OutlineDocument, prune: bool) -> ParsedGraph:
    """
    Compile a document, turning indentation errors into CLI errors.

    Raises:
        click.ClickException: If a bullet is indented too deep
    """
    try:
        return document.to_graph(prune=prune)
    except OutlineStructureError as e:
        logger.error("outline_structure_error", line=e.line_index + 1, error=str(e))
        raise click.ClickException(str(e))


def save_document(path: Path, document: OutlineDocument, file_monitor: FileMonitor) -> None:
    """
    Write an edited document back in place.

    Raises:
        click.ClickException: If the file changed since it was read
    """
    if not document.is_dirty:
        console.print("[dim]No changes[/dim]")
        return

    try:
        atomic_write(path, document.render(), file_monitor)
    except FileModifiedError as e:
        logger.error("outline_concurrent_modification", path=str(path), error=str(e))
        raise click.ClickException(f"{e}\nPlease rerun the command.")

    logger.info("outline_written", path=str(path))
    console.print(f"[green]Updated[/green] {path}")


def edit_document(
    ctx: click.Context,
    path: Path,
    edit: Callable[[OutlineDocument], None],
) -> None:
    """Load a document, apply an edit, propagate visibility and save."""
    file_monitor = FileMonitor()
    document = open_document(path, ctx.obj["config"], file_monitor)

    try:
        edit(document)
    except DocumentError as e:
        logger.error("document_edit_error", path=str(path), error=str(e))
        raise click.ClickException(str(e))

    document.propagate_visibility()
    save_document(path, document, file_monitor)


def tree_of(node: TreeNode, branch: Tree) -> None:
    for child in node.children:
        text = f"{escape(child.label)} [dim]({escape(child.id)}"
        if child.dependency_size:
            text += f", {child.dependency_size}"
        text += ")[/dim]"
        if child.is_folded:
            text = "[bold]+[/bold] " + text
        if child.is_process:
            text = f"[#8888bb]{text}[/#8888bb]"
        if child.is_highlight:
            text = f"[reverse]{text}[/reverse]"
        tree_of(child, branch.add(text))


@click.group()
@click.version_option(version="0.1.0", prog_name="bulletgraph")
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (default: ~/.config/bulletgraph/config.yaml)",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path]):
    """bulletgraph: Turn indented bullet outlines into Graphviz diagrams."""
    configure_logging()
    ctx.ensure_object(dict)
    ctx.obj["config"] = load_config(config_path)


@cli.command()
@click.argument("file", type=OUTLINE_FILE)
@click.option("-o", "--output", type=click.Path(dir_okay=False, path_type=Path), help="DOT file to write (default: FILE.dot)")
@click.option("--no-prune", is_flag=True, help="Ignore fold and hide markers")
@click.pass_context
def render(ctx: click.Context, file: Path, output: Optional[Path], no_prune: bool):
    """
    Write the Graphviz DOT diagram of an outline.

    Examples:
        bulletgraph render notes.outline
        bulletgraph render notes.outline -o diagram.dot --no-prune
    """
    config = ctx.obj["config"]
    logger.info("render_command_started", path=str(file), prune=not no_prune)

    graph = compile_document(open_document(file, config), prune=not no_prune)

    if output is None:
        output = file.with_name(file.name + ".dot")

    atomic_write(output, render_dot(graph, config.render))
    logger.info("dot_written", path=str(output))
    console.print(f"[green]Wrote[/green] {output}")


@cli.command()
@click.argument("file", type=OUTLINE_FILE)
@click.option("--no-prune", is_flag=True, help="Ignore fold and hide markers")
@click.pass_context
def tree(ctx: click.Context, file: Path, no_prune: bool):
    """Print the hierarchy of an outline with node ids and sizes."""
    graph = compile_document(open_document(file, ctx.obj["config"]), prune=not no_prune)

    root = Tree(f"[bold]{file.name}[/bold]")
    tree_of(graph.root, root)
    console.print(root)

    if graph.duplicate_ids:
        duplicates = ", ".join(graph.duplicate_ids)
        console.print(f"[yellow]Duplicate ids:[/yellow] {escape(duplicates)}")


def _line_command(name: str, action: Callable[[OutlineDocument, LineRecord], None], help_text: str):
    @cli.command(name=name, help=help_text)
    @click.argument("file", type=OUTLINE_FILE)
    @click.argument("line", type=click.IntRange(min=1))
    @click.pass_context
    def command(ctx: click.Context, file: Path, line: int):
        logger.info("edit_command_started", command=name, path=str(file), line=line)
        edit_document(ctx, file, lambda document: action(document, document.bullet_at(line)))

    return command


def _document_command(name: str, action: Callable[[OutlineDocument], None], help_text: str):
    @cli.command(name=name, help=help_text)
    @click.argument("file", type=OUTLINE_FILE)
    @click.pass_context
    def command(ctx: click.Context, file: Path):
        logger.info("edit_command_started", command=name, path=str(file))
        edit_document(ctx, file, action)

    return command


_line_command("fold", OutlineDocument.fold, "Fold the bullet at LINE (1-based).")
_line_command("unfold", OutlineDocument.unfold, "Unfold the bullet at LINE.")
_line_command("hide", OutlineDocument.hide, "Hide the bullet at LINE and its subtree.")
_line_command("unhide", OutlineDocument.unhide, "Unhide the bullet at LINE.")
_line_command("highlight", OutlineDocument.highlight, "Highlight the bullet at LINE.")
_line_command("reveal", OutlineDocument.reveal, "Unfold the ancestors of the bullet at LINE and fold it.")
_line_command("connect", OutlineDocument.connect, "Reveal the bullet at LINE and every bullet linked with it.")
_line_command("fold-children", OutlineDocument.fold_children, "Fold every descendant of the bullet at LINE.")
_line_command("unfold-children", OutlineDocument.unfold_children, "Unfold every descendant of the bullet at LINE.")
_line_command("hide-children", OutlineDocument.hide_children, "Hide every descendant of the bullet at LINE.")
_line_command("unhide-children", OutlineDocument.unhide_children, "Unhide the bullet at LINE and its descendants.")

_document_command("fold-all", OutlineDocument.fold_all, "Fold every bullet having children.")
_document_command("unfold-all", OutlineDocument.unfold_all, "Unfold every bullet.")
_document_command("hide-all", OutlineDocument.hide_all, "Hide every bullet.")
_document_command("unhide-all", OutlineDocument.unhide_all, "Unhide every bullet.")


@cli.command()
@click.argument("file", type=OUTLINE_FILE)
@click.argument("source_line", type=click.IntRange(min=1))
@click.argument("target_line", type=click.IntRange(min=1))
@click.pass_context
def link(ctx: click.Context, file: Path, source_line: int, target_line: int):
    """
    Link the bullet at SOURCE_LINE to the bullet at TARGET_LINE.

    Bullets without an id get a short permanent one.

    Example:
        bulletgraph link notes.outline 3 12
    """
    logger.info("link_command_started", path=str(file), source=source_line, target=target_line)
    edit_document(
        ctx,
        file,
        lambda document: document.link(
            document.bullet_at(source_line), document.bullet_at(target_line)
        ),
    )


@cli.command(name="cleanup-ids")
@click.argument("file", type=OUTLINE_FILE)
@click.pass_context
def cleanup_ids(ctx: click.Context, file: Path):
    """Remove ids nothing refers to and links to ids nothing declares."""
    logger.info("cleanup_command_started", path=str(file))
    file_monitor = FileMonitor()
    document = open_document(file, ctx.obj["config"], file_monitor)

    edited = document.cleanup_ids()
    console.print(f"Cleaned {edited} bullet(s)")
    save_document(file, document, file_monitor)


if __name__ == "__main__":
    cli()
