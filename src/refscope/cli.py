"""Command line interface: show the external references of a file or folder."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.tree import Tree

from refscope.config import RefScopeSettings
from refscope.documents import DocumentStore
from refscope.errors import RefScopeError
from refscope.provider import LanguageServerProvider
from refscope.service import create_reference_tree_service
from refscope.tree import Collapsible, SourceNode, TreeNode, describe_node
from refscope.uri_utils import fs_path_to_uri
from refscope.workspace_roots import WorkspaceRoots

log = logging.getLogger(__name__)

app = typer.Typer(
    name="refscope",
    help="Show which symbols of a file or folder are referenced from outside of it",
    add_completion=False,
)
console = Console()
err_console = Console(stderr=True)

ServerOption = typer.Option(None, "--server", "-s", help="Language server command line (stdio)")
RootOption = typer.Option(None, "--root", "-r", help="Workspace root folder (repeatable, default: cwd)")
ExcludeDirOption = typer.Option(None, "--exclude-dir", "-x", help="Directory name to skip (repeatable)")
TimeoutOption = typer.Option(None, "--timeout", help="Seconds to wait for a single language server request")
ConcurrencyOption = typer.Option(None, "--max-concurrency", help="Maximum number of files processed at once")
VerboseOption = typer.Option(False, "--verbose", "-v", help="Enable debug logging")


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
    )


def render_tree(root: SourceNode) -> Tree:
    """Convert the display tree into a rich Tree, expanding collapsed nodes as well."""

    def add(parent: Tree, node: TreeNode) -> None:
        view = describe_node(node)
        label = escape(view.label)
        if view.context_value == "file":
            label = f"[bold]{label}[/bold]"
        branch = parent.add(label)
        for child in node.children:
            add(branch, child)

    root_view = describe_node(root)
    tree = Tree(f"[bold cyan]{escape(root_view.label)}[/bold cyan]", expanded=root_view.collapsible != Collapsible.NONE)
    for child in root.children:
        add(tree, child)
    return tree


def build_settings(
    server: str | None,
    roots: list[str] | None,
    exclude_dirs: list[str] | None,
    timeout: float | None,
    max_concurrency: int | None,
) -> RefScopeSettings:
    return RefScopeSettings.from_env(
        server_command=shlex.split(server) if server else None,
        workspace_roots=roots or [os.getcwd()],
        exclude_dirs=frozenset(exclude_dirs) if exclude_dirs else None,
        request_timeout=timeout,
        max_concurrency=max_concurrency,
    )


async def find_references(path: str, settings: RefScopeSettings, by_folder: bool) -> SourceNode:
    """Start the language server, run one query and shut the server down again."""
    roots = WorkspaceRoots.from_paths(settings.workspace_roots)
    documents = DocumentStore()
    uri = fs_path_to_uri(os.path.abspath(path))
    async with LanguageServerProvider(settings, roots, documents) as provider:
        service = create_reference_tree_service(provider, documents, roots, settings)
        if by_folder:
            return await service.find_references_by_folder(uri)
        return await service.find_references_by_file(uri)


def _run(path: str, settings: RefScopeSettings, by_folder: bool) -> None:
    try:
        root = asyncio.run(find_references(path, settings, by_folder))
    except RefScopeError as e:
        err_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(code=1) from e
    if not root.children:
        console.print(f"No external references found for {escape(root.label)}")
        return
    console.print(render_tree(root))


@app.command("file")
def file_command(
    path: str = typer.Argument(..., help="Source file to examine"),
    server: Optional[str] = ServerOption,
    root: Optional[list[str]] = RootOption,
    exclude_dir: Optional[list[str]] = ExcludeDirOption,
    timeout: Optional[float] = TimeoutOption,
    max_concurrency: Optional[int] = ConcurrencyOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show references from other files to the symbols of PATH."""
    configure_logging(verbose)
    if not os.path.isfile(path):
        err_console.print(f"[red]Error:[/red] not a file: {escape(path)}")
        raise typer.Exit(code=1)
    _run(path, build_settings(server, root, exclude_dir, timeout, max_concurrency), by_folder=False)


@app.command("folder")
def folder_command(
    path: str = typer.Argument(..., help="Folder to examine"),
    server: Optional[str] = ServerOption,
    root: Optional[list[str]] = RootOption,
    exclude_dir: Optional[list[str]] = ExcludeDirOption,
    timeout: Optional[float] = TimeoutOption,
    max_concurrency: Optional[int] = ConcurrencyOption,
    verbose: bool = VerboseOption,
) -> None:
    """Show references from outside PATH to the symbols defined in it."""
    configure_logging(verbose)
    if not os.path.isdir(path):
        err_console.print(f"[red]Error:[/red] not a folder: {escape(path)}")
        raise typer.Exit(code=1)
    _run(path, build_settings(server, root, exclude_dir, timeout, max_concurrency), by_folder=True)


def main() -> None:
    app()
