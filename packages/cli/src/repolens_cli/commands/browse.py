"""branches / files / show — read-only repository browsing."""

from __future__ import annotations

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from repolens_cli.runner import KIND_CHOICE, fail_on_error, get_session, open_repository, run
from repolens_core import events

console = Console()

_branch_option = click.option("--branch", "-b", default=None, help="Branch to read. Overrides config file.")
_kind_option = click.option("--kind", "-k", type=KIND_CHOICE, default=None, help="Project kind. Overrides config file.")


@click.command("branches")
@click.argument("repository")
@click.pass_context
def branches_cmd(ctx, repository: str):
    """List the branches of REPOSITORY (a GitHub URL or owner/name).

    The branch marked with * is the one a review would use: the configured
    branch when it exists, otherwise the first branch returned.
    """
    session = get_session(ctx)
    open_repository(session, repository, branch=None, kind=None)
    state = run(session, events.LoadBranches())
    fail_on_error(state)

    if not state.branches:
        console.print("[yellow]No branches found.[/yellow]")
        return
    for name in state.branches:
        marker = "[bold green]*[/bold green]" if name == state.branch else " "
        console.print(f"{marker} {name}")


@click.command("files")
@click.argument("repository")
@_branch_option
@_kind_option
@click.pass_context
def files_cmd(ctx, repository: str, branch: str | None, kind: str | None):
    """List the files of REPOSITORY that match the project kind."""
    session = get_session(ctx)
    open_repository(session, repository, branch, kind)
    state = run(session, events.LoadFiles())
    fail_on_error(state)

    if not state.files:
        console.print(f"[yellow]No {state.project_kind.display_name} files found on {state.branch}.[/yellow]")
        return

    table = Table(title=f"{state.owner}/{state.repo}@{state.branch}", show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", width=4)
    table.add_column("Path")
    table.add_column("SHA", width=8)
    for index, item in enumerate(state.files, start=1):
        table.add_row(str(index), item.path, item.sha[:7])
    console.print(table)


@click.command("show")
@click.argument("repository")
@click.argument("path")
@_branch_option
@_kind_option
@click.pass_context
def show_cmd(ctx, repository: str, path: str, branch: str | None, kind: str | None):
    """Print PATH from REPOSITORY with syntax highlighting."""
    session = get_session(ctx)
    open_repository(session, repository, branch, kind)
    state = run(session, events.LoadFiles())
    fail_on_error(state)

    item = next((f for f in state.files if f.path == path), None)
    if item is None:
        raise click.UsageError(f"{path} is not a {state.project_kind.display_name} file on {state.branch}.")

    state = run(session, events.LoadFileContent(item))
    fail_on_error(state)
    print_file(state.current_file_name, state.current_file_content, state.project_kind.lexer)


def print_file(path: str, content: str, lexer: str) -> None:
    console.rule(f"[bold]{path}[/bold]")
    console.print(Syntax(content, lexer, line_numbers=True, word_wrap=True))
