"""history / delete commands — browse and prune saved reviews."""

from __future__ import annotations

import click
from rich.console import Console
from rich.table import Table

from repolens_cli.runner import fail_on_error, find_record, get_session, run
from repolens_core import events

console = Console()


@click.command("history")
@click.option("--repo", default=None, help="Only show reviews of this repository (owner/name).")
@click.option("--limit", default=20, show_default=True, help="Maximum number of records to show.")
@click.pass_context
def history_cmd(ctx, repo: str | None, limit: int):
    """Show saved reviews, most recent first.

    Reads from the configured store (SQLite, Gist or memory). Run
    `repolens init` to choose one.
    """
    session = get_session(ctx)
    state = run(session, events.LoadHistory())
    fail_on_error(state)

    records = [r for r in state.history if repo is None or r.slug == repo][:limit]
    if not records:
        console.print("[yellow]No review records found.[/yellow]")
        return

    title = f"Review History — {repo}" if repo else "Review History"
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID", style="bold", width=10)
    table.add_column("Repository", max_width=40)
    table.add_column("Branch", max_width=20)
    table.add_column("Kind", width=8)
    table.add_column("Comments", justify="right", width=10)
    table.add_column("Created At", width=20)

    for r in records:
        table.add_row(
            r.id[:8],
            r.slug,
            r.branch,
            r.project_kind.lower(),
            str(len(r.comments)),
            r.created_at[:19].replace("T", " "),
        )

    console.print(table)


@click.command("delete")
@click.argument("review_id")
@click.option("--yes", "-y", is_flag=True, help="Delete without offering an undo.")
@click.pass_context
def delete_cmd(ctx, review_id: str, yes: bool):
    """Delete saved review REVIEW_ID (a full id or a unique prefix).

    Right after deleting, you are offered an undo that saves the record
    again under a new id.
    """
    session = get_session(ctx)
    state = run(session, events.LoadHistory())
    fail_on_error(state)
    record = find_record(state, review_id)

    state = run(session, events.DeleteHistoryItem(record))
    fail_on_error(state)
    console.print(f"[green]Deleted review of {record.slug}@{record.branch}[/green]")

    if yes or not click.confirm("Undo?", default=False):
        return

    state = run(session, events.UndoDeleteHistoryItem())
    fail_on_error(state)
    console.print("[green]Review restored.[/green]")
