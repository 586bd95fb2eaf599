"""Glue between click commands and the asynchronous ReviewSession."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import click
from rich.console import Console

from repolens_core import events
from repolens_core.models import ProjectKind

if TYPE_CHECKING:
    from repolens_core.session import ReviewSession
    from repolens_core.state import SessionState

console = Console()


def get_session(ctx: click.Context) -> ReviewSession:
    session = ctx.obj.get("session") if ctx.obj else None
    if session is None:
        raise click.UsageError("No review session available.")
    return session


def run(session: ReviewSession, *commands) -> SessionState:
    """Dispatch ``commands`` in order on a fresh event loop; return the final snapshot."""

    async def _dispatch_all() -> None:
        for command in commands:
            await session.dispatch(command)

    asyncio.run(_dispatch_all())
    return session.state


def to_repository_url(repo_arg: str) -> str:
    """Accept a full GitHub URL or the ``owner/name`` shorthand."""
    if "github.com" not in repo_arg and repo_arg.count("/") == 1:
        return f"https://github.com/{repo_arg}"
    return repo_arg


def open_repository(session: ReviewSession, repo_arg: str, branch: str | None, kind: str | None) -> SessionState:
    """Point the session at a repository, raising UsageError if the URL is not one."""
    commands: list = [events.UpdateRepositoryUrl(to_repository_url(repo_arg))]
    if branch:
        commands.append(events.UpdateBranch(branch))
    if kind:
        commands.append(events.UpdateProjectKind(ProjectKind.from_name(kind)))
    state = run(session, *commands)
    if not state.owner or not state.repo:
        raise click.UsageError(f"Not a GitHub repository: {repo_arg}")
    return state


def print_error(state: SessionState) -> None:
    if state.error is None:
        return
    if state.feature_unavailable:
        console.print(f"[yellow]Feature unavailable:[/yellow] {state.error}")
    else:
        console.print(f"[red]{state.error}[/red]")


def fail_on_error(state: SessionState) -> None:
    """Abort the command when the last transition recorded an error."""
    if state.error is not None:
        raise click.ClickException(state.error)


KIND_CHOICE = click.Choice([k.name.lower() for k in ProjectKind], case_sensitive=False)


def find_record(state: SessionState, record_id: str):
    """Return the loaded history record whose id is or starts with ``record_id``."""
    matches = [r for r in state.history if r.id == record_id] or [
        r for r in state.history if r.id.startswith(record_id)
    ]
    if not matches:
        raise click.UsageError(f"No review with id {record_id!r}. Run `repolens history` to list them.")
    if len(matches) > 1:
        raise click.UsageError(f"Review id {record_id!r} is ambiguous; use more characters.")
    return matches[0]
