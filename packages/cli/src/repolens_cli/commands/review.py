"""review / edit commands — the interactive file-by-file review flow."""

from __future__ import annotations

from typing import TYPE_CHECKING

import click
from rich.console import Console
from rich.panel import Panel

from repolens_cli.commands.browse import print_file
from repolens_cli.runner import (
    KIND_CHOICE,
    fail_on_error,
    find_record,
    get_session,
    open_repository,
    print_error,
    run,
)
from repolens_core import events

if TYPE_CHECKING:
    from repolens_core.session import ReviewSession
    from repolens_core.state import SessionState

console = Console()


def parse_selection(text: str, count: int) -> list[int]:
    """Parse "1,3,5-7" into zero-based indices in [0, count)."""
    indices: list[int] = []
    for part in text.replace(" ", "").split(","):
        if not part:
            continue
        start, sep, end = part.partition("-")
        try:
            first = int(start)
            last = int(end) if sep else first
        except ValueError:
            raise click.BadParameter(f"{part!r} is not a number or range")
        if first < 1 or last > count or first > last:
            raise click.BadParameter(f"{part!r} is outside 1-{count}")
        for number in range(first, last + 1):
            if number - 1 not in indices:
                indices.append(number - 1)
    return indices


def _select_files(session: ReviewSession, paths: tuple[str, ...]) -> SessionState:
    state = session.state
    if paths:
        known = {f.path: f for f in state.files}
        missing = [p for p in paths if p not in known]
        if missing:
            raise click.UsageError(f"Not in the file list: {', '.join(missing)}")
        unique = dict.fromkeys(paths)
        return run(session, *[events.ToggleFileSelection(p) for p in unique if not known[p].selected])

    if state.selected_files:
        return state

    for index, item in enumerate(state.files, start=1):
        console.print(f"  [bold]{index:>3}[/bold]  {item.path}")
    answer = click.prompt("\nFiles to review (e.g. 1,3,5-7)")
    chosen = parse_selection(answer, len(state.files))
    return run(session, *[events.ToggleFileSelection(state.files[i].path) for i in chosen])


def _review_selected(session: ReviewSession, suggest: bool, summary: bool, yes: bool) -> None:
    """Walk the selected files, collect comments, then summarize and save."""
    state = session.state
    if not state.selected_files:
        console.print("[yellow]No files selected.[/yellow]")
        return

    for item in state.selected_files:
        state = run(session, events.LoadFileContent(item))
        if state.error:
            print_error(state)
            continue
        print_file(state.current_file_name, state.current_file_content, state.project_kind.lexer)

        if suggest and not state.current_comment:
            state = run(session, events.SuggestComment())
            print_error(state)
            if state.feature_unavailable:
                # Stop asking for every remaining file.
                suggest = False

        draft = state.current_comment
        if draft:
            console.print(Panel(draft, title="Draft comment", border_style="dim"))
        text = click.prompt(
            "Comment (enter keeps the draft; '-' skips the file)",
            default=draft,
            show_default=False,
        )
        if text.strip() and text.strip() != "-":
            state = run(session, events.UpdateComment(text), events.AddComment())

    if not state.comments:
        console.print("[yellow]No comments written; nothing to save.[/yellow]")
        return

    if summary:
        state = run(session, events.GenerateAISummary())
        print_error(state)
        if state.ai_summary:
            console.print(Panel(state.ai_summary, title="AI summary", border_style="cyan"))

    if not yes and not click.confirm(f"\nSave review with {len(state.comments)} comment(s)?", default=True):
        return

    state = run(session, events.SaveReviewToHistory())
    fail_on_error(state)
    if state.review_saved:
        console.print(f"[green]Saved review {state.editing_review_id}[/green]")
        run(session, events.ConsumeReviewSavedEvent())


_suggest_option = click.option(
    "--suggest/--no-suggest",
    default=True,
    show_default=True,
    help="Ask the AI model for a draft comment on each file that has none yet.",
)
_summary_option = click.option(
    "--summary/--no-summary",
    default=True,
    show_default=True,
    help="Ask the AI model to summarize the review before saving.",
)
_yes_option = click.option("--yes", "-y", is_flag=True, help="Save without confirmation.")


@click.command("review")
@click.argument("repository")
@click.option("--branch", "-b", default=None, help="Branch to review. Overrides config file.")
@click.option("--kind", "-k", type=KIND_CHOICE, default=None, help="Project kind. Overrides config file.")
@click.option("--file", "-f", "paths", multiple=True, help="File to review (repeatable). Omit to choose interactively.")
@_suggest_option
@_summary_option
@_yes_option
@click.pass_context
def review_cmd(
    ctx,
    repository: str,
    branch: str | None,
    kind: str | None,
    paths: tuple[str, ...],
    suggest: bool,
    summary: bool,
    yes: bool,
):
    """Review files of REPOSITORY (a GitHub URL or owner/name).

    Lists the files matching the project kind, lets you pick some, shows
    each with syntax highlighting, collects one comment per file (optionally
    drafted by the AI model), and saves the review to history.

    \b
    Environment variables:
      GITHUB_TOKEN         Optional for public repositories (or use gh CLI)
      GEMINI_API_KEY       Enables AI suggestions with the gemini provider
      ANTHROPIC_API_KEY    ... with the anthropic provider
      OPENAI_API_KEY       ... with the openai provider
    """
    session = get_session(ctx)
    open_repository(session, repository, branch, kind)
    state = run(session, events.LoadFiles())
    fail_on_error(state)
    if not state.files:
        console.print(f"[yellow]No {state.project_kind.display_name} files found on {state.branch}.[/yellow]")
        return

    _select_files(session, paths)
    _review_selected(session, suggest=suggest, summary=summary, yes=yes)


@click.command("edit")
@click.argument("review_id")
@_suggest_option
@_summary_option
@_yes_option
@click.pass_context
def edit_cmd(ctx, review_id: str, suggest: bool, summary: bool, yes: bool):
    """Reopen saved review REVIEW_ID and continue it.

    The files that already have comments are selected again and their
    comments prefill the prompt; saving updates the same record.
    """
    session = get_session(ctx)
    state = run(session, events.LoadHistory())
    fail_on_error(state)
    record = find_record(state, review_id)

    state = run(session, events.EditReview(record))
    fail_on_error(state)
    console.print(
        f"Editing review of [bold]{state.owner}/{state.repo}@{state.branch}[/bold]: "
        f"{len(state.selected_files)} of {len(state.comments)} commented file(s) still present."
    )
    _review_selected(session, suggest=suggest, summary=summary, yes=yes)
