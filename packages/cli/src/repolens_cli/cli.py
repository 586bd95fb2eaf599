"""CLI entry point for repolens.

Commands:
  branches — list the branches of a repository
  files    — list the files of a branch that match the project kind
  show     — print one file with syntax highlighting
  review   — interactive review: pick files, comment, summarize, save
  edit     — reopen a saved review and continue it
  history  — display past review records from the configured store
  delete   — remove one review record, with an immediate undo offer
  init     — interactive setup wizard that writes .repolens.yml
"""

from __future__ import annotations

import importlib.metadata
import logging

import click
from rich.console import Console

from repolens_cli.commands.browse import branches_cmd, files_cmd, show_cmd
from repolens_cli.commands.history import delete_cmd, history_cmd
from repolens_cli.commands.init import init_cmd
from repolens_cli.commands.review import edit_cmd, review_cmd

console = Console()


def _build_store(config: dict):
    """Instantiate the configured store from .repolens.yml settings.

    Store selection hierarchy:
      store: gist   → GistStore   (requires gist_id; token resolved on first use)
      store: memory → MemoryStore (nothing survives the process)
      (default)     → SQLiteStore (store_path or .repolens.db)

    This factory lives in cli.py so neither repolens_core nor repolens_store
    know about the CLI config format.
    """
    from repolens_store.memory import MemoryStore

    store_type = config.get("store", "sqlite")
    partition = config.get("partition") or "repolens"

    if store_type == "gist":
        from repolens_cli.auth import resolve_github_token
        from repolens_store.gist import GistStore

        gist_id = config.get("gist_id")
        if not gist_id:
            console.print("[yellow]GistStore requires gist_id. Falling back to an in-memory store.[/yellow]")
            return MemoryStore(partition=partition)
        return GistStore(
            gist_id=gist_id,
            token=config.get("github_token"),
            token_provider=resolve_github_token,
            partition=partition,
        )

    if store_type == "memory":
        return MemoryStore(partition=partition)

    from repolens_store.sqlite import SQLiteStore

    return SQLiteStore(db_path=config.get("store_path") or ".repolens.db", partition=partition)


def _build_assistant(config: dict):
    """Instantiate the configured AI provider.

    A missing API key is not an error here: the assistant is built
    unconfigured and AI commands report the feature as unavailable.
    """
    from repolens_core.config import provider_api_key

    model = config.get("model", "gemini")
    if model == "gemini":
        from repolens_core.providers.gemini import GeminiAssistant as assistant_cls
    elif model == "anthropic":
        from repolens_core.providers.anthropic import AnthropicAssistant as assistant_cls
    elif model == "openai":
        from repolens_core.providers.openai import OpenAIAssistant as assistant_cls
    else:
        raise click.UsageError(f"Unknown model provider {model!r}. Use gemini, anthropic or openai.")
    return assistant_cls(api_key=provider_api_key(config), model=config.get("model_name"))


def _build_session(config: dict, store):
    from repolens_core.errors import ValidationError
    from repolens_core.gh.repository import GitHubClient
    from repolens_core.models import ProjectKind
    from repolens_core.session import ReviewSession
    from repolens_core.state import SessionState

    try:
        kind = ProjectKind.from_name(config.get("project_kind") or "kotlin")
    except ValidationError as e:
        raise click.UsageError(str(e))

    return ReviewSession(
        github=GitHubClient(token=config.get("github_token")),
        assistant=_build_assistant(config),
        store=store,
        initial_state=SessionState(branch=config.get("branch") or "main", project_kind=kind),
    )


@click.group()
@click.version_option(
    version=importlib.metadata.version("repolens"),
    prog_name="repolens",
)
@click.option(
    "--config",
    "config_path",
    default=".repolens.yml",
    show_default=True,
    help="Path to the configuration file.",
    envvar="REPOLENS_CONFIG",
)
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr.")
@click.pass_context
def main(ctx: click.Context, config_path: str, verbose: bool):
    """Review GitHub repositories file by file, with AI help and saved history."""
    from repolens_cli.auth import resolve_github_token
    from repolens_core.config import load_config
    from repolens_store.base import StoreError

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    ctx.ensure_object(dict)

    config = load_config(config_path)

    # Resolve token early so all subcommands share the same resolution.
    token = resolve_github_token()
    if token:
        config["github_token"] = token

    try:
        store = _build_store(config)
    except StoreError as e:
        raise click.ClickException(str(e))

    ctx.obj["config"] = config
    ctx.obj["store"] = store
    ctx.obj["session"] = _build_session(config, store)
    ctx.call_on_close(store.close)


main.add_command(branches_cmd)
main.add_command(files_cmd)
main.add_command(show_cmd)
main.add_command(review_cmd)
main.add_command(edit_cmd)
main.add_command(history_cmd)
main.add_command(delete_cmd)
main.add_command(init_cmd)
