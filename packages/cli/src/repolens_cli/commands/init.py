"""init command — interactive setup wizard.

Writes .repolens.yml with the AI provider, the default project kind and
the review history store. For the gist store it can create the backing
private Gist through the gh CLI.
"""

from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from pathlib import Path

import click
import yaml
from rich.console import Console

from repolens_core.config import PROVIDER_KEY_ENV
from repolens_core.models import ProjectKind
from repolens_store.gist import gist_filename

logger = logging.getLogger(__name__)

console = Console()


@click.command("init")
@click.pass_context
def init_cmd(ctx):
    """Set up repolens in the current directory.

    Creates (or updates) .repolens.yml and, for the gist store, optionally
    creates the private Gist that holds review history.
    """
    console.print("\n[bold cyan]repolens init[/bold cyan] — setup wizard\n")
    config_path = Path((ctx.parent.params.get("config_path") if ctx.parent else None) or ".repolens.yml")

    provider = click.prompt(
        "AI provider",
        type=click.Choice(list(PROVIDER_KEY_ENV)),
        default="gemini",
    )
    kind = click.prompt(
        "Project kind",
        type=click.Choice([k.name.lower() for k in ProjectKind]),
        default="kotlin",
    )

    console.print("\nReview history store:")
    console.print("  [bold]sqlite[/bold]  — local SQLite file (default)")
    console.print("  [bold]gist[/bold]    — private GitHub Gist, shared across machines")
    console.print("  [bold]memory[/bold]  — nothing is kept after the command exits")
    store_type = click.prompt(
        "Store backend",
        type=click.Choice(["sqlite", "gist", "memory"]),
        default="sqlite",
    )

    config: dict = {"model": provider, "project_kind": kind, "store": store_type}

    if store_type == "sqlite":
        db_path = click.prompt("SQLite database path", default=".repolens.db")
        if db_path != ".repolens.db":
            config["store_path"] = db_path
        console.print(f"[green]SQLite store configured at {db_path}[/green]")

    elif store_type == "gist":
        console.print("\n[yellow]Note:[/yellow] the Gist store needs a token with [bold]gist[/bold] scope.")
        gist_id = None
        if click.confirm("Create a new private Gist now (uses the gh CLI)?", default=True):
            gist_id = _create_gist("repolens")
        if gist_id:
            console.print(f"[green]Created Gist: {gist_id}[/green]")
        else:
            gist_id = click.prompt("Existing Gist ID", default="", show_default=False) or None
        if gist_id:
            config["gist_id"] = gist_id
        else:
            console.print(f"[yellow]No Gist configured; add gist_id to {config_path} later.[/yellow]")

    _write_config(config_path, config)
    console.print(f"[green]Wrote {config_path}[/green]")

    api_key_env = PROVIDER_KEY_ENV[provider]
    if not os.environ.get(api_key_env):
        console.print(f"\n[yellow]Set [bold]{api_key_env}[/bold] to enable AI suggestions and summaries.[/yellow]")

    console.print("\n[bold green]Setup complete![/bold green]")
    console.print("Start a review with: [bold]repolens review <owner/name>[/bold]")


def _create_gist(partition: str) -> str | None:
    """Create a private Gist holding an empty review document and return its ID."""
    # gh names gist files after their path, so the temp file must carry the
    # exact name the store reads.
    with tempfile.TemporaryDirectory() as tmp_dir:
        path = Path(tmp_dir) / gist_filename(partition)
        path.write_text("{}")
        try:
            result = subprocess.run(
                ["gh", "gist", "create", "--desc", "repolens review history", str(path)],
                capture_output=True,
                text=True,
                timeout=15,
            )
        except (FileNotFoundError, subprocess.TimeoutExpired) as e:
            logger.warning("gh gist create could not run: %s", e)
            return None

    if result.returncode != 0:
        logger.warning("gh gist create failed: %s", result.stderr.strip())
        return None
    return result.stdout.strip().rstrip("/").split("/")[-1] or None


def _write_config(path: Path, config: dict) -> None:
    """Write or update the config file, preserving any existing keys."""
    existing: dict = {}
    if path.exists():
        existing = yaml.safe_load(path.read_text()) or {}
    existing.update(config)
    path.write_text(yaml.dump(existing, default_flow_style=False, sort_keys=False))
