"""CLI history commands."""

import json
from datetime import datetime, timezone

import click

from uniplay.config.models import UniplayConfig
from uniplay.state import PlayerStateStore


def _open_store(ctx: click.Context) -> PlayerStateStore:
    config: UniplayConfig = ctx.obj["config"]
    return PlayerStateStore(config=config.history)


@click.group("history")
def history_group() -> None:
    """Inspect or clear saved playback positions."""


@history_group.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def history_show(ctx: click.Context, as_json: bool) -> None:
    """List saved positions, most recent first."""
    store = _open_store(ctx)
    entries = sorted(
        store.state.history.items(), key=lambda item: item[1].timestamp, reverse=True
    )

    if as_json:
        data = {
            url: {"position": entry.position, "timestamp": entry.timestamp}
            for url, entry in entries
        }
        click.echo(json.dumps(data, indent=2))
        return

    if not entries:
        click.echo("No saved positions.")
        return
    for url, entry in entries:
        saved = datetime.fromtimestamp(entry.timestamp, tz=timezone.utc)
        resumable = store.suggest_resume(url) is not None
        marker = "" if resumable else "  (not resumable)"
        click.echo(
            f"{entry.position:9.1f}s  {saved:%Y-%m-%d %H:%M}  {url}{marker}"
        )


@history_group.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def history_reset(ctx: click.Context, yes: bool) -> None:
    """Forget every saved position."""
    if not yes:
        click.confirm("Clear all saved playback positions?", abort=True)
    store = _open_store(ctx)
    count = len(store.state.history)
    store.clear_history()
    click.echo(f"Cleared {count} saved positions.")
