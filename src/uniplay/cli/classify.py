"""CLI classify command."""

import json

import click

from uniplay.classifier import (
    classify,
    extension_of,
    is_adaptive_compatible,
    needs_remuxing,
)
from uniplay.playback.backends import select_backend


@click.command("classify")
@click.argument("url")
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Output as JSON.",
)
@click.option(
    "--native-hls",
    is_flag=True,
    help="Assume the sink plays HLS natively.",
)
def classify_command(url: str, as_json: bool, native_hls: bool) -> None:
    """Classify URL and show the backend it would play through."""
    descriptor = classify(url)
    backend = select_backend(descriptor, url, native_hls=native_hls)
    result = {
        **descriptor.to_dict(),
        "extension": extension_of(url),
        "needs_remuxing": needs_remuxing(descriptor.kind),
        "adaptive_compatible": is_adaptive_compatible(descriptor.kind),
        "backend": backend.kind.value,
    }

    if as_json:
        click.echo(json.dumps(result, indent=2))
        return

    click.echo(f"URL:        {url}")
    click.echo(f"Kind:       {result['kind']}")
    click.echo(f"Category:   {result['category']}")
    click.echo(f"Extension:  {result['extension'] or '-'}")
    click.echo(f"Backend:    {result['backend']}")
