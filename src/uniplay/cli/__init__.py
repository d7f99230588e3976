"""CLI module for uniplay."""

import logging
from pathlib import Path

import click

from uniplay.config import ConfigParseError, get_config
from uniplay.logging import configure_logging

logger = logging.getLogger(__name__)


@click.group()
@click.version_option(package_name="uniplay")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.uniplay/config.toml).",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    config_path: Path | None,
) -> None:
    """uniplay - Classify, probe and remux media for playback."""
    ctx.ensure_object(dict)
    # Tests may inject a ready-made config.
    if "config" not in ctx.obj:
        try:
            ctx.obj["config"] = get_config(
                config_path,
                log_level=log_level,
                log_format="json" if log_json else None,
                log_file=log_file,
                strict=config_path is not None,
            )
        except (ConfigParseError, ValueError) as e:
            raise click.ClickException(f"Invalid configuration: {e}") from e
    configure_logging(ctx.obj["config"].logging)


def _register_commands():
    from uniplay.cli.classify import classify_command
    from uniplay.cli.history import history_group
    from uniplay.cli.remux import probe_command, remux_command

    main.add_command(classify_command)
    main.add_command(probe_command)
    main.add_command(remux_command)
    main.add_command(history_group)


_register_commands()
