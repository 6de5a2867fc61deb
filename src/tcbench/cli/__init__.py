"""CLI module for the transcode benchmark."""

import logging
import tomllib
from pathlib import Path

import click

from tcbench.cli.exit_codes import ExitCode
from tcbench.config import get_config
from tcbench.logging import configure_logging

_logging_configured: bool = False

logger = logging.getLogger(__name__)


def _configure_logging(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Configure logging from the config file, environment and CLI options.

    Args:
        ctx: Click context, used to exit on invalid configuration.
        config_path: Explicit config file, if given.
        log_level: Override log level (debug, info, warning, error).
        log_file: Override log file path.
        log_json: Use JSON log format.
    """
    global _logging_configured
    if _logging_configured:
        return

    try:
        config = get_config(
            config_path=config_path,
            log_level=log_level,
            log_file=log_file,
            log_format="json" if log_json else None,
        )
    except (ValueError, tomllib.TOMLDecodeError) as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)

    configure_logging(config.logging)
    _logging_configured = True


@click.group()
@click.version_option(package_name="transcode-bench")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: $TCB_CONFIG_PATH or ~/.tcbench/config.toml).",
)
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
@click.pass_context
def main(
    ctx: click.Context,
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> None:
    """Transcode benchmark - decode reference media and time re-encoding."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level
    ctx.obj["log_file"] = log_file
    ctx.obj["log_format"] = "json" if log_json else None

    _configure_logging(ctx, config_path, log_level, log_file, log_json)


# Defer import to avoid circular dependency
def _register_commands():
    from tcbench.cli.cases import cases_command
    from tcbench.cli.probe import probe_command
    from tcbench.cli.run import run_command

    main.add_command(run_command)
    main.add_command(cases_command)
    main.add_command(probe_command)


_register_commands()
