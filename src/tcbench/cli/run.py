"""CLI run command: execute benchmark cases and write statistics."""

import logging
import tomllib
from pathlib import Path

import click

from tcbench.cli.cases import resolve_cases
from tcbench.cli.exit_codes import ExitCode
from tcbench.config import BenchConfig, get_config, validate_config
from tcbench.core.formatting import format_duration_ns, format_file_size
from tcbench.errors import CaseFileError, ConfigError
from tcbench.harness import (
    BenchmarkContext,
    BenchmarkHarness,
    BenchmarkSummary,
    StatisticsSink,
)

logger = logging.getLogger(__name__)


def _print_summary(summary: BenchmarkSummary, stats_file: Path) -> None:
    for result in summary.results:
        status = "PASS" if result.success else "FAIL"
        raw_bytes = sum(t.decoded_bytes for t in result.tracks)
        click.echo(
            f"{status}  C{result.case_id}  {result.case}  "
            f"({format_duration_ns(int(result.duration_seconds * 1e9))}, "
            f"{format_file_size(raw_bytes)} raw)"
        )
        if not result.success:
            kind = result.failure_kind.value if result.failure_kind else "unknown"
            click.echo(f"      {kind}: {result.message}")

    click.echo("")
    click.echo(f"{summary.passed} passed, {summary.failed} failed")
    click.echo(f"Statistics written to {stats_file}")


def _load_config(obj: dict, **overrides) -> BenchConfig:
    """Build and validate the run configuration.

    Raises:
        ConfigError: If the configuration cannot be loaded or is invalid.
    """
    try:
        config = get_config(
            config_path=obj.get("config_path"),
            log_level=obj.get("log_level"),
            log_file=obj.get("log_file"),
            log_format=obj.get("log_format"),
            **overrides,
        )
    except (ValueError, tomllib.TOMLDecodeError) as e:
        raise ConfigError([f"Invalid configuration: {e}"]) from e

    errors = validate_config(config)
    if errors:
        raise ConfigError(errors)
    return config


@click.command("run")
@click.option(
    "--res-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=None,
    help="Directory holding the reference media files.",
)
@click.option(
    "--stats-file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Statistics CSV output (default: Encoder.csv).",
)
@click.option(
    "--decode-output",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="File the decoder writes raw media to.",
)
@click.option(
    "--encoded-output",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Keep the encoded elementary stream in this file.",
)
@click.option(
    "--buffer-size",
    type=int,
    default=None,
    help="Input buffer capacity in bytes (default: 16 MiB).",
)
@click.option(
    "--cases",
    "cases_file",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="YAML case file (default: built-in cases).",
)
@click.option(
    "--group",
    "groups",
    multiple=True,
    help="Only run cases of this group (repeatable).",
)
@click.option(
    "--input",
    "input_file",
    default=None,
    help="Run a single case for this input file.",
)
@click.option(
    "--codec",
    default="",
    help="Encoder for --input (default: per-track default encoder).",
)
@click.option(
    "--async/--sync",
    "async_mode",
    default=False,
    help="Codec mode for --input (default: sync).",
)
@click.pass_context
def run_command(
    ctx: click.Context,
    res_dir: Path | None,
    stats_file: Path | None,
    decode_output: Path | None,
    encoded_output: Path | None,
    buffer_size: int | None,
    cases_file: Path | None,
    groups: tuple[str, ...],
    input_file: str | None,
    codec: str,
    async_mode: bool,
) -> None:
    """Run benchmark cases.

    Each case demuxes its input, decodes every track to a raw file,
    re-encodes it and appends one statistics row per track.

    Exits 0 when every case passed, 1 when any case failed, and 2 when
    the configuration is invalid (no case runs).
    """
    try:
        config = _load_config(
            ctx.obj or {},
            resource_dir=res_dir,
            stats_file=stats_file,
            decode_output=decode_output,
            encoded_output=encoded_output,
            input_buffer_capacity=buffer_size,
        )
    except ConfigError as e:
        for error in e.errors:
            click.echo(f"Error: {error}", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)

    try:
        cases = resolve_cases(cases_file, groups, input_file, codec, async_mode)
    except CaseFileError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)

    if not cases:
        click.echo("Error: No cases selected", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)

    try:
        sink = StatisticsSink(config.stats_file)
        sink.open()
    except OSError as e:
        click.echo(f"Error: Cannot write statistics file: {e}", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)

    logger.info(
        "Running %d case(s) from %s, statistics to %s",
        len(cases),
        config.resource_dir,
        config.stats_file,
    )
    with sink:
        sink.write_header()
        harness = BenchmarkHarness(BenchmarkContext(config=config, sink=sink))
        summary = harness.run_all(cases)

    _print_summary(summary, config.stats_file)
    ctx.exit(ExitCode.SUCCESS if summary.all_passed else ExitCode.CASE_FAILED)
