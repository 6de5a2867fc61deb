"""CLI cases command and shared case selection."""

from pathlib import Path

import click

from tcbench.cli.exit_codes import ExitCode
from tcbench.errors import CaseFileError
from tcbench.harness import (
    DEFAULT_CASES,
    BenchmarkCase,
    case_groups,
    load_cases,
    select_cases,
)

CLI_GROUP = "cli"


def resolve_cases(
    cases_file: Path | None,
    groups: tuple[str, ...],
    input_file: str | None = None,
    codec: str = "",
    async_mode: bool = False,
) -> list[BenchmarkCase]:
    """Build the case list for a command invocation.

    A single --input case takes priority; otherwise cases come from the
    case file, or the built-in table, filtered by group.

    Raises:
        CaseFileError: If the case file is invalid or a group is unknown.
    """
    if input_file:
        return [BenchmarkCase(input_file, codec, async_mode, CLI_GROUP)]

    if cases_file is not None:
        available = load_cases(cases_file)
    else:
        available = list(DEFAULT_CASES)
    return select_cases(available, groups)


@click.command("cases")
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
    help="Only list cases of this group (repeatable).",
)
@click.pass_context
def cases_command(
    ctx: click.Context,
    cases_file: Path | None,
    groups: tuple[str, ...],
) -> None:
    """List the benchmark cases that would run."""
    try:
        cases = resolve_cases(cases_file, groups)
    except CaseFileError as e:
        click.echo(f"Error: {e}", err=True)
        ctx.exit(ExitCode.CONFIG_ERROR)

    for group in case_groups(cases):
        click.echo(f"{group}:")
        for case in cases:
            if case.group == group:
                click.echo(
                    f"  {case.input_file:<45} {case.codec_label:<12} {case.mode_label}"
                )
    click.echo(f"\n{len(cases)} case(s)")
