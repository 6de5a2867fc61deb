"""CLI probe command: show what the extractor reports for a file."""

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any

import click

from tcbench.cli.exit_codes import ExitCode
from tcbench.core.formatting import format_file_size
from tcbench.errors import MissingFormatFieldError
from tcbench.extractor import PyAVExtractor
from tcbench.pipeline import derive_encoder_parameters

logger = logging.getLogger(__name__)


def _describe_tracks(extractor: PyAVExtractor) -> list[dict[str, Any]]:
    tracks: list[dict[str, Any]] = []
    for track in extractor.tracks:
        entry: dict[str, Any] = {
            "index": track.index,
            "mime": track.mime,
            "codec": track.codec_name,
            "format": track.format.to_dict(),
        }
        try:
            params = derive_encoder_parameters(track.mime, track.format)
        except MissingFormatFieldError as e:
            entry["encoder_parameters"] = None
            entry["derivation_error"] = str(e)
        else:
            entry["encoder_parameters"] = {
                k: v for k, v in asdict(params).items() if v is not None
            }
        tracks.append(entry)
    return tracks


def _format_human(path: Path, size: int, tracks: list[dict[str, Any]]) -> str:
    lines = [f"File: {path} ({format_file_size(size)})", f"Tracks: {len(tracks)}"]
    for entry in tracks:
        lines.append("")
        lines.append(f"  #{entry['index']} {entry['mime']} (codec: {entry['codec']})")
        for key, value in entry["format"].items():
            lines.append(f"      {key}: {value}")
        if entry["encoder_parameters"] is not None:
            derived = ", ".join(
                f"{k}={v}" for k, v in entry["encoder_parameters"].items()
            )
            lines.append(f"    encoder parameters: {derived}")
        else:
            lines.append(f"    encoder parameters: {entry['derivation_error']}")
    return "\n".join(lines)


@click.command("probe")
@click.argument("file", type=click.Path(path_type=Path, dir_okay=False))
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["human", "json"]),
    default="human",
    help="Output format (default: human)",
)
@click.pass_context
def probe_command(ctx: click.Context, file: Path, output_format: str) -> None:
    """Show the tracks and formats the extractor reports for FILE.

    Also shows the encoder parameters that would be derived from each
    track's format.
    """
    if not file.is_file():
        click.echo(f"Error: File not found: {file}", err=True)
        ctx.exit(ExitCode.TARGET_NOT_FOUND)

    extractor = PyAVExtractor()
    size = file.stat().st_size
    with open(file, "rb") as f:
        try:
            if extractor.init_extractor(f, size) <= 0:
                click.echo(f"Error: Could not parse file: {file}", err=True)
                ctx.exit(ExitCode.PARSE_ERROR)
            tracks = _describe_tracks(extractor)
        finally:
            extractor.de_init_extractor()

    if output_format == "json":
        click.echo(json.dumps({"file": str(file), "size": size, "tracks": tracks}, indent=2))
    else:
        click.echo(_format_human(file, size, tracks))
