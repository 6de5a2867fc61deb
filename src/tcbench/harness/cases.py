"""Benchmark case definitions and case file loading.

Cases are (input file, encoder, mode) triples grouped by name. A built-in
table reproduces the reference encoder suite; YAML case files provide
custom selections.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from tcbench.errors import CaseFileError

AUDIO_SYNC_GROUP = "AudioEncoderSyncTest"
AUDIO_ASYNC_GROUP = "AudioEncoderAsyncTest"
VIDEO_SYNC_GROUP = "VideoEncoderSyncTest"
VIDEO_ASYNC_GROUP = "VideoEncoderAsyncTest"


@dataclass(frozen=True)
class BenchmarkCase:
    """One benchmark run: an input file, an encoder and a mode.

    Attributes:
        input_file: File name, resolved against the resource directory.
        codec_name: Encoder name; empty selects the default for the track.
        async_mode: Run codecs in async (threaded) mode.
        group: Name of the group the case belongs to.
    """

    input_file: str
    codec_name: str = ""
    async_mode: bool = False
    group: str = ""

    @property
    def mode_label(self) -> str:
        return "async" if self.async_mode else "sync"

    @property
    def codec_label(self) -> str:
        return self.codec_name or "default"

    def __str__(self) -> str:
        return f"{self.input_file} [{self.codec_label}, {self.mode_label}]"


_AUDIO_INPUTS = (
    "bbb_44100hz_2ch_128kbps_aac_30sec.mp4",
    "bbb_8000hz_1ch_8kbps_amrnb_30sec.3gp",
    "bbb_16000hz_1ch_9kbps_amrwb_30sec.3gp",
    "bbb_44100hz_2ch_600kbps_flac_30sec.mp4",
    "bbb_48000hz_2ch_100kbps_opus_30sec.webm",
)

_VIDEO_INPUTS = (
    # Default encoders
    ("crowd_1920x1080_25fps_4000kbps_vp8.webm", ""),
    ("crowd_1920x1080_25fps_6700kbps_h264.ts", ""),
    ("crowd_1920x1080_25fps_4000kbps_h265.mkv", ""),
    # Named encoders
    ("crowd_1920x1080_25fps_4000kbps_vp9.webm", "libvpx-vp9"),
    ("crowd_1920x1080_25fps_4000kbps_vp8.webm", "libvpx"),
    ("crowd_176x144_25fps_6000kbps_mpeg4.mp4", "mpeg4"),
    ("crowd_176x144_25fps_6000kbps_h263.3gp", "h263"),
    ("crowd_1920x1080_25fps_6700kbps_h264.ts", "libx264"),
    ("crowd_1920x1080_25fps_4000kbps_h265.mkv", "libx265"),
)


def _build_default_cases() -> tuple[BenchmarkCase, ...]:
    cases: list[BenchmarkCase] = []
    for async_mode, group in ((False, AUDIO_SYNC_GROUP), (True, AUDIO_ASYNC_GROUP)):
        cases.extend(
            BenchmarkCase(name, "", async_mode, group) for name in _AUDIO_INPUTS
        )
    for async_mode, group in ((False, VIDEO_SYNC_GROUP), (True, VIDEO_ASYNC_GROUP)):
        cases.extend(
            BenchmarkCase(name, codec, async_mode, group)
            for name, codec in _VIDEO_INPUTS
        )
    return tuple(cases)


DEFAULT_CASES: tuple[BenchmarkCase, ...] = _build_default_cases()


def case_groups(cases: Iterable[BenchmarkCase]) -> list[str]:
    """Return group names in first-appearance order."""
    return list(dict.fromkeys(case.group for case in cases))


def select_cases(
    cases: Iterable[BenchmarkCase], groups: Iterable[str] | None = None
) -> list[BenchmarkCase]:
    """Filter cases by group name, keeping their order.

    Args:
        cases: Candidate cases.
        groups: Group names to keep; None or empty keeps everything.

    Returns:
        Selected cases.

    Raises:
        CaseFileError: If a requested group matches no case.
    """
    cases = list(cases)
    wanted = list(groups or [])
    if not wanted:
        return cases

    known = set(case_groups(cases))
    unknown = [g for g in wanted if g not in known]
    if unknown:
        raise CaseFileError(
            f"Unknown case group(s): {', '.join(unknown)}. "
            f"Available: {', '.join(sorted(known))}"
        )
    return [case for case in cases if case.group in wanted]


class CaseModel(BaseModel):
    """Pydantic model for one case file entry."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    input: str = Field(min_length=1)
    codec: str = ""
    async_mode: bool = Field(default=False, alias="async")
    group: str = "custom"


class CaseFileModel(BaseModel):
    """Pydantic model for a case file."""

    model_config = ConfigDict(extra="forbid")

    cases: list[CaseModel] = Field(min_length=1)


def load_cases(path: Path) -> list[BenchmarkCase]:
    """Load benchmark cases from a YAML file.

    The file holds a ``cases`` list; each entry names an ``input`` file and
    optionally a ``codec``, an ``async`` flag and a ``group``.

    Args:
        path: Path to the YAML case file.

    Returns:
        Cases in file order.

    Raises:
        CaseFileError: If the file is unreadable, not valid YAML, or fails
            validation.
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise CaseFileError(f"Cannot read case file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise CaseFileError(f"Invalid YAML syntax in {path}: {e}") from e

    if data is None:
        raise CaseFileError(f"Case file {path} is empty")
    if not isinstance(data, dict):
        raise CaseFileError(f"Case file {path} must be a YAML mapping")

    return load_cases_from_dict(data)


def load_cases_from_dict(data: dict[str, Any]) -> list[BenchmarkCase]:
    """Validate a case file mapping and convert it to cases.

    Raises:
        CaseFileError: If the data fails validation.
    """
    try:
        model = CaseFileModel.model_validate(data)
    except ValidationError as e:
        raise CaseFileError(_format_validation_error(e)) from e

    return [
        BenchmarkCase(
            input_file=entry.input,
            codec_name=entry.codec,
            async_mode=entry.async_mode,
            group=entry.group,
        )
        for entry in model.cases
    ]


def _format_validation_error(error: ValidationError) -> str:
    errors = error.errors()
    if not errors:
        return f"Case file validation failed: {error}"
    first = errors[0]
    loc = ".".join(str(x) for x in first.get("loc", []))
    msg = first.get("msg", str(error))
    if loc:
        return f"Case file validation failed: {loc}: {msg}"
    return f"Case file validation failed: {msg}"
