"""Integration test fixtures: small media files generated with PyAV.

Files are encoded on the fly, so the tests need no checked-in media and
no ffmpeg binary.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path

import av
import numpy as np
import pytest


@dataclass(frozen=True)
class MediaSpec:
    """Description of a generated test file."""

    video_codec: str | None = "mpeg4"
    width: int = 64
    height: int = 48
    frame_rate: int = 25
    frame_count: int = 10
    audio_codec: str | None = None
    """Audio encoder taking planar float input (e.g. "aac")."""
    sample_rate: int = 44100
    layout: str = "mono"
    audio_frames: int = 20


SPECS: dict[str, MediaSpec] = {
    "video_mpeg4": MediaSpec(),
    "audio_aac": MediaSpec(video_codec=None, audio_codec="aac"),
    "av_mpeg4_aac": MediaSpec(audio_codec="aac", frame_count=8, audio_frames=10),
    "audio_aac_5_1": MediaSpec(
        video_codec=None, audio_codec="aac", sample_rate=48000, layout="5.1"
    ),
    "audio_aac_4_0": MediaSpec(
        video_codec=None, audio_codec="aac", sample_rate=48000, layout="4.0"
    ),
}


def generate_media(spec: MediaSpec, path: Path) -> Path:
    """Write a short clip matching the MediaSpec to path and return path."""
    with av.open(str(path), mode="w") as container:
        video = audio = None
        if spec.video_codec:
            video = container.add_stream(spec.video_codec, rate=spec.frame_rate)
            video.codec_context.width = spec.width
            video.codec_context.height = spec.height
            video.codec_context.pix_fmt = "yuv420p"
            video.codec_context.bit_rate = 200_000
        if spec.audio_codec:
            audio = container.add_stream(spec.audio_codec, rate=spec.sample_rate)
            audio.codec_context.layout = spec.layout
            audio.codec_context.bit_rate = 64_000

        if video is not None:
            for i in range(spec.frame_count):
                image = np.full((spec.height, spec.width, 3), (i * 20) % 256, np.uint8)
                image[:, : spec.width // 2, 0] = 255
                frame = av.VideoFrame.from_ndarray(image, format="rgb24")
                frame.pts = i
                frame.time_base = Fraction(1, spec.frame_rate)
                container.mux(video.encode(frame))
            container.mux(video.encode(None))

        if audio is not None:
            ctx = audio.codec_context
            samples = ctx.frame_size or 1024
            channels = len(ctx.layout.channels)
            for i in range(spec.audio_frames):
                t = (np.arange(samples) + i * samples) / spec.sample_rate
                tone = (0.3 * np.sin(2 * np.pi * 440 * t)).astype(np.float32)
                planes = np.tile(tone, (channels, 1))
                frame = av.AudioFrame.from_ndarray(
                    planes, format="fltp", layout=spec.layout
                )
                frame.sample_rate = spec.sample_rate
                frame.pts = i * samples
                frame.time_base = Fraction(1, spec.sample_rate)
                container.mux(audio.encode(frame))
            container.mux(audio.encode(None))
    return path


@pytest.fixture(scope="module")
def media_dir(tmp_path_factory: pytest.TempPathFactory) -> Path:
    """Resource directory holding every generated file of SPECS."""
    directory = tmp_path_factory.mktemp("res")
    for name, spec in SPECS.items():
        generate_media(spec, directory / f"{name}.mp4")
    return directory


@pytest.fixture
def media_factory(tmp_path: Path) -> Callable[..., Path]:
    """Generate a custom file into the test's temporary directory.

    Call as factory(name, **MediaSpec fields).
    """

    def factory(name: str, **fields) -> Path:
        return generate_media(MediaSpec(**fields), tmp_path / name)

    return factory
