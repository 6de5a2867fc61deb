"""Shared test fixtures for the transcode benchmark."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import BinaryIO

import pytest

from tcbench.config import BenchConfig
from tcbench.domain import (
    EncoderParameters,
    FormatDescriptor,
    FrameSample,
    MediaTrack,
    SampleFlags,
    StatisticsRecord,
)
from tcbench.harness import BenchmarkContext, BenchmarkHarness
from tcbench.pipeline import CodecStatus


class FakeExtractor:
    """In-memory extractor serving pre-built tracks.

    Each track is a MediaTrack plus the list of its sample payloads.
    """

    def __init__(
        self,
        tracks: list[tuple[MediaTrack, list[bytes]]],
        *,
        track_count: int | None = None,
        failing_tracks: frozenset[int] = frozenset(),
    ) -> None:
        self._tracks = tracks
        self._track_count = len(tracks) if track_count is None else track_count
        self._failing_tracks = failing_tracks
        self._selected: int | None = None
        self._cursor = 0
        self._buf = b""
        self.init_calls = 0
        self.de_init_calls = 0
        self.samples_served = 0

    @property
    def selected_track(self) -> MediaTrack | None:
        if self._selected is None:
            return None
        return self._tracks[self._selected][0]

    def init_extractor(self, file: BinaryIO, file_size: int) -> int:
        self.init_calls += 1
        return self._track_count

    def setup_track_format(self, track_index: int) -> int:
        if track_index in self._failing_tracks or track_index >= len(self._tracks):
            return -1
        self._selected = track_index
        self._cursor = 0
        return 0

    def get_frame_sample(self) -> FrameSample | None:
        assert self._selected is not None
        payloads = self._tracks[self._selected][1]
        if self._cursor >= len(payloads):
            self._buf = b""
            return FrameSample(0, 0, SampleFlags.END_OF_STREAM)
        self._buf = payloads[self._cursor]
        sample = FrameSample(
            size=len(self._buf),
            presentation_time_us=self._cursor * 40_000,
            flags=SampleFlags.KEY_FRAME if self._cursor == 0 else SampleFlags.NONE,
        )
        self._cursor += 1
        self.samples_served += 1
        return sample

    def get_frame_buf(self) -> bytes:
        return self._buf

    def get_format(self) -> FormatDescriptor:
        track = self.selected_track
        return track.format if track else FormatDescriptor()

    def get_clip_duration(self) -> int:
        track = self.selected_track
        if track is None:
            return 0
        return track.format.get_int("durationUs") or 0

    def de_init_extractor(self) -> None:
        self.de_init_calls += 1
        self._selected = None


class FakeDecoder:
    """Decoder that writes the compressed samples back out unchanged."""

    def __init__(
        self,
        extractor: FakeExtractor,
        *,
        status: CodecStatus = CodecStatus.OK,
        output_format: FormatDescriptor | None = None,
        error: Exception | None = None,
    ) -> None:
        self._extractor = extractor
        self._status = status
        self._error = error
        self._output_format = output_format
        self.decode_time_ns = 0
        self.decode_calls: list[tuple[int, bool]] = []
        self.setup_calls = 0
        self.de_init_calls = 0
        self.reset_calls = 0

    def get_extractor(self) -> FakeExtractor:
        return self._extractor

    def setup_decoder(self) -> None:
        self.setup_calls += 1

    def decode(
        self,
        input_buffer: bytes | bytearray | memoryview,
        frame_info: list[FrameSample],
        codec_name: str,
        async_mode: bool,
        output: BinaryIO,
    ) -> CodecStatus:
        self.decode_calls.append((len(frame_info), async_mode))
        if self._error is not None:
            raise self._error
        view = memoryview(input_buffer)
        for sample in frame_info:
            output.write(bytes(view[sample.offset : sample.offset + sample.size]))
        self.decode_time_ns = 1_000_000
        return self._status

    def get_format(self) -> FormatDescriptor | None:
        return self._output_format

    def de_init_codec(self) -> None:
        self.de_init_calls += 1

    def reset_decoder(self) -> None:
        self.reset_calls += 1


class FakeEncoder:
    """Encoder that consumes its input and records what it was given."""

    def __init__(self, *, status: CodecStatus = CodecStatus.OK) -> None:
        self._status = status
        self.encode_calls: list[dict] = []
        self.consumed: list[bytes] = []
        self.setup_calls = 0
        self.de_init_calls = 0
        self.reset_calls = 0
        self.dump_calls = 0

    def setup_encoder(self) -> None:
        self.setup_calls += 1

    def encode(
        self,
        codec_name: str,
        raw_stream: BinaryIO,
        input_size: int,
        async_mode: bool,
        params: EncoderParameters,
        mime: str,
    ) -> CodecStatus:
        self.consumed.append(raw_stream.read(input_size))
        self.encode_calls.append(
            {
                "codec_name": codec_name,
                "input_size": input_size,
                "async_mode": async_mode,
                "params": params,
                "mime": mime,
            }
        )
        return self._status

    def dump_statistics(
        self,
        input_label: str,
        clip_duration_us: int,
        codec_name: str,
        mode_label: str,
        sink,
        *,
        decode_time_ns: int | None = None,
        track_index: int = 0,
    ) -> None:
        self.dump_calls += 1
        sink.append(
            StatisticsRecord(
                timestamp="2026-01-01T00:00:00+00:00",
                input_file=input_label,
                operation="encode",
                codec_name=codec_name,
                codec_type="software",
                mode=mode_label,
                track_index=track_index,
                status=self._status.label,
                setup_time_ns=1,
                destroy_time_ns=1,
                decode_time_ns=decode_time_ns,
                encode_time_ns=10,
                min_frame_time_ns=1,
                max_frame_time_ns=3,
                avg_frame_time_ns=2,
                time_per_sec_content_ns=None,
                bytes_per_sec=None,
                frames_per_sec=None,
                frame_count=len(self.consumed[-1]) if self.consumed else 0,
                total_size_bytes=0,
                clip_duration_us=clip_duration_us,
            )
        )

    def de_init_codec(self) -> None:
        self.de_init_calls += 1

    def reset_encoder(self) -> None:
        self.reset_calls += 1


class MemorySink:
    """Statistics sink that keeps records in a list."""

    def __init__(self) -> None:
        self.records: list[StatisticsRecord] = []

    def append(self, record: StatisticsRecord) -> None:
        self.records.append(record)


def make_audio_track(index: int = 0, **overrides) -> MediaTrack:
    values = {
        "mime": "audio/mp4a-latm",
        "sample-rate": 44100,
        "channel-count": 2,
        "bitrate": 128000,
        "durationUs": 1_000_000,
    }
    values.update(overrides)
    return MediaTrack(
        index=index,
        mime=values["mime"],
        format=FormatDescriptor(values),
        codec_name="aac",
    )


def make_video_track(index: int = 0, **overrides) -> MediaTrack:
    values = {
        "mime": "video/avc",
        "width": 176,
        "height": 144,
        "frame-rate": 25,
        "bitrate": 500000,
        "durationUs": 2_000_000,
    }
    values.update(overrides)
    return MediaTrack(
        index=index,
        mime=values["mime"],
        format=FormatDescriptor(values),
        codec_name="h264",
    )


@pytest.fixture
def audio_track() -> Callable[..., MediaTrack]:
    """Factory for audio MediaTracks with overridable format values."""
    return make_audio_track


@pytest.fixture
def video_track() -> Callable[..., MediaTrack]:
    """Factory for video MediaTracks with overridable format values."""
    return make_video_track


@pytest.fixture
def bench_config(tmp_path: Path) -> BenchConfig:
    """BenchConfig pointing every path into a temporary directory."""
    res_dir = tmp_path / "res"
    res_dir.mkdir()
    return BenchConfig(
        resource_dir=res_dir,
        stats_file=tmp_path / "Encoder.csv",
        decode_output=tmp_path / "decode.out",
        input_buffer_capacity=1024,
        async_queue_depth=2,
    )


@pytest.fixture
def input_file(bench_config: BenchConfig) -> str:
    """Name of an existing (dummy) input file in the resource directory."""
    assert bench_config.resource_dir is not None
    name = "clip.mp4"
    (bench_config.resource_dir / name).write_bytes(b"\x00" * 64)
    return name


@pytest.fixture
def memory_sink() -> MemorySink:
    return MemorySink()


@pytest.fixture
def fakes():
    """Expose the fake collaborator classes to tests."""

    class Fakes:
        Extractor = FakeExtractor
        Decoder = FakeDecoder
        Encoder = FakeEncoder
        Sink = MemorySink

    return Fakes


@pytest.fixture
def make_harness(bench_config: BenchConfig, memory_sink: MemorySink):
    """Build a harness wired to fake collaborators.

    Returns a factory taking (extractor, decoder_kwargs, encoder_kwargs)
    and returning (harness, created) where created collects the decoder
    and encoder instances built per case.
    """

    def factory(
        extractor: FakeExtractor,
        decoder_kwargs: dict | None = None,
        encoder_kwargs: dict | None = None,
    ) -> tuple[BenchmarkHarness, dict[str, list]]:
        created: dict[str, list] = {"decoders": [], "encoders": []}

        def new_decoder() -> FakeDecoder:
            decoder = FakeDecoder(extractor, **(decoder_kwargs or {}))
            created["decoders"].append(decoder)
            return decoder

        def new_encoder() -> FakeEncoder:
            encoder = FakeEncoder(**(encoder_kwargs or {}))
            created["encoders"].append(encoder)
            return encoder

        harness = BenchmarkHarness(
            BenchmarkContext(config=bench_config, sink=memory_sink),
            decoder_factory=new_decoder,
            encoder_factory=new_encoder,
        )
        return harness, created

    return factory
