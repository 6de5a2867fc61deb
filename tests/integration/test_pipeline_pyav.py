"""End-to-end benchmark runs over generated media using the PyAV pipeline."""

from __future__ import annotations

import dataclasses
import io
import json
from pathlib import Path

import pytest
from click.testing import CliRunner

from tcbench.cli import main
from tcbench.config import BenchConfig
from tcbench.errors import FailureKind
from tcbench.extractor import PyAVExtractor
from tcbench.harness import (
    BenchmarkCase,
    BenchmarkContext,
    BenchmarkHarness,
    StatisticsSink,
)
from tcbench.pipeline import CodecStatus, InputBuffer, PyAVDecoder

pytestmark = pytest.mark.integration

VIDEO_FRAME_BYTES = 64 * 48 * 3 // 2


@pytest.fixture
def config(media_dir: Path, tmp_path: Path) -> BenchConfig:
    return BenchConfig(
        resource_dir=media_dir,
        stats_file=tmp_path / "Encoder.csv",
        decode_output=tmp_path / "decode.out",
        async_queue_depth=2,
    )


def _run(config: BenchConfig, *cases: BenchmarkCase):
    with StatisticsSink(config.stats_file) as sink:
        sink.write_header()
        harness = BenchmarkHarness(BenchmarkContext(config=config, sink=sink))
        summary = harness.run_all(cases)
    return summary, sink.records


class TestExtractor:
    """PyAVExtractor on a two-track file."""

    def test_reports_tracks(self, media_dir: Path) -> None:
        path = media_dir / "av_mpeg4_aac.mp4"
        extractor = PyAVExtractor()
        with open(path, "rb") as f:
            assert extractor.init_extractor(f, path.stat().st_size) == 2
            video, audio = extractor.tracks
            extractor.de_init_extractor()

        assert video.mime == "video/mp4v-es"
        assert video.format.get_int("width") == 64
        assert video.format.get_int("height") == 48
        assert video.format.get_int("frame-rate") == 25
        assert audio.mime == "audio/mp4a-latm"
        assert audio.format.get_int("sample-rate") == 44100
        assert audio.format.get_int("channel-count") == 1
        assert audio.format.get_str("channel-layout") == "mono"
        assert audio.extradata

    def test_tracks_demux_from_start(self, media_dir: Path) -> None:
        """Selecting a track again restarts its sample sequence."""
        path = media_dir / "av_mpeg4_aac.mp4"
        extractor = PyAVExtractor()

        def drain() -> list:
            samples = []
            while True:
                sample = extractor.get_frame_sample()
                if sample is None or sample.is_end_of_stream:
                    return samples
                assert len(extractor.get_frame_buf()) == sample.size
                samples.append(sample)

        with open(path, "rb") as f:
            extractor.init_extractor(f, path.stat().st_size)
            assert extractor.setup_track_format(0) == 0
            first = drain()
            assert extractor.setup_track_format(1) == 0
            audio = drain()
            assert extractor.setup_track_format(0) == 0
            again = drain()
            extractor.de_init_extractor()

        assert len(first) == 8
        assert first[0].flags & 1
        assert [s.presentation_time_us for s in first] == [
            s.presentation_time_us for s in again
        ]
        assert audio

    def test_empty_input_rejected(self) -> None:
        assert PyAVExtractor().init_extractor(io.BytesIO(b""), 0) == 0

    def test_invalid_track_index(self, media_dir: Path) -> None:
        path = media_dir / "video_mpeg4.mp4"
        extractor = PyAVExtractor()
        with open(path, "rb") as f:
            extractor.init_extractor(f, path.stat().st_size)
            assert extractor.setup_track_format(5) == -1
            extractor.de_init_extractor()


@pytest.mark.parametrize("async_mode", [False, True], ids=["sync", "async"])
class TestBenchmarkRun:
    """Full harness runs in both codec modes."""

    def test_video_track(self, config: BenchConfig, async_mode: bool) -> None:
        summary, records = _run(
            config, BenchmarkCase("video_mpeg4.mp4", "", async_mode)
        )

        assert summary.all_passed, summary.failures
        (track,) = summary.results[0].tracks
        assert track.decoded_bytes == 10 * VIDEO_FRAME_BYTES
        (record,) = records
        assert record.status == "ok"
        assert record.codec_name == "mpeg4"
        assert record.mode == ("async" if async_mode else "sync")
        assert record.frame_count == 10
        assert record.total_size_bytes > 0
        assert record.decode_time_ns > 0

    def test_audio_track(self, config: BenchConfig, async_mode: bool) -> None:
        summary, records = _run(
            config, BenchmarkCase("audio_aac.mp4", "", async_mode)
        )

        assert summary.all_passed, summary.failures
        (record,) = records
        assert record.codec_name == "aac"
        assert record.frame_count > 0
        assert record.bytes_per_sec is not None

    def test_every_track_recorded(self, config: BenchConfig, async_mode: bool) -> None:
        summary, records = _run(
            config, BenchmarkCase("av_mpeg4_aac.mp4", "", async_mode)
        )

        assert summary.all_passed, summary.failures
        assert [r.track_index for r in records] == [0, 1]
        assert [r.codec_name for r in records] == ["mpeg4", "aac"]

    @pytest.mark.parametrize("name", ["audio_aac_5_1.mp4", "audio_aac_4_0.mp4"])
    def test_multichannel_audio(
        self, config: BenchConfig, async_mode: bool, name: str
    ) -> None:
        """Layouts beyond stereo reach the encoder by name."""
        summary, records = _run(
            config,
            BenchmarkCase(name, "", async_mode),
            BenchmarkCase("audio_aac.mp4", "", async_mode),
        )

        assert summary.all_passed, summary.failures
        assert [r.status for r in records] == ["ok", "ok"]
        assert records[0].frame_count > 0


class TestBenchmarkFailures:
    """Failures surface as case results without stopping the run."""

    def test_wrong_kind_encoder(self, config: BenchConfig) -> None:
        summary, records = _run(
            config,
            BenchmarkCase("video_mpeg4.mp4", "aac"),
            BenchmarkCase("audio_aac.mp4"),
        )

        first, second = summary.results
        assert first.failure_kind is FailureKind.ENCODE
        assert first.tracks[0].encode_status is CodecStatus.CONFIGURE_FAILED
        assert second.success
        assert [r.status for r in records] == ["configure_failed", "ok"]

    def test_buffer_too_small(self, config: BenchConfig) -> None:
        config.input_buffer_capacity = 16
        summary, records = _run(config, BenchmarkCase("video_mpeg4.mp4"))

        assert summary.results[0].failure_kind is FailureKind.BUFFER_OVERFLOW
        assert records == []

    def test_missing_input(self, config: BenchConfig) -> None:
        summary, _ = _run(config, BenchmarkCase("absent.mp4"))
        assert summary.results[0].failure_kind is FailureKind.FILE_OPEN

    def test_unparseable_input(self, config: BenchConfig, tmp_path: Path) -> None:
        garbage = tmp_path / "garbage.mp4"
        garbage.write_bytes(b"\x17not media" * 100)

        summary, _ = _run(config, BenchmarkCase(str(garbage)))

        assert summary.results[0].failure_kind is FailureKind.EXTRACTOR_INIT


class TestEncodedOutput:
    """The encoded elementary stream can be kept."""

    def test_written_when_configured(self, config: BenchConfig, tmp_path: Path) -> None:
        config.encoded_output = tmp_path / "encoded.bin"
        summary, records = _run(config, BenchmarkCase("video_mpeg4.mp4", "mpeg4"))

        assert summary.all_passed
        assert config.encoded_output.stat().st_size == records[0].total_size_bytes


class TestAsyncDecode:
    """The decoder produces identical raw output in both modes."""

    def _decode(self, path: Path, async_mode: bool) -> bytes:
        decoder = PyAVDecoder(queue_depth=2)
        extractor = decoder.get_extractor()
        with open(path, "rb") as f:
            extractor.init_extractor(f, path.stat().st_size)
            extractor.setup_track_format(0)
            buffer = InputBuffer(1 << 20)
            samples = []
            while True:
                sample = extractor.get_frame_sample()
                if sample is None or sample.is_end_of_stream:
                    break
                offset = buffer.append(extractor.get_frame_buf())
                samples.append(dataclasses.replace(sample, offset=offset))
            decoder.setup_decoder()
            out = io.BytesIO()
            status = decoder.decode(buffer.view(), samples, "", async_mode, out)
            decoder.de_init_codec()
            decoder.reset_decoder()
            extractor.de_init_extractor()
        assert status is CodecStatus.OK
        return out.getvalue()

    def test_same_output(self, media_dir: Path) -> None:
        path = media_dir / "video_mpeg4.mp4"
        assert self._decode(path, True) == self._decode(path, False)


class TestProbeCommand:
    """tcbench probe on a generated file."""

    def test_json_output(self, media_dir: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tcbench.cli._logging_configured", True)
        path = media_dir / "av_mpeg4_aac.mp4"

        result = CliRunner().invoke(main, ["probe", str(path), "--format", "json"])

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert [t["mime"] for t in data["tracks"]] == [
            "video/mp4v-es",
            "audio/mp4a-latm",
        ]
        assert data["tracks"][1]["encoder_parameters"]["bitrate"] == 128000
