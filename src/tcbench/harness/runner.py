"""Benchmark harness.

Drives each case through extract, buffer, decode, parameter derivation,
encode and statistics recording for every track of its input file.
Failures abort only the current case; cleanup always runs.
"""

from __future__ import annotations

import dataclasses
import logging
import os
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from typing import BinaryIO

from tcbench.config.models import BenchConfig
from tcbench.domain import FrameSample
from tcbench.errors import (
    BufferCapacityExceededError,
    CaseFailure,
    FailureKind,
    MissingFormatFieldError,
)
from tcbench.extractor import Extractor
from tcbench.harness.cases import BenchmarkCase
from tcbench.logging import case_context
from tcbench.pipeline import (
    CodecStatus,
    Decoder,
    Encoder,
    InputBuffer,
    PyAVDecoder,
    PyAVEncoder,
    RecordSink,
    derive_encoder_parameters,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BenchmarkContext:
    """Process-wide resources shared by every case of a run.

    Attributes:
        config: Validated benchmark configuration.
        sink: Statistics destination; appended to once per encoded track.
    """

    config: BenchConfig
    sink: RecordSink


@dataclass
class TrackResult:
    """What happened to one track of a case."""

    track_index: int
    mime: str
    sample_count: int = 0
    input_bytes: int = 0
    decoded_bytes: int = 0
    decode_status: CodecStatus | None = None
    encode_status: CodecStatus | None = None


@dataclass
class CaseResult:
    """Outcome of one benchmark case.

    Attributes:
        case: The case that ran.
        case_id: Sequence number within the run (e.g., "003").
        success: True if every track was decoded and encoded.
        failure_kind: Why the case failed, if it did.
        message: Failure description, empty on success.
        tracks: Per-track results, including the failing track.
        duration_seconds: Wall-clock time of the case.
    """

    case: BenchmarkCase
    case_id: str
    success: bool
    failure_kind: FailureKind | None = None
    message: str = ""
    tracks: list[TrackResult] = field(default_factory=list)
    duration_seconds: float = 0.0


@dataclass
class BenchmarkSummary:
    """Aggregate outcome of a run."""

    results: list[CaseResult] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.results)

    @property
    def passed(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> int:
        return self.total - self.passed

    @property
    def all_passed(self) -> bool:
        return self.failed == 0

    @property
    def failures(self) -> list[CaseResult]:
        return [r for r in self.results if not r.success]


class BenchmarkHarness:
    """Runs benchmark cases sequentially.

    Decoder and encoder instances are created per case by the factories,
    so no codec state carries over between cases.

    Args:
        context: Configuration and statistics sink.
        decoder_factory: Creates the decoder (and with it the extractor)
            for a case. Defaults to PyAVDecoder.
        encoder_factory: Creates the encoder for a case. Defaults to
            PyAVEncoder.
    """

    def __init__(
        self,
        context: BenchmarkContext,
        *,
        decoder_factory: Callable[[], Decoder] | None = None,
        encoder_factory: Callable[[], Encoder] | None = None,
    ) -> None:
        self._context = context
        config = context.config
        self._decoder_factory = decoder_factory or (
            lambda: PyAVDecoder(queue_depth=config.async_queue_depth)
        )
        self._encoder_factory = encoder_factory or (
            lambda: PyAVEncoder(
                output_path=config.encoded_output,
                queue_depth=config.async_queue_depth,
            )
        )
        self._case_counter = 0

    @property
    def config(self) -> BenchConfig:
        return self._context.config

    def run_all(self, cases: Iterable[BenchmarkCase]) -> BenchmarkSummary:
        """Run cases one after another; a failed case never stops the run."""
        summary = BenchmarkSummary()
        for case in cases:
            summary.results.append(self.run_case(case))
        logger.info(
            "Benchmark finished: %d passed, %d failed",
            summary.passed,
            summary.failed,
        )
        return summary

    def run_case(self, case: BenchmarkCase) -> CaseResult:
        """Run one case over every track of its input file.

        Args:
            case: The case to run.

        Returns:
            CaseResult describing the outcome. Never raises for failures of
            the case itself.
        """
        self._case_counter += 1
        case_id = f"{self._case_counter:03d}"
        tracks: list[TrackResult] = []

        with case_context(case_id, case.input_file, case.codec_name, case.mode_label):
            logger.info("Starting case %s", case)
            start = time.monotonic()
            try:
                self._run(case, tracks)
            except CaseFailure as e:
                logger.error("Case failed (%s): %s", e.kind.value, e.message)
                return self._failed(case, case_id, e, tracks, start)
            except Exception as e:
                # Anything a collaborator raises fails only this case
                logger.exception("Case failed unexpectedly")
                failure = CaseFailure(
                    FailureKind.UNEXPECTED, f"{type(e).__name__}: {e}"
                )
                return self._failed(case, case_id, failure, tracks, start)

            result = CaseResult(
                case=case,
                case_id=case_id,
                success=True,
                tracks=tracks,
                duration_seconds=time.monotonic() - start,
            )
            logger.info(
                "Case passed: %d track(s) in %.2fs",
                len(tracks),
                result.duration_seconds,
            )
            return result

    @staticmethod
    def _failed(
        case: BenchmarkCase,
        case_id: str,
        failure: CaseFailure,
        tracks: list[TrackResult],
        start: float,
    ) -> CaseResult:
        return CaseResult(
            case=case,
            case_id=case_id,
            success=False,
            failure_kind=failure.kind,
            message=failure.message,
            tracks=tracks,
            duration_seconds=time.monotonic() - start,
        )

    def _run(self, case: BenchmarkCase, tracks: list[TrackResult]) -> None:
        path = self.config.resolve_input(case.input_file)
        try:
            input_file = open(path, "rb")
        except OSError as e:
            raise CaseFailure(FailureKind.FILE_OPEN, f"Cannot open {path}: {e}") from e

        decoder = self._decoder_factory()
        encoder = self._encoder_factory()
        extractor = decoder.get_extractor()
        try:
            file_size = os.fstat(input_file.fileno()).st_size
            track_count = extractor.init_extractor(input_file, file_size)
            if track_count <= 0:
                raise CaseFailure(
                    FailureKind.EXTRACTOR_INIT, f"No tracks found in {path}"
                )
            logger.debug("%s has %d track(s)", path.name, track_count)

            for track_index in range(track_count):
                result = TrackResult(track_index=track_index, mime="")
                tracks.append(result)
                try:
                    self._run_track(case, extractor, decoder, encoder, result)
                finally:
                    _release_codecs(decoder, encoder)
        finally:
            # The container reads through input_file, so release it first
            extractor.de_init_extractor()
            input_file.close()

    def _run_track(
        self,
        case: BenchmarkCase,
        extractor: Extractor,
        decoder: Decoder,
        encoder: Encoder,
        result: TrackResult,
    ) -> None:
        track_index = result.track_index
        if extractor.setup_track_format(track_index) != 0:
            raise CaseFailure(
                FailureKind.TRACK_FORMAT, f"Track {track_index} format invalid"
            )

        source_format = extractor.get_format()
        track = extractor.selected_track
        mime = source_format.mime or (track.mime if track else "")
        result.mime = mime

        input_buffer, samples = self._extract(extractor)
        result.sample_count = len(samples)
        result.input_bytes = len(input_buffer)
        clip_duration_us = extractor.get_clip_duration()
        logger.debug(
            "Track %d (%s): %d samples, %d bytes",
            track_index,
            mime,
            len(samples),
            len(input_buffer),
        )

        decoder.setup_decoder()
        # Decoding always runs in sync mode; the case mode selects how
        # the encoder under test runs.
        with self._open_decode_output("wb") as out:
            result.decode_status = decoder.decode(
                input_buffer.view(), samples, "", False, out
            )
        if result.decode_status is not CodecStatus.OK:
            raise CaseFailure(
                FailureKind.DECODE,
                f"Decode returned error: {result.decode_status.label}",
            )
        result.decoded_bytes = self.config.decode_output.stat().st_size

        try:
            params = derive_encoder_parameters(
                mime, source_format, decoder.get_format()
            )
        except MissingFormatFieldError as e:
            raise CaseFailure(FailureKind.MISSING_FORMAT_FIELD, str(e)) from e
        logger.debug("Encoder parameters: %s", params)

        encoder.setup_encoder()
        with self._open_decode_output("rb") as raw:
            result.encode_status = encoder.encode(
                case.codec_name,
                raw,
                result.decoded_bytes,
                case.async_mode,
                params,
                mime,
            )
        encoder.de_init_codec()
        encoder.dump_statistics(
            case.input_file,
            clip_duration_us,
            case.codec_name,
            case.mode_label,
            self._context.sink,
            decode_time_ns=decoder.decode_time_ns,
            track_index=track_index,
        )
        if result.encode_status is not CodecStatus.OK:
            raise CaseFailure(
                FailureKind.ENCODE,
                f"Encoder failed for {case.codec_label}: "
                f"{result.encode_status.label}",
            )

    def _open_decode_output(self, mode: str) -> BinaryIO:
        path = self.config.decode_output
        try:
            return open(path, mode)
        except OSError as e:
            raise CaseFailure(
                FailureKind.FILE_OPEN, f"Cannot open decode output {path}: {e}"
            ) from e

    def _extract(self, extractor: Extractor) -> tuple[InputBuffer, list[FrameSample]]:
        """Copy every sample of the selected track into a fresh buffer."""
        input_buffer = InputBuffer(self.config.input_buffer_capacity)
        samples: list[FrameSample] = []
        while True:
            sample = extractor.get_frame_sample()
            if sample is None or sample.is_end_of_stream:
                break
            data = extractor.get_frame_buf()
            try:
                offset = input_buffer.append(data[: sample.size])
            except BufferCapacityExceededError as e:
                raise CaseFailure(FailureKind.BUFFER_OVERFLOW, str(e)) from e
            samples.append(dataclasses.replace(sample, offset=offset))
        return input_buffer, samples


def _release_codecs(decoder: Decoder, encoder: Encoder) -> None:
    encoder.de_init_codec()
    encoder.reset_encoder()
    decoder.de_init_codec()
    decoder.reset_decoder()
