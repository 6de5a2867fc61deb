"""Decode/encode pipeline for the transcode benchmark.

- interface: Decoder/Encoder protocols and CodecStatus
- buffer: Fixed-capacity compressed-sample buffer
- params: Encoder parameter derivation
- worker: Threaded helper behind async mode
- decoder/encoder: PyAV implementations
"""

from tcbench.pipeline.buffer import InputBuffer
from tcbench.pipeline.decoder import PyAVDecoder
from tcbench.pipeline.encoder import PyAVEncoder
from tcbench.pipeline.interface import CodecStatus, Decoder, Encoder, RecordSink
from tcbench.pipeline.metrics import FrameTimeAggregator, FrameTimeSummary
from tcbench.pipeline.params import (
    AUDIO_BITRATE,
    DEFAULT_FRAME_RATE,
    LEGACY_VIDEO_MIMES,
    VIDEO_DEFAULT_BITRATE,
    VIDEO_LEGACY_BITRATE,
    derive_encoder_parameters,
)
from tcbench.pipeline.worker import run_pipelined

__all__ = [
    "AUDIO_BITRATE",
    "DEFAULT_FRAME_RATE",
    "LEGACY_VIDEO_MIMES",
    "VIDEO_DEFAULT_BITRATE",
    "VIDEO_LEGACY_BITRATE",
    "CodecStatus",
    "Decoder",
    "Encoder",
    "FrameTimeAggregator",
    "FrameTimeSummary",
    "InputBuffer",
    "PyAVDecoder",
    "PyAVEncoder",
    "RecordSink",
    "derive_encoder_parameters",
    "run_pipelined",
]
