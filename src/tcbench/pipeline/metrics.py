"""Per-frame encode timing aggregation."""

from dataclasses import dataclass, field


@dataclass
class FrameTimeSummary:
    """Aggregated encode metrics for one track.

    Attributes:
        frame_count: Frames submitted to the encoder.
        total_size_bytes: Encoded bytes produced, flush included.
        total_time_ns: Time spent inside encode calls, flush included.
        min_frame_time_ns: Fastest single-frame encode call.
        max_frame_time_ns: Slowest single-frame encode call.
        avg_frame_time_ns: Mean single-frame encode call.
        frames_per_sec: Frames encoded per second of encode time.
        bytes_per_sec: Encoded bytes per second of content.
        time_per_sec_content_ns: Encode time per second of content.
    """

    frame_count: int = 0
    total_size_bytes: int = 0
    total_time_ns: int = 0
    min_frame_time_ns: int | None = None
    max_frame_time_ns: int | None = None
    avg_frame_time_ns: int | None = None
    frames_per_sec: float | None = None
    bytes_per_sec: int | None = None
    time_per_sec_content_ns: int | None = None


@dataclass
class FrameTimeAggregator:
    """Collects encode timings while a track is encoded.

    Usage:
        aggregator = FrameTimeAggregator()
        aggregator.add_frame(elapsed_ns, output_bytes)
        aggregator.add_flush(elapsed_ns, output_bytes)
        summary = aggregator.summarize(clip_duration_us)
    """

    frame_times_ns: list[int] = field(default_factory=list)
    flush_time_ns: int = 0
    total_size_bytes: int = 0
    setup_time_ns: int = 0
    destroy_time_ns: int = 0

    def add_frame(self, elapsed_ns: int, output_bytes: int) -> None:
        """Record one frame's encode call.

        Args:
            elapsed_ns: Wall-clock time of the call.
            output_bytes: Encoded bytes the call returned.
        """
        self.frame_times_ns.append(elapsed_ns)
        self.total_size_bytes += output_bytes

    def add_flush(self, elapsed_ns: int, output_bytes: int) -> None:
        """Record the end-of-stream drain, which is not a frame."""
        self.flush_time_ns += elapsed_ns
        self.total_size_bytes += output_bytes

    @property
    def frame_count(self) -> int:
        return len(self.frame_times_ns)

    @property
    def total_time_ns(self) -> int:
        return sum(self.frame_times_ns) + self.flush_time_ns

    def summarize(self, clip_duration_us: int = 0) -> FrameTimeSummary:
        """Compute aggregate metrics.

        Args:
            clip_duration_us: Content duration, for per-second-of-content
                figures. Those stay None when it is not positive.

        Returns:
            FrameTimeSummary with computed values.
        """
        total_time = self.total_time_ns
        summary = FrameTimeSummary(
            frame_count=self.frame_count,
            total_size_bytes=self.total_size_bytes,
            total_time_ns=total_time,
        )

        if self.frame_times_ns:
            summary.min_frame_time_ns = min(self.frame_times_ns)
            summary.max_frame_time_ns = max(self.frame_times_ns)
            summary.avg_frame_time_ns = sum(self.frame_times_ns) // len(
                self.frame_times_ns
            )

        if total_time > 0:
            summary.frames_per_sec = self.frame_count * 1e9 / total_time

        if clip_duration_us > 0:
            summary.bytes_per_sec = self.total_size_bytes * 1_000_000 // clip_duration_us
            summary.time_per_sec_content_ns = total_time * 1_000_000 // clip_duration_us

        return summary

    def reset(self) -> None:
        """Clear all collected timings."""
        self.frame_times_ns.clear()
        self.flush_time_ns = 0
        self.total_size_bytes = 0
        self.setup_time_ns = 0
        self.destroy_time_ns = 0
