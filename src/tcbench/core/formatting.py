"""Formatting utilities for console output."""

_SIZE_UNITS = (("GB", 1024**3), ("MB", 1024**2), ("KB", 1024))


def format_file_size(size_bytes: int) -> str:
    """Format a byte count in human-readable form (e.g., "1.5 KB", "4.2 GB")."""
    for unit, scale in _SIZE_UNITS:
        if size_bytes >= scale:
            return f"{size_bytes / scale:.1f} {unit}"
    return f"{size_bytes} B"


def format_duration_ns(duration_ns: int | None) -> str:
    """Format a nanosecond duration as milliseconds or seconds.

    Args:
        duration_ns: Duration in nanoseconds, or None.

    Returns:
        Formatted string (e.g., "850.2 ms", "12.35 s") or "-" if unknown.
    """
    if duration_ns is None:
        return "-"
    if duration_ns >= 1_000_000_000:
        return f"{duration_ns / 1_000_000_000:.2f} s"
    return f"{duration_ns / 1_000_000:.1f} ms"
