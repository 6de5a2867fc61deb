"""Transcode benchmark harness.

Demuxes reference media, decodes it to raw samples or frames, re-encodes the
decoded stream with a target codec and records one statistics row per run.
"""

__version__ = "0.1.0"
