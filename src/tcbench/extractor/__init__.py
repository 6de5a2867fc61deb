"""Container demuxing for the transcode benchmark.

- Extractor: Protocol the harness and decoder depend on
- PyAVExtractor: Production implementation using PyAV
"""

from tcbench.extractor.interface import Extractor
from tcbench.extractor.pyav import PyAVExtractor

__all__ = [
    "Extractor",
    "PyAVExtractor",
]
