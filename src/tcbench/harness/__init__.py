"""Benchmark harness: cases, runner and statistics sink."""

from tcbench.harness.cases import (
    AUDIO_ASYNC_GROUP,
    AUDIO_SYNC_GROUP,
    DEFAULT_CASES,
    VIDEO_ASYNC_GROUP,
    VIDEO_SYNC_GROUP,
    BenchmarkCase,
    case_groups,
    load_cases,
    load_cases_from_dict,
    select_cases,
)
from tcbench.harness.runner import (
    BenchmarkContext,
    BenchmarkHarness,
    BenchmarkSummary,
    CaseResult,
    TrackResult,
)
from tcbench.harness.stats import StatisticsSink

__all__ = [
    "AUDIO_ASYNC_GROUP",
    "AUDIO_SYNC_GROUP",
    "DEFAULT_CASES",
    "VIDEO_ASYNC_GROUP",
    "VIDEO_SYNC_GROUP",
    "BenchmarkCase",
    "BenchmarkContext",
    "BenchmarkHarness",
    "BenchmarkSummary",
    "CaseResult",
    "StatisticsSink",
    "TrackResult",
    "case_groups",
    "load_cases",
    "load_cases_from_dict",
    "select_cases",
]
