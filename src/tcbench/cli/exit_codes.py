"""Centralized exit codes for all CLI commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for tcbench CLI commands."""

    SUCCESS = 0

    # At least one benchmark case failed
    CASE_FAILED = 1

    # Configuration or case selection is invalid; no case ran
    CONFIG_ERROR = 2

    # probe: input missing or not parseable
    TARGET_NOT_FOUND = 20
    PARSE_ERROR = 21
