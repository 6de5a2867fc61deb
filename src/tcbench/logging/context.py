"""Benchmark case context for structured logging.

The identity of the running case lives in a single context variable, so
every record logged while the case runs can be tagged with it.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from dataclasses import astuple, dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


@dataclass(frozen=True)
class _CaseInfo:
    case_id: str | None = None
    input_file: str | None = None
    codec_name: str | None = None
    mode: str | None = None

    @property
    def tag(self) -> str:
        if not self.case_id:
            return ""
        suffix = f":{self.mode}" if self.mode else ""
        return f"[C{self.case_id}{suffix}] "


_NO_CASE = _CaseInfo()
_current_case: contextvars.ContextVar[_CaseInfo] = contextvars.ContextVar(
    "current_case", default=_NO_CASE
)


def set_case_context(
    case_id: str,
    input_file: str | None = None,
    codec_name: str | None = None,
    mode: str | None = None,
) -> None:
    """Mark a case as running in the current context.

    Args:
        case_id: Case identifier (e.g., "003").
        input_file: Reference media file name.
        codec_name: Requested codec ("" or None means default).
        mode: "sync" or "async".
    """
    _current_case.set(_CaseInfo(case_id, input_file, codec_name, mode))


def clear_case_context() -> None:
    _current_case.set(_NO_CASE)


@contextmanager
def case_context(
    case_id: str,
    input_file: str | None = None,
    codec_name: str | None = None,
    mode: str | None = None,
) -> Iterator[None]:
    """Run a block with the given case marked as current.

    The previous case, if any, is restored when the block exits.

    Example:
        with case_context("003", "bbb_aac.mp4", "", "sync"):
            logger.info("Decoding")  # tagged [C003:sync]
    """
    token = _current_case.set(_CaseInfo(case_id, input_file, codec_name, mode))
    try:
        yield
    finally:
        _current_case.reset(token)


def get_case_context() -> tuple[str | None, str | None, str | None, str | None]:
    """Return (case_id, input_file, codec_name, mode) of the running case."""
    return astuple(_current_case.get())


class CaseContextFilter(logging.Filter):
    """Copy the running case onto each record.

    Sets case_id, input_file, codec_name and mode, plus case_tag
    (e.g. "[C003:sync] ") for the text format. Never drops a record.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        info = _current_case.get()
        record.case_id = info.case_id
        record.input_file = info.input_file
        record.codec_name = info.codec_name
        record.mode = info.mode
        record.case_tag = info.tag
        return True
