"""Typed access to TCB_* environment variables."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class EnvReader:
    """Read environment variables with type conversion.

    Takes an optional mapping in place of os.environ so callers (and tests)
    can supply a fixed environment.

    Example:
        reader = EnvReader(env={"TCB_ASYNC_QUEUE_DEPTH": "4"})
        reader.get_int("TCB_ASYNC_QUEUE_DEPTH", 8)  # 4
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _read(
        self, var: str, default: T | None, convert: Callable[[str], T]
    ) -> T | None:
        raw = self._env.get(var)
        if raw is None:
            return default
        try:
            return convert(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid value", var, raw)
            return default

    def get_str(self, var: str, default: str | None = None) -> str | None:
        """Return the raw value; an empty string counts as set."""
        return self._read(var, default, str)

    def get_int(self, var: str, default: int | None = None) -> int | None:
        """Return the value as an int, or default if unset or malformed."""
        return self._read(var, default, int)

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """Return the value as a user-expanded Path.

        An empty value is treated as unset. Existence is checked later by
        validate_config().
        """
        if not self._env.get(var):
            return default
        return self._read(var, default, lambda raw: Path(raw).expanduser())
