"""CSV statistics sink.

One sink is opened per run; every attempted track appends one row.
"""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from types import TracebackType
from typing import Any, TextIO

from tcbench.domain import StatisticsRecord

logger = logging.getLogger(__name__)


class StatisticsSink:
    """Append-only CSV file of StatisticsRecord rows.

    Rows are flushed as they are written so a crashed run keeps the rows
    of the cases that completed. Single writer; no locking.

    Usage:
        with StatisticsSink(Path("Encoder.csv")) as sink:
            sink.write_header()
            encoder.dump_statistics(..., sink)
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.records: list[StatisticsRecord] = []
        self._file: TextIO | None = None
        self._writer: Any = None

    def open(self) -> None:
        """Create (or truncate) the statistics file."""
        if self._file is not None:
            return
        self._file = open(self.path, "w", newline="", encoding="utf-8")
        self._writer = csv.writer(self._file)
        logger.debug("Writing statistics to %s", self.path)

    def write_header(self) -> None:
        """Write the column header row."""
        self._write(StatisticsRecord.columns())

    def append(self, record: StatisticsRecord) -> None:
        """Write one record and keep it in memory."""
        self._write(record.as_row())
        self.records.append(record)

    def _write(self, row: list[Any]) -> None:
        if self._file is None:
            self.open()
        assert self._writer is not None and self._file is not None
        self._writer.writerow(row)
        self._file.flush()

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
        self._file = None
        self._writer = None

    def __enter__(self) -> StatisticsSink:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()
