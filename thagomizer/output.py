from __future__ import annotations

import csv
import logging
import os
from pathlib import Path
from typing import Iterable

from .abparse import ResultRow
from .config import CSV_HEADER
from .errors import OutputError

log = logging.getLogger("thagomizer.output")


class CsvOutput:
    """Appends result rows to a CSV file.

    The header is written only when the file is new (or empty), so several
    runs can share one results file.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        try:
            is_new = not self.path.exists() or self.path.stat().st_size == 0
            self._file = open(self.path, "a", newline="", encoding="utf-8")
        except OSError as e:
            raise OutputError(f"cannot open output {self.path}: {e}") from e
        self._writer = csv.writer(self._file)
        if is_new:
            self._writer.writerow(CSV_HEADER)
            self._file.flush()
        log.info("Saving results to: %s", self.path)

    def write(self, rows: Iterable[ResultRow]) -> None:
        try:
            self._writer.writerows(row.as_list() for row in rows)
            self._file.flush()
            os.fsync(self._file.fileno())
        except OSError as e:
            raise OutputError(f"cannot write to {self.path}: {e}") from e

    def close(self) -> None:
        if not self._file.closed:
            self._file.close()

    def __enter__(self) -> "CsvOutput":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
