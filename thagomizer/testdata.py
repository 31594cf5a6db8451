from __future__ import annotations

import csv
import logging
import re
from pathlib import Path
from typing import Iterator, Sequence

from .errors import TestDataError

log = logging.getLogger("thagomizer.tests")
_PLACEHOLDER_RE = re.compile(r"%(\d+)%")


def load_tests(path: str | Path) -> list[list[str]]:
    """Load CSV test rows. Blank lines are skipped."""
    try:
        with open(path, newline="", encoding="utf-8") as f:
            rows = [row for row in csv.reader(f) if row]
    except OSError as e:
        raise TestDataError(f"cannot read test data {path}: {e}") from e
    except csv.Error as e:
        raise TestDataError(f"malformed test data {path}: {e}") from e

    log.info("Loaded %d tests", len(rows))
    return rows


class TestCycle:
    """Hands out test rows round-robin, starting after `skip` rows."""

    def __init__(self, rows: Sequence[Sequence[str]], skip: int = 0):
        self.rows = [list(r) for r in rows]
        self.counter = int(skip)

    def next(self) -> list[str]:
        if not self.rows:
            return []
        row = self.rows[self.counter % len(self.rows)]
        self.counter += 1
        return row

    def __iter__(self) -> Iterator[list[str]]:
        while True:
            yield self.next()


def substitute(template: str, row: Sequence[str]) -> str:
    """Replace %0%, %1%, ... with the matching column of the test row."""

    def lookup(m: re.Match) -> str:
        i = int(m.group(1))
        return row[i] if i < len(row) else m.group(0)

    return _PLACEHOLDER_RE.sub(lookup, template)
