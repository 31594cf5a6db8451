from __future__ import annotations

import logging
import re
from dataclasses import astuple, dataclass
from datetime import datetime, timezone
from typing import Sequence

from .config import format_timestamp
from .errors import AbParseError
from .logs import SILLY

match_log = logging.getLogger("thagomizer.match")

_TIMING_RE = {
    name: re.compile(rf"\n{label}:\s+\d+\s+(\d+)\s")
    for name, label in (
        ("connect", "Connect"),
        ("processing", "Processing"),
        ("waiting", "Waiting"),
        ("total", "Total"),
    )
}
_COMPLETE_RE = re.compile(r"\nComplete requests:\s+(\d+)")
_FAILED_RE = re.compile(r"\nFailed requests:\s+(\d+)")
_DATE_RE = re.compile(r"\nDate: (.+)")
_STATUS_RE = re.compile(r"\nHTTP/1\.1 (\d{3}) ", re.M)

# One response block in `ab -v 2` output: status line, headers, blank line.
_RESPONSE_BLOCK = r"\nHTTP/1\.1 \d{3} .+(?:.|\n|\r)+?(\r\n|\n){2}"


@dataclass
class Timing:
    """Mean connection times (ms) from ab's "Connection Times" table."""

    connect: str | None = None
    processing: str | None = None
    waiting: str | None = None
    total: str | None = None


@dataclass
class ResultRow:
    timestamp: str
    status: str | None
    connect: str | None
    processing: str | None
    waiting: str | None
    total: str | None
    response: str | None
    completed_failed: str | None
    test: str

    @property
    def failed_requests(self) -> int:
        """Failed requests this row stands for (ab summary rows carry a count)."""
        if self.completed_failed:
            return int(self.completed_failed.split("/", 1)[1])
        if self.status is None or self.response in ("failed", "invalid"):
            return 1
        return 0

    def as_list(self) -> list[str | None]:
        return list(astuple(self))

    def __str__(self) -> str:
        return ",".join("" if v is None else str(v) for v in astuple(self))


def adjust_newlines(pattern: str) -> str:
    r"""Let a literal \n in a user pattern match both LF and CRLF."""
    return pattern.replace("\\n", "(?:\r\n|\n)")


def parse_timing(output: str) -> Timing:
    values = {}
    for name, regex in _TIMING_RE.items():
        m = regex.search(output)
        values[name] = m.group(1) if m else None
    return Timing(**values)


def _compile(pattern: str, flags: int = 0) -> re.Pattern:
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        raise AbParseError(f"invalid regular expression {pattern!r}: {e}") from e


def _row(timestamp: str, timing: Timing, test: str, status=None, response=None, completed_failed=None) -> ResultRow:
    return ResultRow(
        timestamp=timestamp,
        status=status,
        connect=timing.connect,
        processing=timing.processing,
        waiting=timing.waiting,
        total=timing.total,
        response=response,
        completed_failed=completed_failed,
        test=test,
    )


def parse_output(
    output: str,
    clients: int,
    count: int,
    test: Sequence[str] = (),
    expect: str | None = None,
    valid: str | None = None,
    now: datetime | None = None,
) -> list[ResultRow]:
    """Turn ab stdout into result rows.

    Concurrency runs (clients > 1) yield a single summary row. Single client
    runs yield one row per response block found in the verbose output, padded
    with failure rows up to clients * count.
    """
    now = now or datetime.now(timezone.utc)
    stamp = format_timestamp(now.astimezone(timezone.utc))
    timing = parse_timing(output)
    joined = "|".join(test)

    if clients > 1:
        complete = _COMPLETE_RE.search(output)
        failed = _FAILED_RE.search(output)
        completed_failed = f"{complete.group(1)}/{failed.group(1)}" if complete and failed else None
        return [_row(stamp, timing, joined, completed_failed=completed_failed)]

    content = adjust_newlines(expect or "")
    block_re = _compile(_RESPONSE_BLOCK + content, re.M)
    response_re = _compile(f"({content})", re.M)
    valid_re = _compile(adjust_newlines(valid), re.M) if valid else None

    rows: list[ResultRow] = []
    for i, m in enumerate(block_re.finditer(output)):
        block = m.group(0)
        match_log.log(SILLY, "match %d: %s", i, block.strip())

        date = _DATE_RE.search(block)
        status = _STATUS_RE.search(block)

        response = None
        captured = response_re.search(block)
        if captured and captured.group(1) and valid_re is not None:
            response = "valid" if valid_re.search(captured.group(1)) else "invalid"

        rows.append(
            _row(
                date.group(1).strip() if date else stamp,
                timing,
                joined,
                status=status.group(1) if status else None,
                response=response,
            )
        )

    expected = clients * count
    while len(rows) < expected:
        rows.append(_row(stamp, timing, joined, response="failed" if valid else None))

    return rows
