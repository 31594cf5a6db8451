from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from contextlib import contextmanager
from typing import Iterator, Sequence

from .config import AB_BIN
from .errors import BenchmarkError

log = logging.getLogger("thagomizer.ab")


def build_args(
    clients: int,
    count: int,
    url: str,
    post_file: str | None = None,
    post_type: str | None = None,
    headers: Sequence[str] = (),
) -> list[str]:
    """Build the ab argument list (without the binary itself)."""
    args: list[str] = []

    # Single client: verbose output so each response can be inspected
    if clients == 1:
        args += ["-v", "2"]
    if clients > 1:
        args += ["-c", str(clients)]
    if count > 1 or clients > 1:
        args += ["-n", str(clients * count)]

    if post_file is not None:
        args += ["-p", post_file]
        if post_type:
            args += ["-T", post_type]

    for h in headers:
        args += ["-H", h]

    args.append(url)
    return args


def format_command(binary: str, args: Sequence[str]) -> str:
    """Printable command line, for logs only."""
    parts = [binary]
    for arg in args:
        if " " in arg:
            arg = '"' + arg.replace('"', '\\"') + '"'
        parts.append(arg)
    return " ".join(parts)


@contextmanager
def post_file(data: str) -> Iterator[str]:
    """Write a POST body to a temporary file for `ab -p`."""
    fd, path = tempfile.mkstemp(prefix="thagomizer-", suffix=".post")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        yield path
    finally:
        try:
            os.unlink(path)
        except FileNotFoundError:
            pass


class AbRunner:
    """Runs the ab binary and hands back its stdout."""

    def __init__(self, binary: str = AB_BIN):
        self.binary = binary

    def run(self, args: Sequence[str]) -> str:
        log.info("Command: %s", format_command(self.binary, args))
        try:
            proc = subprocess.run(
                [self.binary, *args],
                capture_output=True,
                text=True,
                errors="replace",
            )
        except FileNotFoundError as e:
            raise BenchmarkError(f"{self.binary} not found, is Apache Bench installed?") from e
        except OSError as e:
            raise BenchmarkError(f"An error occurred while executing {self.binary}: {e}") from e

        if proc.returncode != 0:
            log.warning("%s exited with status %d: %s", self.binary, proc.returncode, (proc.stderr or "").strip())
        return proc.stdout or ""
