from __future__ import annotations

import argparse
import logging
import sys
from dataclasses import dataclass, field
from datetime import datetime
from typing import Sequence

from .config import (
    AB_BIN,
    APP_NAME,
    DEFAULT_LOG_LEVEL,
    DEFAULT_POST_TYPE,
    MAX_TRIES,
    REDIS_URL,
    parse_headers,
    parse_until,
)
from .errors import ThagomizerError
from .logs import LEVELS, setup_logging
from .metrics import build_store
from .runner import Thagomizer

log = logging.getLogger("thagomizer.run")


@dataclass(frozen=True)
class Options:
    url: str
    clients: int = 1
    tries: int = 10
    delay: float = 0.0
    until: datetime | None = None
    post: str | None = None
    post_type: str = DEFAULT_POST_TYPE
    headers: list[str] = field(default_factory=list)
    tests: str | None = None
    skip: int = 0
    expect: str | None = None
    valid: str | None = None
    output: str | None = None
    redis_url: str = REDIS_URL
    ab_bin: str = AB_BIN
    log_level: str = DEFAULT_LOG_LEVEL


def _bounded_int(low: int, high: int | None = None):
    def convert(raw: str) -> int:
        try:
            value = int(raw)
        except ValueError:
            raise argparse.ArgumentTypeError(f"invalid number: {raw!r}")
        if value < low or (high is not None and value > high):
            bounds = f">= {low}" if high is None else f"between {low} and {high}"
            raise argparse.ArgumentTypeError(f"{value} must be {bounds}")
        return value

    return convert


def _delay(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid delay: {raw!r}")
    if value < 0:
        raise argparse.ArgumentTypeError("delay must be >= 0")
    return value


def _until(raw: str) -> datetime | None:
    try:
        return parse_until(raw)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {raw!r} (expected ISO-8601, e.g. 2026-10-19T18:00)")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="thagomizer", description=f"{APP_NAME}: repeatable Apache Bench runs with CSV results")
    p.add_argument("-c", "--clients", type=_bounded_int(1), default=1, help="The number of concurrent clients, defaults to 1")
    p.add_argument("-t", "--tries", type=_bounded_int(1, MAX_TRIES), default=10, help=f"The number of tries per client, defaults to 10, max {MAX_TRIES}")
    p.add_argument("-d", "--delay", type=_delay, default=0.0, help="Repeats the check after the delay in seconds, requires --until")
    p.add_argument("-u", "--until", type=_until, default=None, help="Halt the script when the time is reached")
    p.add_argument("--post", default=None, help="Content of the post request, placeholders for CSV input are in the form: %%index%%")
    p.add_argument("--post-type", default=DEFAULT_POST_TYPE, help="Content type of the data")
    p.add_argument("-U", "--url", required=True, help="The URL to hit, placeholders for CSV input are in the form: %%index%%")
    p.add_argument("--headers", default=None, help="Headers to send, separated by a literal \\n")
    p.add_argument("--tests", default=None, help="CSV file with test data")
    p.add_argument("--skip", type=_bounded_int(0), default=0, help="Number of tests to skip")
    p.add_argument("-e", "--expect", default=None, help="A RegExp to check the response against")
    p.add_argument("--valid", default=None, help="A RegExp to check if the response is valid")
    p.add_argument("-o", "--output", default=None, help="The output file")
    p.add_argument("--redis-url", default=REDIS_URL, help="Redis URL to keep running totals in (optional)")
    p.add_argument("--ab-bin", default=AB_BIN, help="The Apache Bench binary")
    p.add_argument("--log-level", default=DEFAULT_LOG_LEVEL, choices=sorted(LEVELS), help="The log level")
    return p


def parse_args(argv: Sequence[str] | None = None) -> Options:
    args = build_parser().parse_args(argv)
    return Options(
        url=args.url,
        clients=args.clients,
        tries=args.tries,
        delay=args.delay,
        until=args.until,
        post=args.post,
        post_type=args.post_type,
        headers=parse_headers(args.headers),
        tests=args.tests,
        skip=args.skip,
        expect=args.expect,
        valid=args.valid,
        output=args.output,
        redis_url=args.redis_url,
        ab_bin=args.ab_bin,
        log_level=args.log_level,
    )


def main(argv: Sequence[str] | None = None) -> int:
    opts = parse_args(argv)
    setup_logging(opts.log_level)

    if opts.delay and opts.until is None:
        log.warning("--delay has no effect without --until, running once")

    try:
        store = build_store(opts.redis_url)
        Thagomizer(opts, store=store).run()
    except ThagomizerError as e:
        log.error("An error occurred: %s", e)
        return 1
    except KeyboardInterrupt:
        log.warning("Interrupted")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
