from __future__ import annotations

import logging
import time
from contextlib import nullcontext
from typing import TYPE_CHECKING, Callable

from .ab import AbRunner, build_args, post_file
from .abparse import ResultRow, parse_output
from .errors import BenchmarkError
from .metrics import ResultStore
from .output import CsvOutput
from .testdata import TestCycle, load_tests, substitute

if TYPE_CHECKING:
    from .cli import Options

log = logging.getLogger("thagomizer.run")
result_log = logging.getLogger("thagomizer.ab-result")


class Thagomizer:
    """Runs ab for one set of command line options."""

    def __init__(
        self,
        options: Options,
        runner: AbRunner | None = None,
        store: ResultStore | None = None,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.options = options
        self.runner = runner or AbRunner(options.ab_bin)
        self.store = store
        self.clock = clock
        self.sleep = sleep
        self.tests = TestCycle([])
        self.output: CsvOutput | None = None

    def run(self) -> None:
        opts = self.options
        if opts.tests:
            log.info("Loading test data from: %s", opts.tests)
            self.tests = TestCycle(load_tests(opts.tests), skip=opts.skip)
        if opts.output:
            self.output = CsvOutput(opts.output)

        try:
            if opts.until is not None:
                self._repeat()
            else:
                self.run_once()
        finally:
            if self.output is not None:
                self.output.close()

        if self.store is not None:
            log.info("Totals: %s", self.store.global_stats())

    def _repeat(self) -> None:
        until = self.options.until
        delay = self.options.delay
        deadline = until.timestamp()

        log.info("Repeating the test until: %s", until.isoformat())
        while True:
            try:
                self.run_once()
            except BenchmarkError as e:
                log.error("An error occurred: %s", e)
                return

            log.info("Sleeping for %s seconds", delay)
            if self.clock() >= deadline:
                return
            self.sleep(delay)

    def run_once(self) -> list[ResultRow]:
        opts = self.options
        log.info("Running the test")

        test = self.tests.next()
        url = substitute(opts.url, test)
        post = substitute(opts.post, test) if opts.post is not None else None

        ctx = post_file(post) if post is not None else nullcontext()
        with ctx as path:
            args = build_args(
                opts.clients,
                opts.tries,
                url,
                post_file=path,
                post_type=opts.post_type,
                headers=opts.headers,
            )
            output = self.runner.run(args)

        rows = parse_output(
            output,
            opts.clients,
            opts.tries,
            test,
            expect=opts.expect,
            valid=opts.valid,
        )
        for row in rows:
            # padding rows stand in for responses ab never reported
            if opts.clients == 1 and row.status is None:
                result_log.error("Failed: %s", row)
            else:
                result_log.info("Result: %s", row)

        if self.output is not None:
            self.output.write(rows)
        if self.store is not None:
            self.store.record_run(url, rows)
        return rows
