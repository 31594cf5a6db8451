from __future__ import annotations


class ThagomizerError(Exception):
    """Base class for errors reported to the command line."""


class TestDataError(ThagomizerError):
    pass


class OutputError(ThagomizerError):
    pass


class BenchmarkError(ThagomizerError):
    pass


class AbParseError(ThagomizerError):
    pass
