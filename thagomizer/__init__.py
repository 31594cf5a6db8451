"""Repeatable Apache Bench runs with CSV results."""

__version__ = "0.3.0"
