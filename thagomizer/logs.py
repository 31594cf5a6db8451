from __future__ import annotations

import logging

# Extra levels below DEBUG/INFO for very chatty output
SILLY = 5
VERBOSE = 15

LEVELS = {
    "silly": SILLY,
    "verbose": VERBOSE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "silent": logging.CRITICAL + 10,
}

logging.addLevelName(SILLY, "SILLY")
logging.addLevelName(VERBOSE, "VERBOSE")


def setup_logging(level: str = "info") -> None:
    """Configure the root logger once for the command line."""
    logging.basicConfig(
        level=LEVELS.get((level or "info").strip().lower(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )
