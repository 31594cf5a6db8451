from __future__ import annotations

import os
from datetime import datetime

APP_NAME = os.getenv("APP_NAME", "Thagomizer")

# Apache Bench binary, override when it is not on PATH
AB_BIN = os.getenv("THAGOMIZER_AB_BIN", "ab").strip() or "ab"

DEFAULT_POST_TYPE = os.getenv("THAGOMIZER_POST_TYPE", "application/x-www-form-urlencoded").strip()
DEFAULT_LOG_LEVEL = os.getenv("THAGOMIZER_LOG_LEVEL", "info").strip().lower()  # silly | verbose | debug | info | warn | error | silent

# Optional Redis results store (empty = disabled)
REDIS_URL = os.getenv("THAGOMIZER_REDIS_URL", "").strip()

MAX_TRIES = int(os.getenv("THAGOMIZER_MAX_TRIES", "10000"))

CSV_HEADER = [
    "timestamp",
    "status",
    "connect",
    "processing",
    "waiting",
    "total",
    "response",
    "completed/failed",
    "test",
]

# Same shape as the HTTP Date header ab echoes back, e.g. "Mon, 19 Oct 2026 18:04:11 GMT"
TIMESTAMP_FORMAT = "%a, {day} %b %Y %H:%M:%S GMT"

# Headers are passed on the command line separated by a literal backslash-n
HEADER_SEPARATOR = "\\n"


def parse_headers(raw: str | None) -> list[str]:
    r"""Parse --headers: 'Accept: a\nX-Token: b' -> ["Accept: a", "X-Token: b"]."""
    headers: list[str] = []
    if not raw:
        return headers
    for item in raw.split(HEADER_SEPARATOR):
        item = item.strip()
        if item:
            headers.append(item)
    return headers


def parse_until(raw: str | None) -> datetime | None:
    """Parse --until as an ISO-8601 date or date/time.

    Naive values are taken as local time. Raises ValueError on anything else.
    """
    if raw is None:
        return None
    raw = raw.strip()
    if not raw:
        return None
    until = datetime.fromisoformat(raw)
    if until.tzinfo is None:
        until = until.astimezone()
    return until


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT.replace("{day}", str(moment.day)))
