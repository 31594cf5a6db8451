from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable

from redis import Redis
from redis.exceptions import RedisError

from .abparse import ResultRow
from .errors import OutputError


@dataclass
class RunStats:
    runs: int = 0
    requests: int = 0
    statuses: dict[str, int] = field(default_factory=dict)
    responses: dict[str, int] = field(default_factory=dict)


class ResultStore:
    """Keeps running benchmark counters in Redis.

    - Global: thagomizer:global (hash)
    - Per URL: thagomizer:url:{url} (hash)
    - URLs with most failed requests: thagomizer:top_failed (sorted set)
    """

    GLOBAL_KEY = "thagomizer:global"
    TOP_FAILED_ZSET = "thagomizer:top_failed"

    def __init__(self, r: Redis):
        self.r = r

    def _url_key(self, url: str) -> str:
        return f"thagomizer:url:{url}"

    def record_run(self, url: str, rows: Iterable[ResultRow]) -> None:
        rows = list(rows)
        counters: dict[str, int] = {"runs": 1, "requests": len(rows)}
        failed = 0
        for row in rows:
            if row.status is not None:
                k = f"status:{row.status}"
                counters[k] = counters.get(k, 0) + 1
            if row.response is not None:
                k = f"response:{row.response}"
                counters[k] = counters.get(k, 0) + 1
            failed += row.failed_requests

        pipe = self.r.pipeline()
        for k, v in counters.items():
            pipe.hincrby(self.GLOBAL_KEY, k, v)
            pipe.hincrby(self._url_key(url), k, v)
        if failed:
            pipe.zincrby(self.TOP_FAILED_ZSET, failed, url)
        try:
            pipe.execute()
        except RedisError as e:
            raise OutputError(f"cannot record results in redis: {e}") from e

    def _hgetall(self, key: str) -> dict[str, Any]:
        try:
            return self.r.hgetall(key) or {}
        except RedisError as e:
            raise OutputError(f"cannot read results from redis: {e}") from e

    def global_stats(self) -> dict[str, int]:
        data = self._hgetall(self.GLOBAL_KEY)
        return {k: int(v) for k, v in data.items()}

    def url_stats(self, url: str) -> RunStats:
        data = self._hgetall(self._url_key(url))
        stats = RunStats(
            runs=int(data.get("runs", 0)),
            requests=int(data.get("requests", 0)),
        )
        for k, v in data.items():
            if k.startswith("status:"):
                stats.statuses[k.split(":", 1)[1]] = int(v)
            elif k.startswith("response:"):
                stats.responses[k.split(":", 1)[1]] = int(v)
        return stats

    def top_failed(self, n: int = 10) -> list[dict[str, Any]]:
        # Returns list of {url, failed}
        try:
            raw = self.r.zrevrange(self.TOP_FAILED_ZSET, 0, max(0, n - 1), withscores=True)
        except RedisError as e:
            raise OutputError(f"cannot read results from redis: {e}") from e
        return [{"url": url, "failed": int(score)} for url, score in raw]


def build_store(url: str | None) -> ResultStore | None:
    if not url:
        return None
    try:
        r = Redis.from_url(url, decode_responses=True)
    except ValueError as e:
        raise OutputError(f"invalid redis url {url!r}: {e}") from e
    return ResultStore(r)
