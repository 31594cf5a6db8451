import pytest

from thagomizer.abparse import ResultRow
from thagomizer.errors import OutputError
from thagomizer.metrics import ResultStore, build_store

from .fakes import FakeRedis

STAMP = "Mon, 19 Oct 2026 18:04:11 GMT"


def row(status="200", response=None, completed_failed=None):
    return ResultRow(STAMP, status, "0", "1", "1", "2", response, completed_failed, "")


def test_record_single_client_run():
    r = FakeRedis()
    store = ResultStore(r)
    store.record_run("http://x/", [row(response="valid"), row("500", "invalid"), row(None, "failed")])

    assert store.global_stats() == {
        "runs": 1,
        "requests": 3,
        "status:200": 1,
        "status:500": 1,
        "response:valid": 1,
        "response:invalid": 1,
        "response:failed": 1,
    }
    stats = store.url_stats("http://x/")
    assert stats.runs == 1
    assert stats.statuses == {"200": 1, "500": 1}
    assert stats.responses == {"valid": 1, "invalid": 1, "failed": 1}
    assert store.top_failed() == [{"url": "http://x/", "failed": 2}]


def test_record_concurrent_runs_counts_failed_requests():
    store = ResultStore(FakeRedis())
    store.record_run("http://a/", [row(None, completed_failed="40/3")])
    store.record_run("http://a/", [row(None, completed_failed="40/1")])
    store.record_run("http://b/", [row(None, completed_failed="40/0")])

    assert store.global_stats() == {"runs": 3, "requests": 3}
    assert store.url_stats("http://b/").runs == 1
    assert store.top_failed(5) == [{"url": "http://a/", "failed": 4}]


def test_url_stats_unknown():
    stats = ResultStore(FakeRedis()).url_stats("http://nothing/")
    assert (stats.runs, stats.requests, stats.statuses, stats.responses) == (0, 0, {}, {})


def test_build_store_disabled():
    assert build_store("") is None
    assert build_store(None) is None


def test_build_store_from_url():
    store = build_store("redis://localhost:6379/0")
    assert isinstance(store, ResultStore)


def test_summary_row_without_counts_counts_as_one_failure():
    store = ResultStore(FakeRedis())
    store.record_run("http://a/", [row(None)])
    assert store.top_failed() == [{"url": "http://a/", "failed": 1}]


def test_bad_redis_url():
    with pytest.raises(OutputError):
        build_store("localhost:6379")
