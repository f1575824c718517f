"""
Tests for CacheAdapter: error absorption and timed runs.
"""

import threading

import pytest

from cachebench.backends import CacheAdapter, InMemoryClient, warmup_count
from cachebench.exceptions import OperationError
from tests.mocks import FailingClient, FlakyClient


class TestWarmupCount:
    @pytest.mark.parametrize("iterations,expected", [
        (1, 1),
        (10, 1),
        (11, 2),
        (100, 10),
        (1000, 100),
        (5000, 100),
    ])
    def test_tenth_capped(self, iterations, expected):
        assert warmup_count(iterations) == expected

    def test_custom_cap(self):
        assert warmup_count(1000, cap=5) == 5

    def test_zero_cap_disables(self):
        assert warmup_count(1000, cap=0) == 0


class TestDataPlane:
    def test_set_get_round_trip(self, memory_adapter):
        assert memory_adapter.set("k", "v") is True
        assert memory_adapter.get("k") == "v"
        assert memory_adapter.exists("k") is True
        assert memory_adapter.delete("k") is True
        assert memory_adapter.get("k") is None
        assert memory_adapter.error_count() == 0

    def test_bulk(self, memory_adapter):
        assert memory_adapter.bulk_set({"a": "1", "b": "2"}) is True
        assert memory_adapter.bulk_get(["a", "b", "missing"]) == {"a": "1", "b": "2"}

    def test_flush_ping_info(self, memory_adapter):
        memory_adapter.set("k", "v")
        assert memory_adapter.flush_all() is True
        assert memory_adapter.get("k") is None
        assert memory_adapter.ping() is True
        assert memory_adapter.backend_info()["keys"] == 0

    def test_name_from_client(self, memory_adapter):
        assert memory_adapter.name == "Redis"


class TestFailureAbsorption:
    """Every data-plane call on a broken client returns a fallback and counts."""

    def test_fallback_values(self):
        adapter = CacheAdapter(FailingClient())
        assert adapter.set("k", "v") is False
        assert adapter.get("k") is None
        assert adapter.delete("k") is False
        assert adapter.exists("k") is False
        assert adapter.bulk_set({"a": "1"}) is False
        assert adapter.bulk_get(["a"]) == {}
        assert adapter.flush_all() is False
        assert adapter.ping() is False
        assert adapter.backend_info() == {}
        assert adapter.error_count() == 9

    def test_last_error(self):
        adapter = CacheAdapter(FailingClient("Broken"))
        assert adapter.last_error is None
        adapter.get("k")
        error = adapter.last_error
        assert isinstance(error, OperationError)
        assert error.backend == "Broken"
        assert error.operation == "get"
        assert "connection reset" in error.reason

    def test_call_outcome(self):
        adapter = CacheAdapter(FailingClient())
        outcome = adapter.call("custom", lambda: 1 / 0, fallback=-1)
        assert not outcome.ok
        assert outcome.value == -1
        assert outcome.error.context["exception_type"] == "ZeroDivisionError"

        ok = CacheAdapter(InMemoryClient()).call("custom", lambda: 7)
        assert ok.ok and ok.value == 7

    def test_reset(self):
        adapter = CacheAdapter(FailingClient())
        adapter.get("k")
        adapter.reset_error_count()
        assert adapter.error_count() == 0
        assert adapter.last_error is None

    def test_counter_is_thread_safe(self):
        adapter = CacheAdapter(FailingClient())

        def hammer():
            for _ in range(200):
                adapter.get("k")

        threads = [threading.Thread(target=hammer) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert adapter.error_count() == 1600

    def test_close_never_raises(self):
        class ExplodingClose(FailingClient):
            def close(self):
                raise RuntimeError("already closed")

        CacheAdapter(ExplodingClose()).close()


class TestTimedRun:
    def test_warmup_then_timed_calls(self, memory_adapter):
        calls = []
        result = memory_adapter.timed_run("NOOP", lambda: calls.append(1), 100)
        # 10 warmup + 100 timed
        assert len(calls) == 110
        assert result.iterations == 100

    def test_warmup_respects_cap(self):
        adapter = CacheAdapter(InMemoryClient(), warmup_cap=3)
        calls = []
        adapter.timed_run("NOOP", lambda: calls.append(1), 100)
        assert len(calls) == 103

    def test_result_invariants(self, memory_adapter):
        result = memory_adapter.timed_run(
            "SET", lambda: memory_adapter.set("k", "v"), 50, metadata={"value_size": 1}
        )
        assert result.operation == "SET"
        assert result.backend == "Redis"
        assert result.min_ms <= result.average_ms <= result.max_ms
        assert result.min_ms <= result.p50_ms <= result.p95_ms <= result.p99_ms <= result.max_ms
        assert result.total_time_ms >= 0
        assert result.throughput >= 0
        assert result.errors == 0
        assert set(result.percentiles) == {50, 95, 99}
        assert result.metadata == {"value_size": 1}

    def test_counts_errors_from_warmup_and_timed_phase(self):
        adapter = CacheAdapter(FailingClient())
        result = adapter.timed_run("GET", lambda: adapter.get("k"), 20)
        # 2 warmup + 20 timed
        assert result.errors == 22

    def test_error_count_resets_per_run(self):
        client = FlakyClient(fail_every=2)
        adapter = CacheAdapter(client)
        adapter.set("a", "1")
        adapter.set("b", "2")
        assert adapter.error_count() == 1

        result = adapter.timed_run("SET", lambda: adapter.set("k", "v"), 10)
        # calls 3..13 of which the even ones fail; the counter starts from zero
        assert client.set_calls == 13
        assert result.errors == 5

    @pytest.mark.parametrize("count", [0, -5])
    def test_rejects_non_positive_iterations(self, memory_adapter, count):
        with pytest.raises(ValueError):
            memory_adapter.timed_run("NOOP", lambda: None, count)

    def test_action_exceptions_propagate(self, memory_adapter):
        """Only adapter calls are guarded; a raw action failure aborts the run."""
        def boom():
            raise RuntimeError("bad action")

        with pytest.raises(RuntimeError):
            memory_adapter.timed_run("NOOP", boom, 5)


class TestTimedConcurrentRun:
    def test_partitions_all_iterations(self, memory_adapter):
        lock = threading.Lock()
        calls = []

        def action():
            with lock:
                calls.append(threading.get_ident())

        result = memory_adapter.timed_concurrent_run("CONCURRENT", action, 103, workers=10)
        assert len(calls) == 103
        assert result.iterations == 103
        assert result.metadata["workers"] == 10

    def test_more_workers_than_iterations(self, memory_adapter):
        result = memory_adapter.timed_concurrent_run("CONCURRENT", lambda: None, 3, workers=8)
        assert result.iterations == 3

    def test_metadata_merged(self, memory_adapter):
        result = memory_adapter.timed_concurrent_run(
            "CONCURRENT", lambda: None, 10, workers=2, metadata={"concurrency": 2}
        )
        assert result.metadata == {"workers": 2, "concurrency": 2}

    def test_invariants(self, memory_adapter):
        result = memory_adapter.timed_concurrent_run(
            "CONCURRENT", lambda: memory_adapter.set("k", "v"), 200, workers=5
        )
        assert result.min_ms <= result.average_ms <= result.max_ms
        assert result.p50_ms <= result.p95_ms <= result.p99_ms
        assert result.errors == 0

    def test_counts_errors(self):
        adapter = CacheAdapter(FailingClient())
        result = adapter.timed_concurrent_run("CONCURRENT", lambda: adapter.set("k", "v"), 40, workers=4)
        assert result.errors == 40

    def test_rejects_bad_arguments(self, memory_adapter):
        with pytest.raises(ValueError):
            memory_adapter.timed_concurrent_run("X", lambda: None, 0, workers=2)
        with pytest.raises(ValueError):
            memory_adapter.timed_concurrent_run("X", lambda: None, 10, workers=0)
