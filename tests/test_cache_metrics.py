"""Unit tests for the result cache, single-flight registry and metrics buffer."""

import asyncio

import pytest

from fit_vton.models import (
    FabricPhysicsData,
    ProcessingMetrics,
    TryOnMetadata,
    TryOnRequest,
    TryOnResult,
)
from fit_vton.services import MetricsRecorder, ResultCache, SingleFlight, fingerprint, performance_score


def make_result(confidence: float = 0.8) -> TryOnResult:
    return TryOnResult(
        result_image="data:image/png;base64,AAAA",
        confidence=confidence,
        processing_time=12.0,
        metadata=TryOnMetadata(
            body_detected=True,
            garment_fit_score=0.7,
            recommendations=["a", "b"],
            fabric_physics=FabricPhysicsData(
                drape_coefficient=0.6, stretch_factor=0.2, wrinkle_intensity=0.4,
                shine_factor=0.3, breathability=0.7,
            ),
            texture_quality=0.5,
        ),
    )


def make_request(**overrides) -> TryOnRequest:
    payload = {
        "userImage": "A" * 500,
        "garmentImage": "B" * 500,
        "garmentType": "top",
        "userId": "user-1",
    }
    payload.update(overrides)
    return TryOnRequest.build(payload)


class TestFingerprint:

    def test_deterministic(self):
        assert fingerprint(make_request()) == fingerprint(make_request())

    def test_full_payload_is_hashed(self):
        """Images sharing a long common prefix still get distinct keys."""
        a = make_request(userImage="A" * 500 + "x")
        b = make_request(userImage="A" * 500 + "y")
        assert fingerprint(a) != fingerprint(b)

    @pytest.mark.parametrize("field,value", [
        ("userId", "user-2"),
        ("garmentType", "dress"),
        ("garmentImage", "C" * 500),
    ])
    def test_identity_fields(self, field, value):
        assert fingerprint(make_request(**{field: value})) != fingerprint(make_request())

    def test_auto_delete_not_part_of_identity(self):
        assert fingerprint(make_request(autoDelete=False)) == fingerprint(make_request(autoDelete=True))


class TestResultCache:

    def test_returns_same_object(self):
        cache = ResultCache()
        result = make_result()
        cache.put("k", result)
        assert cache.get("k") is result
        assert cache.hits == 1

    def test_miss(self):
        cache = ResultCache()
        assert cache.get("missing") is None
        assert cache.misses == 1

    def test_lru_eviction(self):
        cache = ResultCache(max_entries=2)
        cache.put("a", make_result())
        cache.put("b", make_result())
        cache.get("a")  # a becomes most recent
        cache.put("c", make_result())

        assert "a" in cache
        assert "b" not in cache
        assert "c" in cache
        assert len(cache) == 2

    def test_ttl_expiry(self):
        now = [1000.0]
        cache = ResultCache(ttl_s=10, clock=lambda: now[0])
        cache.put("k", make_result())

        now[0] += 5
        assert cache.get("k") is not None
        now[0] += 6
        assert cache.get("k") is None
        assert len(cache) == 0

    def test_clear(self):
        cache = ResultCache()
        cache.put("k", make_result())
        cache.clear()
        assert len(cache) == 0

    def test_rejects_zero_capacity(self):
        with pytest.raises(ValueError):
            ResultCache(max_entries=0)


class TestSingleFlight:

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_one_computation(self):
        flight: SingleFlight[int] = SingleFlight()
        calls = 0
        gate = asyncio.Event()

        async def compute():
            nonlocal calls
            calls += 1
            await gate.wait()
            return 42

        first = asyncio.create_task(flight.run("k", compute))
        second = asyncio.create_task(flight.run("k", compute))
        await asyncio.sleep(0)
        assert flight.in_flight("k")
        gate.set()

        results = await asyncio.gather(first, second)

        assert calls == 1
        assert sorted(results, key=lambda r: r[1]) == [(42, False), (42, True)]
        assert not flight.in_flight("k")

    @pytest.mark.asyncio
    async def test_failure_propagates_to_waiters(self):
        flight: SingleFlight[int] = SingleFlight()
        gate = asyncio.Event()

        async def compute():
            await gate.wait()
            raise RuntimeError("boom")

        first = asyncio.create_task(flight.run("k", compute))
        second = asyncio.create_task(flight.run("k", compute))
        await asyncio.sleep(0)
        gate.set()

        outcomes = await asyncio.gather(first, second, return_exceptions=True)
        assert all(isinstance(o, RuntimeError) for o in outcomes)
        assert not flight.in_flight("k")

    @pytest.mark.asyncio
    async def test_cancelled_owner_does_not_cancel_waiters(self):
        """A waiter whose computing caller is cancelled recomputes instead of failing."""
        flight: SingleFlight[int] = SingleFlight()
        calls = 0
        gate = asyncio.Event()

        async def compute():
            nonlocal calls
            calls += 1
            await gate.wait()
            return 42

        owner = asyncio.create_task(flight.run("k", compute))
        waiter = asyncio.create_task(flight.run("k", compute))
        await asyncio.sleep(0)

        owner.cancel()
        gate.set()

        assert await waiter == (42, True)
        with pytest.raises(asyncio.CancelledError):
            await owner
        assert calls == 2
        assert not flight.in_flight("k")

    @pytest.mark.asyncio
    async def test_cancelled_waiter_leaves_owner_running(self):
        flight: SingleFlight[int] = SingleFlight()
        gate = asyncio.Event()

        async def compute():
            await gate.wait()
            return 7

        owner = asyncio.create_task(flight.run("k", compute))
        waiter = asyncio.create_task(flight.run("k", compute))
        await asyncio.sleep(0)

        waiter.cancel()
        with pytest.raises(asyncio.CancelledError):
            await waiter
        gate.set()

        assert await owner == (7, True)


class TestMetricsRecorder:

    def test_ring_buffer_evicts_oldest(self):
        recorder = MetricsRecorder(capacity=1000)
        for i in range(1001):
            recorder.record(ProcessingMetrics(start_time=i, end_time=i + 1, success=True))

        records = recorder.records()
        assert len(records) == 1000
        assert records[0].start_time == 1
        assert all(r.start_time != 0 for r in records)

    def test_summary(self):
        recorder = MetricsRecorder(summary_window=100)
        recorder.record(ProcessingMetrics(start_time=0, end_time=1, success=True, performance_score=0.8))
        recorder.record(ProcessingMetrics(
            start_time=0, end_time=3, success=False, error_type="NO_BODY_DETECTED",
        ))

        summary = recorder.summary(cache_hits=2, cache_size=1)

        assert summary.success_rate == pytest.approx(0.5)
        assert summary.avg_processing_time == pytest.approx(2000)
        assert summary.avg_performance_score == pytest.approx(0.4)
        assert summary.total_sessions == 2
        assert summary.cache_hit_rate == pytest.approx(0.5)
        assert summary.error_counts == {"NO_BODY_DETECTED": 1}

    def test_empty_summary(self):
        summary = MetricsRecorder().summary(cache_size=3)
        assert summary.total_sessions == 0
        assert summary.cache_size == 3

    @pytest.mark.parametrize("ms,confidence,expected", [
        (0, 1.0, 1.0),
        (2500, 0.5, 0.5),
        (10_000, 0.6, 0.3),
    ])
    def test_performance_score(self, ms, confidence, expected):
        assert performance_score(ms, confidence) == pytest.approx(expected)
