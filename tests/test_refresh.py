"""Tests for the refresh policy: TTL, single leader, failure tolerance."""
import asyncio
import threading

import pytest

from core.cache import CacheStore
from core.refresh import RefreshCoordinator

from conftest import FEED_URL, FakeFetcher


@pytest.mark.asyncio
async def test_first_call_fetches_and_commits(make_service, sample_items):
    fetcher = FakeFetcher(sample_items)
    service = make_service(fetcher)

    await service.ensure_fresh()

    state = service.state()
    assert fetcher.calls == 1
    assert fetcher.urls == [FEED_URL]
    assert list(state.snapshot.items) == sample_items
    assert state.last_success_at == 1000.0
    assert state.refresh_in_flight is False


@pytest.mark.asyncio
@pytest.mark.parametrize("ttl", [1, 60, 300, 3600])
async def test_calls_within_ttl_fetch_once(make_service, clock, sample_items, ttl):
    fetcher = FakeFetcher(sample_items)
    service = make_service(fetcher, ttl=ttl)

    await service.ensure_fresh()
    clock.advance(ttl * 0.99)
    await service.ensure_fresh()

    assert fetcher.calls == 1


@pytest.mark.asyncio
async def test_refreshes_once_ttl_has_elapsed(make_service, clock, sample_items):
    fetcher = FakeFetcher(sample_items, sample_items[:1])
    service = make_service(fetcher, ttl=300)

    await service.ensure_fresh()
    clock.advance(300)
    await service.ensure_fresh()

    assert fetcher.calls == 2
    assert len(service.state().snapshot) == 1
    assert service.state().last_success_at == 1300.0


@pytest.mark.asyncio
async def test_always_failing_fetcher_never_yields_a_snapshot(make_service, clock, failure):
    fetcher = FakeFetcher(failure)
    service = make_service(fetcher)

    for _ in range(3):
        await service.ensure_fresh()
        clock.advance(1)

    state = service.state()
    assert fetcher.calls == 3
    assert state.last_success_at is None
    assert state.refresh_in_flight is False
    assert "connection refused" in state.last_error
    assert not service.latest(5).available
    assert not service.search("go").available


@pytest.mark.asyncio
async def test_failure_after_success_keeps_serving_stale_snapshot(
        make_service, clock, sample_items, failure):
    fetcher = FakeFetcher(sample_items, failure)
    service = make_service(fetcher, ttl=300)
    await service.ensure_fresh()

    for _ in range(3):
        clock.advance(400)
        await service.ensure_fresh()

    state = service.state()
    assert fetcher.calls == 4
    assert state.last_success_at == 1000.0
    assert [i.title for i in service.latest(5).unwrap()] == ["Rust 2.0", "Go tools"]


@pytest.mark.asyncio
async def test_unexpected_fetcher_error_is_absorbed(make_service):
    service = make_service(FakeFetcher(KeyError("title")))

    await service.ensure_fresh()

    assert service.state().refresh_in_flight is False
    assert service.state().snapshot is None


@pytest.mark.asyncio
async def test_concurrent_callers_elect_one_leader(make_service, sample_items):
    fetcher = FakeFetcher(sample_items, gate=asyncio.Event())
    service = make_service(fetcher)

    tasks = [asyncio.create_task(service.ensure_fresh()) for _ in range(10)]
    await asyncio.sleep(0)

    # Nine followers returned without waiting; the leader is still fetching.
    assert fetcher.calls == 1
    assert sum(task.done() for task in tasks) == 9
    assert service.state().refresh_in_flight is True
    assert service.state().snapshot is None

    fetcher.gate.set()
    await asyncio.gather(*tasks)

    assert fetcher.calls == 1
    assert service.state().refresh_in_flight is False
    assert len(service.state().snapshot) == 2


@pytest.mark.asyncio
async def test_cold_start_reports_unavailable_while_fetch_in_flight(make_service, sample_items):
    fetcher = FakeFetcher(sample_items, gate=asyncio.Event())
    service = make_service(fetcher)

    leader = asyncio.create_task(service.ensure_fresh())
    await asyncio.sleep(0)
    await service.ensure_fresh()

    assert not service.latest().available

    fetcher.gate.set()
    await leader
    assert service.latest().available


@pytest.mark.asyncio
async def test_stale_snapshot_served_while_refresh_in_flight(
        make_service, clock, sample_items):
    gate = asyncio.Event()
    gate.set()
    fetcher = FakeFetcher(sample_items, sample_items[1:], gate=gate)
    service = make_service(fetcher, ttl=300)
    await service.ensure_fresh()

    clock.advance(301)
    gate.clear()
    leader = asyncio.create_task(service.ensure_fresh())
    await asyncio.sleep(0)
    await service.ensure_fresh()

    assert fetcher.calls == 2
    assert len(service.latest(10).unwrap()) == 2

    gate.set()
    await leader
    assert [i.title for i in service.latest(10).unwrap()] == ["Go tools"]


@pytest.mark.asyncio
async def test_cancelled_leader_releases_the_flag(make_service, sample_items):
    fetcher = FakeFetcher(sample_items, gate=asyncio.Event())
    service = make_service(fetcher)

    leader = asyncio.create_task(service.ensure_fresh())
    await asyncio.sleep(0)
    leader.cancel()
    with pytest.raises(asyncio.CancelledError):
        await leader

    assert service.state().refresh_in_flight is False
    fetcher.gate.set()
    await service.ensure_fresh()
    assert fetcher.calls == 2


def test_negative_ttl_is_rejected(sample_items):
    with pytest.raises(ValueError):
        RefreshCoordinator(CacheStore(), FakeFetcher(sample_items), FEED_URL, ttl=-1)


@pytest.mark.asyncio
async def test_result_failing_mid_iteration_is_absorbed(make_service, clock, sample_items):
    def broken_entries():
        yield sample_items[0]
        raise ValueError("entry mapping failed")

    outcomes = [broken_entries(), sample_items]

    async def fetcher(url):
        return outcomes.pop(0)

    service = make_service(fetcher)

    await service.ensure_fresh()

    state = service.state()
    assert state.refresh_in_flight is False
    assert state.snapshot is None
    assert "entry mapping failed" in state.last_error

    clock.advance(1)
    await service.ensure_fresh()
    assert len(service.state().snapshot) == 2


@pytest.mark.asyncio
async def test_none_result_is_absorbed(make_service):
    async def fetcher(url):
        return None

    service = make_service(fetcher)

    await service.ensure_fresh()

    assert service.state().refresh_in_flight is False
    assert service.state().snapshot is None


class ThreadGatedFetcher:
    """Blocks in a worker thread until released; safe to call from many loops."""

    def __init__(self, items):
        self.items = items
        self.calls = 0
        self.started = threading.Event()
        self.release = threading.Event()
        self._lock = threading.Lock()

    async def __call__(self, url):
        with self._lock:
            self.calls += 1
        self.started.set()
        await asyncio.to_thread(self.release.wait, 5)
        return self.items


def test_threads_with_their_own_loops_elect_one_leader(make_service, sample_items):
    fetcher = ThreadGatedFetcher(sample_items)
    service = make_service(fetcher)
    barrier = threading.Barrier(8)
    errors = []

    def worker():
        barrier.wait()
        try:
            asyncio.run(service.ensure_fresh())
        except Exception as exc:
            errors.append(exc)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()

    assert fetcher.started.wait(5)
    assert service.state().refresh_in_flight is True

    fetcher.release.set()
    for thread in threads:
        thread.join(5)

    assert not any(thread.is_alive() for thread in threads)
    assert errors == []
    assert fetcher.calls == 1
    assert service.state().refresh_in_flight is False
    assert len(service.state().snapshot) == 2
