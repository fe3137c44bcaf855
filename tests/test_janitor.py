import asyncio
import pytest
from datetime import timedelta
from janitor import Janitor
from session import SessionManager


@pytest.fixture
def lazy_sessions(store, registry):
    return SessionManager(store, registry, eager_deletion=False)


@pytest.fixture
def janitor(store):
    return Janitor(store, retention_seconds=3600, interval_seconds=0.01)


class TestSweep:
    def test_empty_room_kept_inside_retention_window(self, lazy_sessions, janitor, store, clock):
        created = clock.now
        lazy_sessions.join("A", "r1")
        lazy_sessions.leave("A", "r1")

        assert janitor.sweep(now=created + timedelta(seconds=3599)) == []
        assert "r1" in store

    def test_empty_room_swept_after_retention_window(self, lazy_sessions, janitor, store, clock):
        created = clock.now
        lazy_sessions.join("A", "r1")
        lazy_sessions.leave("A", "r1")

        assert janitor.sweep(now=created + timedelta(seconds=3601)) == ["r1"]
        assert "r1" not in store

    def test_occupied_room_is_never_swept(self, lazy_sessions, janitor, store, clock):
        lazy_sessions.join("A", "r1")
        clock.advance(10 * 3600)
        assert janitor.sweep() == []
        assert store.get("r1").members == ["A"]

    def test_age_is_measured_from_creation_not_last_activity(self, lazy_sessions, janitor, store, clock):
        lazy_sessions.join("A", "r1")
        clock.advance(2 * 3600)
        # recent activity, then emptied
        lazy_sessions.update_content("A", "r1", "late edit")
        lazy_sessions.leave("A", "r1")

        assert janitor.sweep() == ["r1"]

    def test_sweep_uses_store_clock_by_default(self, lazy_sessions, janitor, store, clock):
        lazy_sessions.join("A", "r1")
        lazy_sessions.leave("A", "r1")
        assert janitor.sweep() == []
        clock.advance(3601)
        assert janitor.sweep() == ["r1"]

    def test_sweep_only_removes_eligible_rooms(self, lazy_sessions, janitor, store, clock):
        lazy_sessions.join("A", "old")
        lazy_sessions.leave("A", "old")
        lazy_sessions.join("B", "busy")
        clock.advance(1800)
        lazy_sessions.join("C", "young")
        lazy_sessions.leave("C", "young")
        clock.advance(1801)

        assert janitor.sweep() == ["old"]
        assert sorted(room_id for room_id, _ in store.all()) == ["busy", "young"]


class TestJanitorTask:
    @pytest.mark.asyncio
    async def test_start_runs_periodic_sweeps(self, lazy_sessions, janitor, store, clock):
        lazy_sessions.join("A", "r1")
        lazy_sessions.leave("A", "r1")
        clock.advance(3601)

        janitor.start()
        assert janitor.running
        for _ in range(50):
            if "r1" not in store:
                break
            await asyncio.sleep(0.01)
        await janitor.stop()

        assert "r1" not in store
        assert not janitor.running

    @pytest.mark.asyncio
    async def test_start_twice_keeps_one_task(self, janitor):
        janitor.start()
        task = janitor._task
        janitor.start()
        assert janitor._task is task
        await janitor.stop()

    @pytest.mark.asyncio
    async def test_sweep_errors_do_not_stop_the_loop(self, janitor, monkeypatch):
        calls = []

        def broken_sweep(now=None):
            calls.append(now)
            raise RuntimeError("boom")

        monkeypatch.setattr(janitor, "sweep", broken_sweep)
        janitor.start()
        for _ in range(50):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)
        assert janitor.running
        await janitor.stop()
        assert len(calls) >= 2

    @pytest.mark.asyncio
    async def test_stop_without_start_is_harmless(self, janitor):
        await janitor.stop()
        assert not janitor.running
