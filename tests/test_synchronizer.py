"""
Tests for routine synchronisation: trust via the local cache, update
retries, no duplicate creation and the relaxed rebuild.
"""

from datetime import timedelta

import pytest

from autoplan.core.config import AutoplanConfig, RoutineShape
from autoplan.core.models import PlannedSet, RemoteRoutine, RoutineExerciseEntry, RoutinePayload
from autoplan.core.synchronizer import RoutineSynchronizer, RoutineSyncError
from autoplan.io.hevy_client import HevyAPIError, HevyUnavailable

from tests.conftest import NOW
from tests.fakes import FakeHevyClient


def _payload(n: int, title: str = "Autoplan - Push + Abs") -> RoutinePayload:
    return RoutinePayload(
        title=title,
        notes="",
        exercises=[
            RoutineExerciseEntry(template_id=f"t{i}", rest_seconds=30, sets=[PlannedSet(weight_kg=20.0, reps=8)])
            for i in range(n)
        ],
    )


def _managed(rid: str, days_ago: int = 1) -> RemoteRoutine:
    return RemoteRoutine(id=rid, title="Autoplan - Legs + Abs", updated_at=NOW - timedelta(days=days_ago))


class TestIdentify:
    def test_ignores_unmanaged_titles(self, routine_cache):
        sync = RoutineSynchronizer(FakeHevyClient(), routine_cache)
        routines = [RemoteRoutine(id="x", title="My Legs Day")]
        assert sync.identify(routines, {"x"}) is None

    def test_untrusted_id_is_not_used(self, routine_cache, caplog):
        sync = RoutineSynchronizer(FakeHevyClient(), routine_cache)
        with caplog.at_level("WARNING"):
            assert sync.identify([_managed("r1")], set()) is None
        assert "not in the local cache" in caplog.text

    def test_most_recent_trusted_wins(self, routine_cache):
        sync = RoutineSynchronizer(FakeHevyClient(), routine_cache)
        routines = [_managed("old", days_ago=5), _managed("new", days_ago=1)]
        assert sync.identify(routines, {"old", "new"}).id == "new"


class TestSync:
    @pytest.mark.asyncio
    async def test_creates_when_nothing_cached(self, routine_cache, sleep):
        client = FakeHevyClient(routines=[_managed("r1")])
        outcome = await RoutineSynchronizer(client, routine_cache, sleep=sleep).sync(_payload(8), "Push")

        assert outcome.created
        assert outcome.routine.id == "new-1"
        assert client.calls == ["list_routines", "create_routine"]

    @pytest.mark.asyncio
    async def test_updates_trusted_routine(self, routine_cache, sleep):
        routine_cache.save([_managed("r1")])
        client = FakeHevyClient(routines=[_managed("r1")])
        outcome = await RoutineSynchronizer(client, routine_cache, sleep=sleep).sync(_payload(8), "Push")

        assert not outcome.created
        assert outcome.routine.id == "r1"
        assert outcome.routine.title == "Autoplan - Push + Abs"
        assert client.calls == ["list_routines", "update_routine"]
        assert sleep.delays == []

    @pytest.mark.asyncio
    async def test_discover_refreshes_cache(self, routine_cache, sleep):
        client = FakeHevyClient(routines=[_managed("r1"), RemoteRoutine(id="mine", title="Arms")])
        await RoutineSynchronizer(client, routine_cache, sleep=sleep).discover()
        assert routine_cache.ids() == {"r1", "mine"}

    @pytest.mark.asyncio
    async def test_update_retried_with_backoff(self, routine_cache, sleep):
        routine_cache.save([_managed("r1")])
        client = FakeHevyClient(routines=[_managed("r1")])
        client.update_errors = [HevyAPIError("rate limited", 429) for _ in range(4)]

        outcome = await RoutineSynchronizer(client, routine_cache, sleep=sleep).sync(_payload(8), "Push")

        assert outcome.routine.id == "r1"
        assert client.calls.count("update_routine") == 5
        assert sleep.delays == [2.0, 4.0, 8.0, 16.0]
        assert "create_routine" not in client.calls

    @pytest.mark.asyncio
    async def test_failed_update_never_creates(self, routine_cache, sleep):
        routine_cache.save([_managed("r1")])
        client = FakeHevyClient(routines=[_managed("r1")])
        client.update_errors = [HevyUnavailable("down") for _ in range(5)]

        with pytest.raises(RoutineSyncError, match=r"Failed to update routine \(ID: r1\) after 5 attempts"):
            await RoutineSynchronizer(client, routine_cache, sleep=sleep).sync(_payload(8), "Push")

        assert client.calls.count("update_routine") == 5
        assert "create_routine" not in client.calls

    @pytest.mark.asyncio
    async def test_list_failure_falls_back_to_cache(self, routine_cache, sleep, caplog):
        routine_cache.save([_managed("r1")])
        client = FakeHevyClient(routines=[_managed("r1")])
        client.list_errors = [HevyUnavailable("timeout")]

        with caplog.at_level("WARNING"):
            outcome = await RoutineSynchronizer(client, routine_cache, sleep=sleep).sync(_payload(8), "Push")

        assert outcome.routine.id == "r1"
        assert "falling back to cache" in caplog.text

    @pytest.mark.asyncio
    async def test_short_routine_rebuilt_once_in_place(self, routine_cache, sleep):
        client = FakeHevyClient()
        client.echo_exercises = False
        rebuilt = []

        def rebuild() -> RoutinePayload:
            rebuilt.append(True)
            return _payload(7)

        outcome = await RoutineSynchronizer(client, routine_cache, sleep=sleep).sync(
            _payload(3), "Push", rebuild=rebuild,
        )

        assert rebuilt == [True]
        assert client.calls == ["list_routines", "create_routine", "update_routine"]
        assert outcome.routine.id == "new-1"
        assert len(outcome.payload.exercises) == 7
        assert len(client.routines) == 1

    @pytest.mark.asyncio
    async def test_cardio_exempt_from_minimum(self, routine_cache, sleep):
        config = AutoplanConfig(split_shapes={"Cardio": RoutineShape(min_entries=6, max_entries=8)})
        client = FakeHevyClient()

        def rebuild() -> RoutinePayload:
            raise AssertionError("Cardio routines are never rebuilt")

        outcome = await RoutineSynchronizer(client, routine_cache, config, sleep=sleep).sync(
            _payload(1, "Autoplan - Cardio + Abs"), "Cardio", rebuild=rebuild,
        )
        assert outcome.routine.exercise_count == 1


class TestRefresh:
    @pytest.mark.asyncio
    async def test_writes_cache(self, routine_cache):
        client = FakeHevyClient(routines=[_managed("r1")])
        routines = await RoutineSynchronizer(client, routine_cache).refresh()
        assert [r.id for r in routines] == ["r1"]
        assert routine_cache.ids() == {"r1"}

    @pytest.mark.asyncio
    async def test_failure_returns_cached(self, routine_cache, caplog):
        routine_cache.save([_managed("cached")])
        client = FakeHevyClient()
        client.list_errors = [HevyAPIError("server error", 500)]

        with caplog.at_level("WARNING"):
            routines = await RoutineSynchronizer(client, routine_cache).refresh()

        assert [r.id for r in routines] == ["cached"]
        assert "Failed to refresh routines" in caplog.text
