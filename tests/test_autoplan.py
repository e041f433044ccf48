"""
End-to-end tests for a daily run against the in-memory Hevy client.
"""

from datetime import timedelta

import pytest

from autoplan.core.autoplan import autoplan, run_daily
from autoplan.core.models import RemoteRoutine
from autoplan.io.hevy_client import HevyAPIError, HevyUnavailable

from tests.fakes import FakeHevyClient


class TestAutoplan:
    @pytest.mark.asyncio
    async def test_empty_history_and_catalog_fails_cleanly(self, split_store, routine_cache, now, sleep):
        client = FakeHevyClient()
        result = await autoplan([], [], client, split_store, routine_cache, now=now, sleep=sleep)

        assert not result.success
        assert result.error.startswith("RoutineBuildError")
        assert result.to_dict() == {"success": False, "error": result.error}
        # Nothing was written remotely; only the final cache refresh ran
        assert client.calls == ["list_routines"]

    @pytest.mark.asyncio
    async def test_first_run_creates_routine(self, catalog, split_store, routine_cache, now, sleep):
        client = FakeHevyClient()
        result = await autoplan([], catalog, client, split_store, routine_cache, now=now, sleep=sleep)

        assert result.success, result.error
        assert result.split == "Push"
        assert result.message == "Push routine created"
        assert client.calls == ["list_routines", "create_routine", "list_routines"]

        data = result.to_dict()
        assert set(data) == {"success", "message", "routine", "todaysWorkout"}
        assert data["routine"]["id"] == "new-1"
        workout = data["todaysWorkout"]
        assert workout["title"] == "Autoplan - Push + Abs"
        assert len(workout["exercises"]) == 8
        assert workout["exercises"][0]["title"] == "Bench Press (Barbell)"

        assert split_store.load_assignment().split == "Push"
        assert routine_cache.ids() == {"new-1"}

    @pytest.mark.asyncio
    async def test_second_run_updates_same_routine(self, catalog, split_store, routine_cache, now, sleep):
        client = FakeHevyClient()
        await autoplan([], catalog, client, split_store, routine_cache, now=now, sleep=sleep)
        client.calls.clear()

        result = await autoplan(
            [], catalog, client, split_store, routine_cache, now=now + timedelta(days=1), sleep=sleep,
        )

        # Push was never logged, so it is scheduled again and written in place
        assert result.message == "Push routine updated"
        assert "create_routine" not in client.calls
        assert [r.id for r in client.routines] == ["new-1"]

    @pytest.mark.asyncio
    async def test_untrusted_remote_routine_is_left_alone(self, catalog, split_store, routine_cache, now, sleep):
        foreign = RemoteRoutine(id="elsewhere", title="Autoplan - Legs + Abs")
        client = FakeHevyClient(routines=[foreign])

        result = await autoplan([], catalog, client, split_store, routine_cache, now=now, sleep=sleep)

        assert result.message == "Push routine created"
        assert {r.id for r in client.routines} == {"elsewhere", "new-1"}

    @pytest.mark.asyncio
    async def test_update_failure_reported_and_cache_refreshed(self, catalog, split_store, routine_cache, now, sleep):
        client = FakeHevyClient()
        await autoplan([], catalog, client, split_store, routine_cache, now=now, sleep=sleep)
        client.calls.clear()
        client.update_errors = [HevyAPIError("server error", 500) for _ in range(5)]

        result = await autoplan([], catalog, client, split_store, routine_cache, now=now, sleep=sleep)

        assert not result.success
        assert result.error.startswith("RoutineSyncError: Failed to update routine (ID: new-1)")
        assert client.calls.count("update_routine") == 5
        assert "create_routine" not in client.calls
        assert client.calls[-1] == "list_routines"


class TestRunDaily:
    @pytest.mark.asyncio
    async def test_fetches_history_and_catalog(self, catalog, split_store, routine_cache, now, sleep):
        client = FakeHevyClient(templates=catalog)
        result = await run_daily(client, split_store, routine_cache, now=now, sleep=sleep)

        assert result.success, result.error
        assert client.calls[:2] == ["list_workouts", "list_exercise_templates"]

    @pytest.mark.asyncio
    async def test_fetch_failure_is_reported(self, split_store, routine_cache, now, sleep):
        class Offline(FakeHevyClient):
            async def list_workouts(self, max_sessions: int = 30):
                raise HevyUnavailable("no network")

        client = Offline(routines=[RemoteRoutine(id="r1", title="Autoplan - Pull + Abs")])
        result = await run_daily(client, split_store, routine_cache, now=now, sleep=sleep)

        assert not result.success
        assert result.error == "HevyUnavailable: no network"
        assert not split_store.exists()
        # The routine cache is still refreshed before reporting
        assert client.calls == ["list_routines"]
        assert routine_cache.ids() == {"r1"}
