"""
Daily autoplan run.

analysis → split scheduling → exercise selection → routine building →
synchronisation, with a best-effort routine cache refresh at the end no
matter how the run went.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Protocol, Sequence

from .analyzer import analyze_history, variety_filter
from .config import AutoplanConfig
from .models import (
    AutoplanResult,
    ExerciseTemplate,
    RemoteRoutine,
    RoutinePayload,
    WorkoutSession,
)
from .routine_builder import build_routine_payload
from .scheduler import SplitStateStore, schedule_next_split
from .selector import filter_catalog, pick_abs_exercises, pick_exercises
from .synchronizer import RoutineCacheStore, RoutineStore, RoutineSynchronizer

logger = logging.getLogger(__name__)


class HevySource(RoutineStore, Protocol):
    """History, catalog and routine operations used by a daily run."""

    async def list_workouts(self, max_sessions: int = 30) -> list[WorkoutSession]: ...

    async def list_exercise_templates(self) -> list[ExerciseTemplate]: ...


def todays_workout(
    routine: RemoteRoutine,
    payload: RoutinePayload,
    catalog: Sequence[ExerciseTemplate],
) -> dict[str, Any]:
    """
    Summary of the stored routine for reports.

    Uses the exercises echoed back by the remote store when present, else
    the payload that was sent.  Titles come from the catalog.
    """
    titles = {t.id: t.title for t in catalog}
    titles.update({e.template_id: e.title for e in payload.exercises if e.title})

    if routine.exercises:
        exercises = [
            {
                "title": ex.get("title") or titles.get(ex.get("exercise_template_id"), ""),
                "exercise_template_id": ex.get("exercise_template_id"),
                "notes": ex.get("notes"),
                "sets": ex.get("sets", []),
                "superset_id": ex.get("superset_id"),
                "rest_seconds": ex.get("rest_seconds"),
            }
            for ex in routine.exercises
        ]
    else:
        exercises = [
            {
                "title": titles.get(e.template_id, ""),
                "exercise_template_id": e.template_id,
                "notes": e.notes,
                "sets": [
                    {
                        "type": s.type,
                        "weight_kg": s.weight_kg,
                        "reps": s.reps,
                        "duration_seconds": s.duration_seconds,
                    }
                    for s in e.sets
                ],
                "superset_id": e.superset_id,
                "rest_seconds": e.rest_seconds,
            }
            for e in payload.exercises
        ]
    return {"id": routine.id, "title": routine.title or payload.title, "exercises": exercises}


async def autoplan(
    sessions: Sequence[WorkoutSession],
    templates: Sequence[ExerciseTemplate],
    client: RoutineStore,
    state: SplitStateStore,
    cache: RoutineCacheStore,
    now: datetime | None = None,
    config: AutoplanConfig | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AutoplanResult:
    """
    Plan today's routine and write it to the remote store.

    Never raises: any failure becomes ``AutoplanResult(success=False)``.

    Args:
        sessions: Recent workouts, newest first
        templates: Exercise catalog
        client: Remote routine store
        state: Persisted split assignment
        cache: Local routine cache
        now: Reference time (defaults to current UTC time)
        config: Engine configuration
        sleep: Sleep used between update retries

    Returns:
        AutoplanResult
    """
    config = config or AutoplanConfig()
    now = now or datetime.now(timezone.utc)
    synchronizer = RoutineSynchronizer(client, cache, config, sleep=sleep)

    try:
        catalog = filter_catalog(templates, config.excluded_titles)
        analysis = analyze_history(sessions, templates, now, config)
        split = schedule_next_split(analysis, state, now, config)
        logger.info("Split selected: %s", split)
        variety = variety_filter(sessions, now, config.variety_max_uses, config.variety_window_days)

        def plan(relaxed: bool = False) -> RoutinePayload:
            picks = pick_exercises(
                split, catalog, analysis, variety, relaxed=relaxed, now=now, config=config,
            )
            abs_picks = pick_abs_exercises(
                catalog, analysis, exclude_ids=[p.id for p in picks],
                relaxed=relaxed, now=now, config=config,
            )
            return build_routine_payload(split, picks, abs_picks, catalog, analysis.progression, config)

        outcome = await synchronizer.sync(plan(), split, rebuild=lambda: plan(relaxed=True))
        action = "created" if outcome.created else "updated"
        return AutoplanResult(
            success=True,
            message=f"{split} routine {action}",
            split=split,
            routine=outcome.routine,
            todays_workout=todays_workout(outcome.routine, outcome.payload, catalog),
        )
    except Exception as e:
        logger.error("Error in autoplan: %s", e)
        return AutoplanResult(success=False, error=f"{type(e).__name__}: {e}")
    finally:
        await synchronizer.refresh()


async def run_daily(
    client: HevySource,
    state: SplitStateStore,
    cache: RoutineCacheStore,
    now: datetime | None = None,
    config: AutoplanConfig | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
) -> AutoplanResult:
    """
    Fetch history and catalog from the remote service, then run autoplan.

    Returns:
        AutoplanResult; a failed fetch is reported as an unsuccessful run,
        after the same best-effort cache refresh as any other run
    """
    config = config or AutoplanConfig()
    try:
        sessions = await client.list_workouts(max_sessions=config.analysis_window_sessions)
        templates = await client.list_exercise_templates()
    except Exception as e:
        logger.error("Failed to fetch history or catalog: %s", e)
        await RoutineSynchronizer(client, cache, config, sleep=sleep).refresh()
        return AutoplanResult(success=False, error=f"{type(e).__name__}: {e}")
    return await autoplan(sessions, templates, client, state, cache, now=now, config=config, sleep=sleep)
