"""Shared fixtures: a small exercise catalog, a fixed reference time and local
state stores."""

from datetime import datetime, timezone

import pytest

from autoplan.core.config import AutoplanConfig
from autoplan.core.models import ExerciseTemplate
from autoplan.io.state_store import RoutineCache, SplitStateStore

from tests.fakes import SleepRecorder

NOW = datetime(2025, 3, 14, 18, 0, tzinfo=timezone.utc)

CATALOG = [
    # Push
    ExerciseTemplate("bench", "Bench Press (Barbell)", "chest", "barbell"),
    ExerciseTemplate("incline", "Incline Bench Press (Dumbbell)", "chest", "dumbbell"),
    ExerciseTemplate("fly", "Chest Fly (Machine)", "chest", "machine"),
    ExerciseTemplate("pushup", "Push Up", "chest", "none"),
    ExerciseTemplate("ohp", "Overhead Press (Barbell)", "shoulders", "barbell"),
    ExerciseTemplate("lateral", "Lateral Raise (Dumbbell)", "shoulders", "dumbbell"),
    ExerciseTemplate("pushdown", "Triceps Pushdown (Cable)", "triceps", "cable"),
    ExerciseTemplate("skull", "Skullcrusher (Barbell)", "triceps", "barbell"),
    # Pull
    ExerciseTemplate("pulldown", "Lat Pulldown (Cable)", "lats", "cable"),
    ExerciseTemplate("pullup", "Pull Up", "lats", "none"),
    ExerciseTemplate("row", "Bent Over Row (Barbell)", "upper_back", "barbell"),
    ExerciseTemplate("seatedrow", "Seated Row (Machine)", "upper_back", "machine"),
    ExerciseTemplate("curl", "Bicep Curl (Dumbbell)", "biceps", "dumbbell"),
    ExerciseTemplate("facepull", "Face Pull (Cable)", "rear_delts", "cable"),
    # Legs
    ExerciseTemplate("squat", "Squat (Barbell)", "quadriceps", "barbell"),
    ExerciseTemplate("legpress", "Leg Press (Machine)", "quadriceps", "machine"),
    ExerciseTemplate("sled", "Sled Push", "quadriceps", "other"),
    ExerciseTemplate("legcurl", "Leg Curl (Machine)", "hamstrings", "machine"),
    ExerciseTemplate("deadlift", "Deadlift (Barbell)", "hamstrings", "barbell"),
    ExerciseTemplate("thrust", "Hip Thrust (Barbell)", "glutes", "barbell"),
    ExerciseTemplate("calf", "Calf Raise (Machine)", "calves", "machine"),
    # Core / abs
    ExerciseTemplate("crunch", "Crunch", "abdominals", "none"),
    ExerciseTemplate("hlr", "Hanging Leg Raise", "abdominals", "none"),
    ExerciseTemplate("plank", "Plank", "abdominals", "none"),
    ExerciseTemplate("deadbug", "Dead Bug", "abdominals", "none"),
    ExerciseTemplate("twist", "Russian Twist", "obliques", "none"),
    ExerciseTemplate("sideplank", "Side Plank", "obliques", "none"),
    # Cardio
    ExerciseTemplate("treadmill", "Treadmill", "cardio", "machine"),
]


@pytest.fixture
def catalog() -> list[ExerciseTemplate]:
    return list(CATALOG)


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def config() -> AutoplanConfig:
    return AutoplanConfig()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def routine_cache(tmp_path) -> RoutineCache:
    return RoutineCache(tmp_path / "routines.json")


@pytest.fixture
def split_store(tmp_path) -> SplitStateStore:
    return SplitStateStore(tmp_path / "last_scheduled.json")
