"""
Data models for autoplan.

Dataclasses for workout history pulled from the tracker, the exercise
catalog, derived statistics, and the routine payload sent back.  Muscle
group and equipment names are normalised to lowercase snake_case so the
catalog and config tables can be compared directly.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Literal

SetType = Literal["normal", "warmup", "dropset", "failure"]


def normalize_name(value: str | None) -> str:
    """Lowercase snake_case form of a muscle group or equipment label."""
    if not value:
        return ""
    return value.strip().lower().replace(" ", "_").replace("-", "_")


@dataclass(frozen=True)
class SetRecord:
    """
    A single logged set.

    Any field may be missing; a set only counts towards statistics when it
    is quantifiable (weight and reps, or a duration).
    """

    weight_kg: float | None = None
    reps: int | None = None
    duration_seconds: int | None = None
    distance_meters: float | None = None

    @property
    def is_weighted(self) -> bool:
        """True if both weight and reps were logged."""
        return self.weight_kg is not None and self.reps is not None

    @property
    def is_quantifiable(self) -> bool:
        """True if weight+reps or a duration were logged."""
        return self.is_weighted or self.duration_seconds is not None

    @property
    def volume(self) -> float | None:
        """weight × reps, or None when either is missing."""
        if not self.is_weighted:
            return None
        return self.weight_kg * self.reps


@dataclass(frozen=True)
class ExercisePerformance:
    """One exercise as performed within a session."""

    title: str
    template_id: str
    sets: tuple[SetRecord, ...] = ()

    @property
    def quantifiable_sets(self) -> list[SetRecord]:
        return [s for s in self.sets if s.is_quantifiable]


@dataclass(frozen=True)
class WorkoutSession:
    """A logged workout, immutable once fetched."""

    id: str
    start_time: datetime  # timezone-aware
    exercises: tuple[ExercisePerformance, ...] = ()
    title: str = ""

    def __post_init__(self) -> None:
        if self.start_time.tzinfo is None:
            raise ValueError(f"WorkoutSession {self.id}: start_time must be timezone-aware")


@dataclass(frozen=True)
class ExerciseTemplate:
    """Catalog entry for an exercise."""

    id: str
    title: str
    primary_muscle_group: str
    equipment: str = "none"

    @property
    def is_bodyweight(self) -> bool:
        return self.equipment in ("", "none")


@dataclass(frozen=True)
class ProgressionRecord:
    """
    Volume trend for one exercise, built from its last two weighted sets.

    ``suggested_weight_kg`` is set only when the suggestion is to add load.
    """

    title: str
    last_volume: float
    previous_volume: float
    last_weight_kg: float
    last_reps: int
    suggestion: str
    suggested_weight_kg: float | None = None

    @property
    def should_increase(self) -> bool:
        return self.suggested_weight_kg is not None

    @property
    def volume_change(self) -> float:
        return self.last_volume - self.previous_volume

    @property
    def working_weight_kg(self) -> float:
        """Weight to prescribe next: the suggested load, else the last one."""
        if self.suggested_weight_kg is not None:
            return self.suggested_weight_kg
        return self.last_weight_kg


@dataclass
class HistoryAnalysis:
    """
    Everything derived from recent history in one run.

    Recomputed from scratch every run; never persisted.
    """

    muscle_frequency: dict[str, int] = field(default_factory=dict)
    exercise_frequency: dict[str, int] = field(default_factory=dict)
    progression: dict[str, ProgressionRecord] = field(default_factory=dict)
    weekly_split_frequency: dict[str, int] = field(default_factory=dict)
    split_last_hit: dict[str, datetime] = field(default_factory=dict)
    last_performed: dict[str, datetime] = field(default_factory=dict)
    recent_titles: set[str] = field(default_factory=set)
    last_session_at: datetime | None = None


@dataclass(frozen=True)
class SplitAssignment:
    """The split scheduled for a day, persisted between runs."""

    split: str
    scheduled_at: datetime


@dataclass
class ExercisePick:
    """A selected template plus its coaching note and starting weight, if known."""

    template: ExerciseTemplate
    note: str
    weight_kg: float | None = None

    @property
    def id(self) -> str:
        return self.template.id

    @property
    def title(self) -> str:
        return self.template.title


@dataclass
class PlannedSet:
    """
    A prescribed set.

    Duration-based sets carry ``duration_seconds`` and no reps; load-based
    sets carry reps and a non-negative weight.
    """

    type: SetType = "normal"
    weight_kg: float | None = None
    reps: int | None = None
    duration_seconds: int | None = None

    def __post_init__(self) -> None:
        """Validate planned set data."""
        if self.duration_seconds is not None:
            if self.reps is not None:
                raise ValueError("duration sets must not carry reps")
            if self.duration_seconds <= 0:
                raise ValueError("duration_seconds must be positive")
        else:
            if self.reps is None or self.reps <= 0:
                raise ValueError("load-based sets need positive reps")
            if self.weight_kg is None or self.weight_kg < 0:
                raise ValueError("load-based sets need a non-negative weight_kg")

    @property
    def is_duration(self) -> bool:
        return self.duration_seconds is not None


@dataclass
class RoutineExerciseEntry:
    """One exercise slot in a routine payload."""

    template_id: str
    rest_seconds: int
    sets: list[PlannedSet] = field(default_factory=list)
    superset_id: int | None = None
    notes: str = ""
    title: str = ""  # display only, not sent to the remote store


@dataclass
class RoutinePayload:
    """The routine as sent to the remote store."""

    title: str
    notes: str
    exercises: list[RoutineExerciseEntry] = field(default_factory=list)

    @property
    def template_ids(self) -> list[str]:
        return [e.template_id for e in self.exercises]


@dataclass(frozen=True)
class RemoteRoutine:
    """A routine as known to the remote service (may drift from the cache)."""

    id: str
    title: str
    updated_at: datetime | None = None
    exercises: tuple[dict[str, Any], ...] = ()

    @property
    def exercise_count(self) -> int:
        return len(self.exercises)


@dataclass
class AutoplanResult:
    """Outcome of one autoplan run, handed to the report layer."""

    success: bool
    message: str = ""
    split: str | None = None
    routine: RemoteRoutine | None = None
    todays_workout: dict[str, Any] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Wire shape: {success, message, routine, todaysWorkout} or {success, error}."""
        if not self.success:
            return {"success": False, "error": self.error or "Unknown error"}
        routine = None
        if self.routine is not None:
            routine = {
                "id": self.routine.id,
                "title": self.routine.title,
                "updated_at": self.routine.updated_at.isoformat() if self.routine.updated_at else None,
                "exercises": list(self.routine.exercises),
            }
        return {
            "success": True,
            "message": self.message,
            "routine": routine,
            "todaysWorkout": self.todays_workout,
        }
