"""
Configuration constants for the autoplan engine.

All adjustable parameters are centralized here.  The values below are the
Python defaults; the bundled ``autoplan.yaml`` (and an optional user override)
can replace any of them through :func:`build_config`.
"""

from dataclasses import dataclass, field
from typing import Any, Final

# =============================================================================
# HISTORY WINDOWS
# =============================================================================

ANALYSIS_WINDOW_SESSIONS: Final[int] = 30  # Most recent sessions analysed
RECENT_TITLES_HOURS: Final[int] = 24       # Titles logged this recently are not repeated
WEEKLY_WINDOW_DAYS: Final[int] = 7         # Window for weekly split coverage

# =============================================================================
# PROGRESSION (weight × reps volume trend)
# =============================================================================

PROGRESSION_FACTOR: Final[float] = 1.05  # +5% load when progressing
HIGH_REP_THRESHOLD: Final[int] = 10      # Reps at which load should go up instead
KG_TO_LBS: Final[float] = 2.20462

# =============================================================================
# SPLITS
# =============================================================================

SPLITS: Final[list[str]] = ["Push", "Pull", "Legs", "Core", "Cardio"]
DEFAULT_SPLIT: Final[str] = "Push"
SPLIT_RECENCY_GUARD_DAYS: Final[int] = 2  # Least-frequent split must not be this fresh

SPLIT_MUSCLES: Final[dict[str, list[str]]] = {
    "Push": ["chest", "shoulders", "triceps"],
    "Pull": ["lats", "upper_back", "biceps", "rear_delts"],
    "Legs": ["quadriceps", "hamstrings", "glutes", "calves"],
    "Core": ["abdominals", "obliques", "full_body", "lower_back"],
    "Cardio": ["cardio"],
}

ABS_MUSCLES: Final[list[str]] = ["abdominals", "obliques"]
BACK_MUSCLES: Final[list[str]] = ["lats", "upper_back", "lower_back"]

# =============================================================================
# EXERCISE SELECTION
# =============================================================================

EXERCISE_COUNTS: Final[dict[str, int]] = {
    "Push": 6,
    "Pull": 6,
    "Legs": 6,
    "Core": 8,
    "Cardio": 1,
}
ABS_EXERCISE_COUNT: Final[int] = 3

STRENGTH_RECENCY_DAYS: Final[int] = 7
ABS_RECENCY_DAYS: Final[int] = 5
VARIETY_MAX_USES: Final[int] = 3
VARIETY_WINDOW_DAYS: Final[int] = 21

DEFAULT_NOTE: Final[str] = "Start moderate and build"

EXCLUDED_TITLES: Final[list[str]] = [
    "Deadlift (Barbell)",
    "Deadlift (Dumbbell)",
    "Deadlift (Smith Machine)",
    "Deadlift (Trap Bar)",
    "Romanian Deadlift (Barbell)",
    "Romanian Deadlift (Dumbbell)",
    "Good Morning (Barbell)",
]

# =============================================================================
# ROUTINE SHAPE
# =============================================================================

MANAGED_TITLE_MARKER: Final[str] = "Autoplan"
ROUTINE_NOTES: Final[str] = "Core focus + stability + abs finishers. Push your pace."

SUPERSET_REST_SECONDS: Final[int] = 30
FINISHER_REST_SECONDS: Final[int] = 90
ABS_FINISHER_REST_SECONDS: Final[int] = 60
PADDING_REST_SECONDS: Final[int] = 60

SETS_PER_EXERCISE: Final[int] = 3
STRENGTH_REPS: Final[int] = 8
ABS_REPS: Final[int] = 10
HOLD_SECONDS: Final[int] = 45

# Fallback load by equipment category when no history can be borrowed
DEFAULT_WEIGHTS_KG: Final[dict[str, float]] = {
    "resistance_band": 10.0,
    "dumbbell": 5.0,
    "kettlebell": 8.0,
    "barbell": 20.0,
    "machine": 15.0,
    "none": 0.0,
}

# =============================================================================
# REMOTE SYNC
# =============================================================================

HEVY_BASE_URL: Final[str] = "https://api.hevyapp.com/v1"
RETRY_MAX_ATTEMPTS: Final[int] = 5
RETRY_BASE_DELAY_SECONDS: Final[float] = 2.0
HTTP_TIMEOUT_SECONDS: Final[float] = 30.0


@dataclass(frozen=True)
class RoutineShape:
    """Size and rest policy of the routine built for one split."""

    max_supersets: int = 3
    min_entries: int = 6
    max_entries: int = 8
    sets_per_exercise: int = SETS_PER_EXERCISE
    strength_reps: int = STRENGTH_REPS
    abs_reps: int = ABS_REPS
    hold_seconds: int = HOLD_SECONDS


@dataclass(frozen=True)
class AutoplanConfig:
    """
    Fully resolved engine configuration.

    Built once per run from the constants above merged with YAML overrides,
    then passed explicitly to every component.
    """

    split_muscles: dict[str, list[str]] = field(default_factory=lambda: dict(SPLIT_MUSCLES))
    rotation: list[str] = field(default_factory=lambda: list(SPLITS))
    default_split: str = DEFAULT_SPLIT
    exercise_counts: dict[str, int] = field(default_factory=lambda: dict(EXERCISE_COUNTS))
    abs_exercise_count: int = ABS_EXERCISE_COUNT
    abs_muscles: list[str] = field(default_factory=lambda: list(ABS_MUSCLES))
    back_muscles: list[str] = field(default_factory=lambda: list(BACK_MUSCLES))
    excluded_titles: list[str] = field(default_factory=lambda: list(EXCLUDED_TITLES))

    analysis_window_sessions: int = ANALYSIS_WINDOW_SESSIONS
    recent_titles_hours: int = RECENT_TITLES_HOURS
    weekly_window_days: int = WEEKLY_WINDOW_DAYS
    split_recency_guard_days: int = SPLIT_RECENCY_GUARD_DAYS
    strength_recency_days: int = STRENGTH_RECENCY_DAYS
    abs_recency_days: int = ABS_RECENCY_DAYS
    variety_max_uses: int = VARIETY_MAX_USES
    variety_window_days: int = VARIETY_WINDOW_DAYS

    progression_factor: float = PROGRESSION_FACTOR
    high_rep_threshold: int = HIGH_REP_THRESHOLD
    display_unit: str = "kg"  # "kg" | "lbs"
    default_weights_kg: dict[str, float] = field(default_factory=lambda: dict(DEFAULT_WEIGHTS_KG))

    managed_title_marker: str = MANAGED_TITLE_MARKER
    routine_notes: str = ROUTINE_NOTES
    default_shape: RoutineShape = field(default_factory=RoutineShape)
    split_shapes: dict[str, RoutineShape] = field(
        default_factory=lambda: {
            "Core": RoutineShape(max_entries=10),
            "Cardio": RoutineShape(min_entries=1, max_entries=4),
        }
    )

    # Keyword tables for title-based classification (see classify.py)
    keywords: dict[str, list[str]] = field(default_factory=dict)
    abs_slots: list[dict[str, Any]] = field(default_factory=list)

    retry_max_attempts: int = RETRY_MAX_ATTEMPTS
    retry_base_delay: float = RETRY_BASE_DELAY_SECONDS

    def __post_init__(self) -> None:
        """Validate config data."""
        if self.display_unit not in ("kg", "lbs"):
            raise ValueError(f"Invalid display_unit: {self.display_unit!r}. Must be 'kg' or 'lbs'.")
        unknown = [s for s in self.rotation if s not in self.split_muscles]
        if unknown:
            raise ValueError(f"Rotation references unknown splits: {unknown}")
        if self.retry_max_attempts < 1:
            raise ValueError("retry_max_attempts must be >= 1")

    def shape_for(self, split: str) -> RoutineShape:
        """Return the routine shape for a split, falling back to the default."""
        return self.split_shapes.get(split, self.default_shape)

    def exercise_count_for(self, split: str) -> int:
        """Return how many strength exercises to pick for a split."""
        return self.exercise_counts.get(split, 6)

    def muscles_for(self, split: str) -> list[str]:
        """
        Return the muscle groups trained on a split.

        Raises:
            ValueError: If the split is not configured
        """
        if split not in self.split_muscles:
            valid = ", ".join(self.split_muscles)
            raise ValueError(f"Unknown split '{split}'. Valid splits: {valid}")
        return self.split_muscles[split]


def _shape_from_dict(d: dict[str, Any], base: RoutineShape) -> RoutineShape:
    """Overlay a raw YAML mapping on top of a RoutineShape."""
    return RoutineShape(
        max_supersets=int(d.get("max_supersets", base.max_supersets)),
        min_entries=int(d.get("min_entries", base.min_entries)),
        max_entries=int(d.get("max_entries", base.max_entries)),
        sets_per_exercise=int(d.get("sets_per_exercise", base.sets_per_exercise)),
        strength_reps=int(d.get("strength_reps", base.strength_reps)),
        abs_reps=int(d.get("abs_reps", base.abs_reps)),
        hold_seconds=int(d.get("hold_seconds", base.hold_seconds)),
    )


def build_config(raw: dict[str, Any] | None = None) -> AutoplanConfig:
    """
    Build an AutoplanConfig from a merged YAML dict.

    Sections that are absent keep the Python defaults from this module.

    Args:
        raw: Merged config dict (see engine.config_loader.load_model_config)

    Returns:
        Resolved AutoplanConfig
    """
    raw = raw or {}
    defaults = AutoplanConfig()

    splits = raw.get("splits", {})
    history = raw.get("history", {})
    selection = raw.get("selection", {})
    progression = raw.get("progression", {})
    routine = raw.get("routine", {})
    sync = raw.get("sync", {})

    split_muscles = {
        name: [str(m) for m in muscles]
        for name, muscles in (splits.get("muscles") or defaults.split_muscles).items()
    }

    default_shape = _shape_from_dict(routine.get("default", {}), defaults.default_shape)
    split_shapes = dict(defaults.split_shapes)
    for name, overrides in (routine.get("splits") or {}).items():
        split_shapes[name] = _shape_from_dict(overrides or {}, default_shape)

    return AutoplanConfig(
        split_muscles=split_muscles,
        rotation=list(splits.get("rotation", defaults.rotation)),
        default_split=str(splits.get("default", defaults.default_split)),
        exercise_counts={**defaults.exercise_counts, **selection.get("counts", {})},
        abs_exercise_count=int(selection.get("abs_count", defaults.abs_exercise_count)),
        abs_muscles=list(selection.get("abs_muscles", defaults.abs_muscles)),
        back_muscles=list(selection.get("back_muscles", defaults.back_muscles)),
        excluded_titles=list(selection.get("excluded_titles", defaults.excluded_titles)),
        analysis_window_sessions=int(history.get("window_sessions", defaults.analysis_window_sessions)),
        recent_titles_hours=int(history.get("recent_titles_hours", defaults.recent_titles_hours)),
        weekly_window_days=int(history.get("weekly_window_days", defaults.weekly_window_days)),
        split_recency_guard_days=int(splits.get("recency_guard_days", defaults.split_recency_guard_days)),
        strength_recency_days=int(selection.get("recency_days", defaults.strength_recency_days)),
        abs_recency_days=int(selection.get("abs_recency_days", defaults.abs_recency_days)),
        variety_max_uses=int(selection.get("variety_max_uses", defaults.variety_max_uses)),
        variety_window_days=int(selection.get("variety_window_days", defaults.variety_window_days)),
        progression_factor=float(progression.get("factor", defaults.progression_factor)),
        high_rep_threshold=int(progression.get("high_rep_threshold", defaults.high_rep_threshold)),
        display_unit=str(progression.get("display_unit", defaults.display_unit)),
        default_weights_kg={
            **defaults.default_weights_kg,
            **{k: float(v) for k, v in (progression.get("default_weights_kg") or {}).items()},
        },
        managed_title_marker=str(routine.get("title_marker", defaults.managed_title_marker)),
        routine_notes=str(routine.get("notes", defaults.routine_notes)),
        default_shape=default_shape,
        split_shapes=split_shapes,
        keywords={k: [str(w).lower() for w in v] for k, v in (raw.get("keywords") or {}).items()},
        abs_slots=list(raw.get("abs_slots") or []),
        retry_max_attempts=int(sync.get("max_attempts", defaults.retry_max_attempts)),
        retry_base_delay=float(sync.get("base_delay_seconds", defaults.retry_base_delay)),
    )
