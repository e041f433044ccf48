"""
Routine payload assembly.

Turns strength and abs picks into a bounded routine: supersets first
(strength paired with abs), then strength finishers, one abs finisher,
and padding up to the split's minimum size.
"""

import logging
from typing import Sequence

from .classify import is_duration_based, keyword_table
from .config import (
    ABS_FINISHER_REST_SECONDS,
    FINISHER_REST_SECONDS,
    PADDING_REST_SECONDS,
    SUPERSET_REST_SECONDS,
    AutoplanConfig,
    RoutineShape,
)
from .models import (
    ExercisePick,
    ExerciseTemplate,
    PlannedSet,
    ProgressionRecord,
    RoutineExerciseEntry,
    RoutinePayload,
)
from .progression import resolve_weight

logger = logging.getLogger(__name__)


class RoutineBuildError(Exception):
    """Raised when no valid routine can be assembled."""

    pass


def routine_title(split: str, marker: str) -> str:
    """Title of the managed routine; the marker identifies it remotely."""
    return f"{marker} - {split} + Abs"


def is_managed_title(title: str | None, marker: str) -> bool:
    return isinstance(title, str) and marker in title


class RoutineBuilder:
    """
    Builds a RoutinePayload for one split.

    Holds the catalog and progression map explicitly so weight resolution
    never depends on module state.
    """

    def __init__(
        self,
        catalog: Sequence[ExerciseTemplate],
        progression: dict[str, ProgressionRecord],
        config: AutoplanConfig | None = None,
    ):
        self.catalog = list(catalog)
        self.progression = progression
        self.config = config or AutoplanConfig()
        self._keywords = keyword_table(self.config.keywords)

    def planned_sets(self, pick: ExercisePick, reps: int, shape: RoutineShape) -> list[PlannedSet]:
        """Prescribe sets for a pick: seconds held, or reps at a resolved weight."""
        template = pick.template
        if is_duration_based(template, self._keywords, self.config.abs_muscles):
            return [
                PlannedSet(duration_seconds=shape.hold_seconds)
                for _ in range(shape.sets_per_exercise)
            ]
        weight = pick.weight_kg
        if weight is None:
            weight = resolve_weight(template, self.progression, self.catalog, self.config.default_weights_kg)
        weight = max(0.0, round(weight, 1))
        return [PlannedSet(weight_kg=weight, reps=reps) for _ in range(shape.sets_per_exercise)]

    def _entry(
        self,
        pick: ExercisePick,
        reps: int,
        rest: int,
        notes: str,
        shape: RoutineShape,
        superset_id: int | None = None,
    ) -> RoutineExerciseEntry:
        return RoutineExerciseEntry(
            template_id=pick.id,
            superset_id=superset_id,
            rest_seconds=rest,
            notes=notes,
            sets=self.planned_sets(pick, reps, shape),
            title=pick.title,
        )

    def build(
        self,
        split: str,
        picks: Sequence[ExercisePick],
        abs_picks: Sequence[ExercisePick],
    ) -> RoutinePayload:
        """
        Assemble the payload.

        Args:
            split: Target split name
            picks: Strength picks, in priority order
            abs_picks: Abs/core finisher picks, in priority order

        Returns:
            RoutinePayload with no repeated template id

        Raises:
            RoutineBuildError: If there are no usable picks at all
        """
        shape = self.config.shape_for(split)
        strength = [p for p in picks if p.id]
        abs_ = [p for p in abs_picks if p.id]
        if not strength and not abs_:
            raise RoutineBuildError(f"No valid exercises to build a {split} routine")

        entries: list[RoutineExerciseEntry] = []
        used: set[str] = set()

        pairs = min(len(strength), len(abs_), shape.max_supersets)
        for i in range(pairs):
            lift, core = strength[i], abs_[i]
            entries.append(self._entry(
                lift, shape.strength_reps, SUPERSET_REST_SECONDS,
                f"Superset with: {core.title}. {lift.note}", shape, superset_id=i,
            ))
            entries.append(self._entry(
                core, shape.abs_reps, SUPERSET_REST_SECONDS,
                f"Superset with: {lift.title}. {core.note}", shape, superset_id=i,
            ))
            used.update((lift.id, core.id))

        for pick in strength:
            if len(entries) >= shape.max_entries:
                break
            if pick.id in used:
                continue
            entries.append(self._entry(
                pick, shape.strength_reps, FINISHER_REST_SECONDS,
                f"Finisher - go all in. {pick.note}", shape,
            ))
            used.add(pick.id)

        remaining_abs = [p for p in abs_ if p.id not in used]
        if remaining_abs and len(entries) < shape.max_entries:
            pick = remaining_abs[0]
            entries.append(self._entry(
                pick, shape.abs_reps, ABS_FINISHER_REST_SECONDS,
                f"Abs finisher - controlled reps. {pick.note}", shape,
            ))
            used.add(pick.id)

        if len(entries) < shape.min_entries:
            for pick in [*strength, *abs_]:
                if len(entries) >= shape.min_entries:
                    break
                if pick.id in used:
                    continue
                entries.append(self._entry(
                    pick, shape.abs_reps, PADDING_REST_SECONDS,
                    f"Extra - controlled reps. {pick.note}", shape,
                ))
                used.add(pick.id)

        if len(entries) > shape.max_entries:
            logger.warning("Routine trimmed from %d to %d exercises", len(entries), shape.max_entries)
            entries = entries[: shape.max_entries]

        deduped: list[RoutineExerciseEntry] = []
        seen: set[str] = set()
        for entry in entries:
            if entry.template_id in seen:
                logger.warning("Duplicate exercise removed from routine: %s", entry.template_id)
                continue
            seen.add(entry.template_id)
            deduped.append(entry)

        payload = RoutinePayload(
            title=routine_title(split, self.config.managed_title_marker),
            notes=self.config.routine_notes,
            exercises=deduped,
        )
        logger.info(
            "Built %s with %d exercises (%d supersets)",
            payload.title, len(deduped), len({e.superset_id for e in deduped if e.superset_id is not None}),
        )
        return payload


def build_routine_payload(
    split: str,
    picks: Sequence[ExercisePick],
    abs_picks: Sequence[ExercisePick],
    catalog: Sequence[ExerciseTemplate],
    progression: dict[str, ProgressionRecord],
    config: AutoplanConfig | None = None,
) -> RoutinePayload:
    """Functional wrapper around RoutineBuilder.build()."""
    return RoutineBuilder(catalog, progression, config).build(split, picks, abs_picks)
