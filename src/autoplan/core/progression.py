"""
Progressive-overload suggestions and starting-weight resolution.

Volume is weight × reps of a single set, in kg.  The suggestion compares
the two most recent weighted sets of an exercise:

    last_volume > previous_volume   → add load  (last_weight × factor)
    last_reps  >= high_rep_threshold → add load  (rep ceiling reached)
    otherwise                        → maintain or add reps
"""

import logging
from typing import Sequence

from .config import HIGH_REP_THRESHOLD, KG_TO_LBS, PROGRESSION_FACTOR
from .models import ExerciseTemplate, ProgressionRecord, SetRecord

logger = logging.getLogger(__name__)

MAINTAIN_SUGGESTION = "Maintain or increase reps"


def format_weight(weight_kg: float, unit: str = "kg") -> str:
    """Render a kg value in the display unit, one decimal place."""
    if unit == "lbs":
        return f"{weight_kg * KG_TO_LBS:.1f} lbs"
    return f"{weight_kg:.1f} kg"


def suggest_progression(
    title: str,
    weighted_sets: Sequence[SetRecord],
    factor: float = PROGRESSION_FACTOR,
    high_rep_threshold: int = HIGH_REP_THRESHOLD,
    unit: str = "kg",
) -> ProgressionRecord | None:
    """
    Build the ProgressionRecord for one exercise.

    Args:
        title: Exercise title
        weighted_sets: Sets with weight and reps, oldest first
        factor: Load multiplier when progressing
        high_rep_threshold: Reps at which load goes up regardless of volume
        unit: Display unit for the suggestion text

    Returns:
        ProgressionRecord, or None when fewer than two weighted sets exist
    """
    sets = [s for s in weighted_sets if s.is_weighted]
    if len(sets) < 2:
        return None

    previous, last = sets[-2], sets[-1]
    last_volume = last.volume
    previous_volume = previous.volume

    suggested: float | None = None
    if last_volume > previous_volume:
        suggested = round(last.weight_kg * factor, 1)
        suggestion = f"Increase weight to {format_weight(suggested, unit)}"
    elif last.reps >= high_rep_threshold:
        suggested = round(last.weight_kg * factor, 1)
        suggestion = f"Try increasing weight to {format_weight(suggested, unit)}"
    else:
        suggestion = MAINTAIN_SUGGESTION

    return ProgressionRecord(
        title=title,
        last_volume=last_volume,
        previous_volume=previous_volume,
        last_weight_kg=last.weight_kg,
        last_reps=last.reps,
        suggestion=suggestion,
        suggested_weight_kg=suggested,
    )


def coaching_note(record: ProgressionRecord | None, default: str, unit: str = "kg") -> str:
    """Note attached to a pick: the suggestion with the last set, or *default*."""
    if record is None:
        return default
    return f"{record.suggestion} (last: {format_weight(record.last_weight_kg, unit)} x {record.last_reps} reps)"


def resolve_weight(
    template: ExerciseTemplate,
    progression: dict[str, ProgressionRecord],
    catalog: Sequence[ExerciseTemplate],
    default_weights_kg: dict[str, float],
) -> float:
    """
    Pick a starting weight for *template*.

    Resolution order:
    1. Its own progression record
    2. A record borrowed from another exercise with the same primary
       muscle group and equipment
    3. The equipment default (bodyweight → 0)

    Returns:
        Weight in kg (≥ 0)
    """
    own = progression.get(template.title)
    if own is not None:
        return own.working_weight_kg

    by_title = {t.title: t for t in catalog}
    for title, record in progression.items():
        other = by_title.get(title)
        if other is None or other.id == template.id:
            continue
        if (
            other.primary_muscle_group == template.primary_muscle_group
            and other.equipment == template.equipment
        ):
            logger.debug("Borrowing weight for %s from %s", template.title, title)
            return record.working_weight_kg

    if template.is_bodyweight:
        return 0.0
    return default_weights_kg.get(template.equipment, 0.0)
