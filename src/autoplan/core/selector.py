"""
Exercise selection.

Picks concrete templates for each muscle group of a split under
recency, variety and equipment constraints, relaxing the constraints in
tiers when the catalog runs dry.  A separate selector fills the abs
finisher slots.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Iterable, Sequence

from .analyzer import VarietyFilter, allow_all
from .classify import abs_slots, is_abs_template, is_compound_leg, is_core_exercise, keyword_table, title_matches
from .config import DEFAULT_NOTE, AutoplanConfig
from .models import ExercisePick, ExerciseTemplate, HistoryAnalysis
from .progression import coaching_note

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _Tier:
    """Which filters one relaxation tier still applies."""

    name: str
    recency: bool
    variety: bool
    recent_titles: bool
    keywords: bool


TIERS: tuple[_Tier, ...] = (
    _Tier("strict", recency=True, variety=True, recent_titles=True, keywords=True),
    _Tier("no-recency", recency=False, variety=True, recent_titles=True, keywords=True),
    _Tier("no-variety", recency=False, variety=False, recent_titles=True, keywords=True),
    _Tier("any", recency=False, variety=False, recent_titles=False, keywords=False),
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def order_muscles(
    muscles: Sequence[str],
    muscle_frequency: dict[str, int],
    back_muscles: Iterable[str],
) -> list[str]:
    """Back muscles first, then least-trained first, then configured order."""
    back = set(back_muscles)
    return sorted(
        muscles,
        key=lambda m: (0 if m in back else 1, muscle_frequency.get(m, 0), muscles.index(m)),
    )


def filter_catalog(templates: Sequence[ExerciseTemplate], excluded_titles: Iterable[str]) -> list[ExerciseTemplate]:
    """Drop templates the program never schedules."""
    excluded = set(excluded_titles)
    return [t for t in templates if t.title not in excluded]


def _rank(
    candidates: list[ExerciseTemplate],
    used_equipment: set[str],
    exercise_frequency: dict[str, int],
) -> list[ExerciseTemplate]:
    # Stable: unused equipment, then least performed, then catalog order
    return sorted(
        candidates,
        key=lambda t: (t.equipment in used_equipment, exercise_frequency.get(t.title, 0)),
    )


def _make_pick(template: ExerciseTemplate, analysis: HistoryAnalysis, config: AutoplanConfig) -> ExercisePick:
    record = analysis.progression.get(template.title)
    return ExercisePick(
        template=template,
        note=coaching_note(record, DEFAULT_NOTE, config.display_unit),
        weight_kg=record.working_weight_kg if record else None,
    )


def pick_exercises(
    split: str,
    templates: Sequence[ExerciseTemplate],
    analysis: HistoryAnalysis,
    variety: VarietyFilter | None = None,
    count: int | None = None,
    relaxed: bool = False,
    now: datetime | None = None,
    config: AutoplanConfig | None = None,
) -> list[ExercisePick]:
    """
    Select strength exercises for a split.

    Muscle groups are visited round-robin (back first, then least trained)
    until ``count`` picks exist or a full round adds nothing.  Each visit
    walks the relaxation tiers until one yields a candidate.

    Args:
        split: Target split name
        templates: Exercise catalog
        analysis: History analysis
        variety: Variety predicate (see analyzer.variety_filter)
        count: Desired number of picks (defaults to the split's configured count)
        relaxed: Skip recency and variety filters entirely
        now: Reference time
        config: Engine configuration

    Returns:
        Ordered picks; may be shorter than ``count`` if the catalog runs dry
    """
    config = config or AutoplanConfig()
    now = now or _utcnow()
    count = config.exercise_count_for(split) if count is None else count
    variety = allow_all if (relaxed or variety is None) else variety
    keywords = keyword_table(config.keywords)
    recency_cutoff = now - timedelta(days=config.strength_recency_days)
    recent_titles = set() if relaxed else analysis.recent_titles

    muscles = order_muscles(config.muscles_for(split), analysis.muscle_frequency, config.back_muscles)

    def keyword_ok(t: ExerciseTemplate) -> bool:
        if split == "Legs":
            return is_compound_leg(t, keywords)
        if split == "Core":
            return is_core_exercise(t, keywords)
        return True

    def recent(t: ExerciseTemplate) -> bool:
        last = analysis.last_performed.get(t.title)
        return last is not None and last > recency_cutoff

    selected: list[ExercisePick] = []
    used_ids: set[str] = set()

    def candidates_for(muscle: str, tier: _Tier) -> list[ExerciseTemplate]:
        out = []
        for t in templates:
            if t.primary_muscle_group != muscle or t.id in used_ids:
                continue
            if tier.keywords and not keyword_ok(t):
                continue
            if tier.recent_titles and t.title in recent_titles:
                continue
            if tier.variety and not variety(t):
                continue
            if tier.recency and not relaxed and recent(t):
                continue
            out.append(t)
        return out

    while len(selected) < count:
        added = False
        for muscle in muscles:
            if len(selected) >= count:
                break
            for tier in TIERS:
                candidates = candidates_for(muscle, tier)
                if not candidates:
                    continue
                used_equipment = {p.template.equipment for p in selected}
                chosen = _rank(candidates, used_equipment, analysis.exercise_frequency)[0]
                pick = _make_pick(chosen, analysis, config)
                selected.append(pick)
                used_ids.add(chosen.id)
                added = True
                if tier is not TIERS[0]:
                    logger.warning("Relaxed to tier '%s' for %s: %s", tier.name, muscle, chosen.title)
                logger.info(
                    "Selected: %s (muscle: %s, equipment: %s, note: %s)",
                    chosen.title, muscle, chosen.equipment, pick.note,
                )
                break
        if not added:
            break

    if len(selected) < count:
        logger.warning("Only %d of %d exercises available for %s", len(selected), count, split)
    return selected


def pick_abs_exercises(
    templates: Sequence[ExerciseTemplate],
    analysis: HistoryAnalysis,
    count: int | None = None,
    exclude_ids: Iterable[str] = (),
    relaxed: bool = False,
    now: datetime | None = None,
    config: AutoplanConfig | None = None,
) -> list[ExercisePick]:
    """
    Fill the abs finisher slots (rectus, oblique/rotational, isometric hold).

    Each slot prefers templates matching its keywords and not performed in
    the abs recency window, then any abs/oblique template not recent, then
    any unused abs/oblique template.

    Args:
        templates: Exercise catalog
        analysis: History analysis
        count: Number of slots to fill (defaults to config.abs_exercise_count)
        exclude_ids: Template ids already used by the strength picks
        relaxed: Ignore recency
        now: Reference time
        config: Engine configuration

    Returns:
        Ordered abs picks, never containing an id from ``exclude_ids``
    """
    config = config or AutoplanConfig()
    now = now or _utcnow()
    count = config.abs_exercise_count if count is None else count
    slots = abs_slots(config.abs_slots)
    cutoff = now - timedelta(days=config.abs_recency_days)
    used_ids = set(exclude_ids)
    selected: list[ExercisePick] = []

    def recent(t: ExerciseTemplate) -> bool:
        if relaxed:
            return False
        if t.title in analysis.recent_titles:
            return True
        last = analysis.last_performed.get(t.title)
        return last is not None and last > cutoff

    abs_pool = [t for t in templates if is_abs_template(t, config.abs_muscles)]
    for i in range(count):
        slot = slots[i % len(slots)]
        tiers = [
            ("slot", lambda t: t.primary_muscle_group == slot.muscle
                and title_matches(t.title, slot.keywords) and not recent(t)),
            ("any-abs", lambda t: not recent(t)),
            ("any-unused", lambda t: True),
        ]
        chosen = None
        for name, predicate in tiers:
            candidates = [t for t in abs_pool if t.id not in used_ids and predicate(t)]
            if candidates:
                chosen = min(candidates, key=lambda t: analysis.exercise_frequency.get(t.title, 0))
                if name != "slot":
                    logger.warning("No %s abs template available; fell back to '%s': %s", slot.name, name, chosen.title)
                break
        if chosen is None:
            logger.warning("No abs template left for slot %s", slot.name)
            continue
        used_ids.add(chosen.id)
        selected.append(ExercisePick(template=chosen, note=slot.note))
        logger.info("Selected abs: %s (%s)", chosen.title, slot.name)

    return selected
