"""
History analysis for autoplan.

Turns the most recent workout sessions into the frequency, recency and
progression tables that drive split scheduling and exercise selection.
All functions are pure given an explicit ``now``.
"""

import logging
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from .classify import split_for_muscle
from .config import AutoplanConfig
from .models import (
    ExerciseTemplate,
    HistoryAnalysis,
    SetRecord,
    WorkoutSession,
)
from .progression import format_weight, suggest_progression

logger = logging.getLogger(__name__)

VarietyFilter = Callable[[ExerciseTemplate], bool]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def dominant_split(
    session: WorkoutSession,
    templates_by_id: dict[str, ExerciseTemplate],
    split_muscles: dict[str, list[str]],
) -> str | None:
    """
    Return the split most of the session's exercises belong to.

    Ties go to the split of the earliest exercise in the session.
    Exercises without a template or a mapped muscle are ignored.
    """
    counts: Counter[str] = Counter()
    first_seen: dict[str, int] = {}
    for idx, performed in enumerate(session.exercises):
        template = templates_by_id.get(performed.template_id)
        if template is None:
            continue
        split = split_for_muscle(template.primary_muscle_group, split_muscles)
        if split is None:
            continue
        counts[split] += 1
        first_seen.setdefault(split, idx)

    if not counts:
        return None
    return min(counts, key=lambda s: (-counts[s], first_seen[s]))


def analyze_history(
    sessions: Sequence[WorkoutSession],
    templates: Sequence[ExerciseTemplate],
    now: datetime | None = None,
    config: AutoplanConfig | None = None,
) -> HistoryAnalysis:
    """
    Analyse recent history.

    Args:
        sessions: Workout sessions, newest first
        templates: Full exercise catalog
        now: Reference time (defaults to current UTC time)
        config: Engine configuration

    Returns:
        HistoryAnalysis with frequency, recency and progression tables
    """
    config = config or AutoplanConfig()
    now = now or _utcnow()
    window = list(sessions[: config.analysis_window_sessions])
    templates_by_id = {t.id: t for t in templates}

    analysis = HistoryAnalysis(
        weekly_split_frequency={split: 0 for split in config.split_muscles},
    )
    if window:
        analysis.last_session_at = max(s.start_time for s in window)

    recent_cutoff = now - timedelta(hours=config.recent_titles_hours)
    week_cutoff = now - timedelta(days=config.weekly_window_days)
    weighted_sets: dict[str, list[SetRecord]] = {}
    skipped: set[str] = set()

    # Walk oldest → newest so "last" means most recent
    for session in sorted(window, key=lambda s: s.start_time):
        seen_titles: set[str] = set()
        for performed in session.exercises:
            title = performed.title
            if session.start_time >= recent_cutoff:
                analysis.recent_titles.add(title)
            analysis.last_performed[title] = session.start_time
            weighted_sets.setdefault(title, []).extend(s for s in performed.sets if s.is_weighted)

            template = templates_by_id.get(performed.template_id)
            if template is None:
                skipped.add(title)
                continue

            muscle = template.primary_muscle_group
            quantifiable = len(performed.quantifiable_sets)
            if quantifiable:
                analysis.muscle_frequency[muscle] = analysis.muscle_frequency.get(muscle, 0) + quantifiable
            if title not in seen_titles:
                analysis.exercise_frequency[title] = analysis.exercise_frequency.get(title, 0) + 1
                seen_titles.add(title)

        split = dominant_split(session, templates_by_id, config.split_muscles)
        if split is None:
            continue
        analysis.split_last_hit[split] = session.start_time
        if session.start_time >= week_cutoff:
            analysis.weekly_split_frequency[split] = analysis.weekly_split_frequency.get(split, 0) + 1

    if skipped:
        logger.warning(
            "No catalog template for %d exercise(s); left out of frequency tables: %s",
            len(skipped),
            ", ".join(sorted(skipped)),
        )

    for title, sets in weighted_sets.items():
        record = suggest_progression(
            title,
            sets,
            factor=config.progression_factor,
            high_rep_threshold=config.high_rep_threshold,
            unit=config.display_unit,
        )
        if record is not None:
            analysis.progression[title] = record

    logger.info(
        "Analysed %d sessions: %d muscle groups, %d progression records, weekly splits %s",
        len(window),
        len(analysis.muscle_frequency),
        len(analysis.progression),
        analysis.weekly_split_frequency,
    )
    return analysis


def variety_filter(
    sessions: Sequence[WorkoutSession],
    now: datetime | None = None,
    max_uses: int = 3,
    window_days: int = 21,
) -> VarietyFilter:
    """
    Build a predicate rejecting exercises used ``max_uses`` times or more
    within the last ``window_days``.
    """
    now = now or _utcnow()
    cutoff = now - timedelta(days=window_days)
    uses: Counter[str] = Counter()
    for session in sessions:
        if session.start_time < cutoff:
            continue
        for performed in session.exercises:
            uses[performed.title.lower()] += 1

    def _passes(template: ExerciseTemplate) -> bool:
        return uses[template.title.lower()] < max_uses

    return _passes


def allow_all(template: ExerciseTemplate) -> bool:
    """Variety predicate used when filters are relaxed."""
    return True


def trainer_feedback(sessions: Sequence[WorkoutSession], unit: str = "kg") -> list[dict]:
    """
    Per-exercise coaching summary over the last three weighted sets.

    Suggestions quote the latest weight in *unit* ("kg" or "lbs").

    Returns:
        List of {title, avg_weight_kg, avg_reps, suggestion}, in first-seen order
    """
    per_title: dict[str, list[SetRecord]] = {}
    for session in sorted(sessions, key=lambda s: s.start_time):
        for performed in session.exercises:
            per_title.setdefault(performed.title, []).extend(s for s in performed.sets if s.is_weighted)

    feedback = []
    for title, sets in per_title.items():
        last3 = sets[-3:]
        if not last3:
            continue
        avg_weight = sum(s.weight_kg for s in last3) / len(last3)
        avg_reps = sum(s.reps for s in last3) / len(last3)
        volumes = [s.volume for s in last3]
        if len(volumes) >= 2 and volumes[-1] > volumes[-2]:
            suggestion = f"Increase weight slightly from {format_weight(last3[-1].weight_kg, unit)}"
        else:
            suggestion = "Maintain weight / reps"
        feedback.append({
            "title": title,
            "avg_weight_kg": round(avg_weight, 1),
            "avg_reps": round(avg_reps, 1),
            "suggestion": suggestion,
        })
    return feedback


def long_term_trends(sessions: Sequence[WorkoutSession]) -> dict[str, dict]:
    """
    Long-horizon trend per exercise.

    Returns:
        {title: {total_sessions, max_weight_kg, most_recent, volume_over_time,
        reps_over_time}} where the series are (datetime, value) pairs, oldest first
    """
    trends: dict[str, dict] = {}
    for session in sorted(sessions, key=lambda s: s.start_time):
        for performed in session.exercises:
            title = performed.title.strip()
            if not title:
                continue
            entry = trends.setdefault(title, {
                "total_sessions": 0,
                "max_weight_kg": 0.0,
                "most_recent": None,
                "volume_over_time": [],
                "reps_over_time": [],
            })
            weighted = [s for s in performed.sets if s.is_weighted]
            entry["total_sessions"] += 1
            if weighted:
                entry["max_weight_kg"] = max(entry["max_weight_kg"], max(s.weight_kg for s in weighted))
            entry["most_recent"] = session.start_time
            entry["volume_over_time"].append((session.start_time, sum(s.volume for s in weighted)))
            entry["reps_over_time"].append((session.start_time, sum(s.reps for s in weighted)))
    return trends
