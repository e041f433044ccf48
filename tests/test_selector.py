"""
Tests for exercise selection: ordering, constraint tiers, under-fill and
the abs finisher slots.
"""

from datetime import timedelta

import pytest

from autoplan.core.analyzer import allow_all
from autoplan.core.config import AutoplanConfig
from autoplan.core.models import ExerciseTemplate, HistoryAnalysis, SetRecord
from autoplan.core.progression import suggest_progression
from autoplan.core.selector import filter_catalog, order_muscles, pick_abs_exercises, pick_exercises


def _ids(picks) -> list[str]:
    return [p.id for p in picks]


class TestPickExercises:
    def test_push_day_fills_count_without_duplicates(self, catalog, now):
        picks = pick_exercises("Push", catalog, HistoryAnalysis(), allow_all, now=now)
        assert len(picks) == 6
        assert len(set(_ids(picks))) == 6
        muscles = {p.template.primary_muscle_group for p in picks}
        assert muscles == {"chest", "shoulders", "triceps"}

    def test_round_robin_prefers_unused_equipment(self, catalog, now):
        picks = pick_exercises("Push", catalog, HistoryAnalysis(), allow_all, count=3, now=now)
        # chest → barbell bench; shoulders skip the barbell press; triceps skip both
        assert _ids(picks) == ["bench", "lateral", "pushdown"]

    def test_recent_titles_are_avoided(self, catalog, now):
        analysis = HistoryAnalysis(recent_titles={"Bench Press (Barbell)"})
        picks = pick_exercises("Push", catalog, analysis, allow_all, count=3, now=now)
        assert "bench" not in _ids(picks)

    def test_recency_window_relaxed_before_giving_up(self, catalog, now):
        chest_only = [t for t in catalog if t.primary_muscle_group == "chest"][:1]
        analysis = HistoryAnalysis(last_performed={"Bench Press (Barbell)": now - timedelta(days=2)})
        config = AutoplanConfig(split_muscles={**AutoplanConfig().split_muscles, "Push": ["chest"]})
        picks = pick_exercises("Push", chest_only, analysis, allow_all, count=1, now=now, config=config)
        assert _ids(picks) == ["bench"]

    def test_variety_filter_applies_first(self, catalog, now):
        def no_bench(t: ExerciseTemplate) -> bool:
            return t.id != "bench"

        picks = pick_exercises("Push", catalog, HistoryAnalysis(), no_bench, count=1, now=now)
        assert _ids(picks) == ["incline"]

    def test_least_performed_preferred(self, catalog, now):
        analysis = HistoryAnalysis(exercise_frequency={"Bench Press (Barbell)": 4})
        picks = pick_exercises("Push", catalog, analysis, allow_all, count=1, now=now)
        assert _ids(picks) == ["incline"]

    def test_legs_only_compound_movements(self, catalog, now):
        picks = pick_exercises("Legs", catalog, HistoryAnalysis(), allow_all, count=8, now=now)
        assert "sled" not in _ids(picks)[:6]
        assert {"squat", "legcurl", "thrust", "calf"} <= set(_ids(picks))

    def test_back_muscles_first_on_pull_day(self, catalog, now):
        picks = pick_exercises("Pull", catalog, HistoryAnalysis(), allow_all, count=2, now=now)
        assert {p.template.primary_muscle_group for p in picks} == {"lats", "upper_back"}

    def test_under_fill_returns_fewer_with_warning(self, now, caplog):
        small = [
            ExerciseTemplate("a", "Bench Press (Barbell)", "chest", "barbell"),
            ExerciseTemplate("b", "Dip", "triceps", "none"),
        ]
        with caplog.at_level("WARNING"):
            picks = pick_exercises("Push", small, HistoryAnalysis(), allow_all, now=now)
        assert _ids(picks) == ["a", "b"]
        assert "Only 2 of 6" in caplog.text

    def test_unknown_split_raises(self, catalog, now):
        with pytest.raises(ValueError, match="Unknown split"):
            pick_exercises("Arms", catalog, HistoryAnalysis(), allow_all, now=now)

    def test_relaxed_ignores_recent_titles(self, now):
        only = [ExerciseTemplate("a", "Bench Press (Barbell)", "chest", "barbell")]
        analysis = HistoryAnalysis(recent_titles={"Bench Press (Barbell)"})
        config = AutoplanConfig(split_muscles={**AutoplanConfig().split_muscles, "Push": ["chest"]})
        picks = pick_exercises("Push", only, analysis, count=1, relaxed=True, now=now, config=config)
        assert _ids(picks) == ["a"]

    def test_notes_carry_progression(self, catalog, now):
        record = suggest_progression(
            "Bench Press (Barbell)", [SetRecord(weight_kg=45, reps=8), SetRecord(weight_kg=50, reps=8)],
        )
        analysis = HistoryAnalysis(progression={"Bench Press (Barbell)": record})
        [pick] = pick_exercises("Push", catalog, analysis, allow_all, count=1, now=now)
        assert pick.note.startswith("Increase weight to 52.5 kg")
        assert pick.weight_kg == 52.5


class TestPickAbsExercises:
    def test_one_per_slot(self, catalog, now):
        picks = pick_abs_exercises(catalog, HistoryAnalysis(), now=now)
        assert _ids(picks) == ["crunch", "twist", "plank"]
        assert [p.note for p in picks] == ["Focus on slow reps", "Controlled twists", "Isometric hold"]

    def test_never_returns_excluded_ids(self, catalog, now):
        picks = pick_abs_exercises(catalog, HistoryAnalysis(), exclude_ids=["crunch", "plank"], now=now)
        assert not {"crunch", "plank"} & set(_ids(picks))
        assert len(picks) == 3

    def test_recently_done_abs_avoided(self, catalog, now):
        analysis = HistoryAnalysis(last_performed={"Crunch": now - timedelta(days=2)})
        picks = pick_abs_exercises(catalog, analysis, now=now)
        assert picks[0].id == "hlr"

    def test_falls_back_to_any_unused(self, now):
        only = [ExerciseTemplate("c", "Crunch", "abdominals", "none")]
        analysis = HistoryAnalysis(recent_titles={"Crunch"})
        picks = pick_abs_exercises(only, analysis, now=now)
        assert _ids(picks) == ["c"]


def test_filter_catalog_drops_excluded_titles(catalog):
    kept = filter_catalog(catalog, AutoplanConfig().excluded_titles)
    assert "deadlift" not in {t.id for t in kept}
    assert len(kept) == len(catalog) - 1


def test_order_muscles():
    ordered = order_muscles(["biceps", "lats", "rear_delts"], {"lats": 5, "biceps": 3}, ["lats"])
    assert ordered == ["lats", "rear_delts", "biceps"]
