"""
Title- and muscle-based exercise classification.

The keyword tables are plain data; every lookup goes through a named
function so the tables can be swapped from autoplan.yaml and tested on
their own.
"""

from dataclasses import dataclass
from typing import Final, Iterable, Mapping

from .models import ExerciseTemplate

DEFAULT_KEYWORDS: Final[dict[str, list[str]]] = {
    "compound_leg": [
        "squat", "lunge", "leg press", "split squat", "step up", "hip thrust",
        "glute bridge", "leg curl", "leg extension", "calf raise", "hack squat",
    ],
    "core": [
        "crunch", "plank", "twist", "hold", "sit up", "leg raise", "knee raise",
        "dead bug", "hollow", "l-sit", "russian", "woodchopper", "side bend",
        "ab wheel", "rollout", "mountain climber", "bird dog", "superman",
        "back extension", "hyperextension", "v up", "toe touch", "flutter kick",
        "pallof",
    ],
    "duration": [
        "plank", "hold", "dead bug", "side bridge", "wall sit", "hanging",
        "isometric", "static", "bridge", "superman", "bird dog", "l-sit",
    ],
    "duration_exempt": ["crunch", "twist"],
}


@dataclass(frozen=True)
class AbsSlot:
    """One slot of the abs finisher taxonomy."""

    name: str
    muscle: str
    note: str
    keywords: tuple[str, ...]


DEFAULT_ABS_SLOTS: Final[list[AbsSlot]] = [
    AbsSlot("rectus", "abdominals", "Focus on slow reps", ("crunch", "raise", "sit up", "leg raise")),
    AbsSlot("oblique", "obliques", "Controlled twists", ("twist", "side plank", "woodchopper", "russian", "side bend")),
    AbsSlot("isometric", "abdominals", "Isometric hold", ("plank", "hold", "dead bug", "hollow", "l-sit")),
]


def keyword_table(overrides: Mapping[str, list[str]] | None = None) -> dict[str, list[str]]:
    """Default keyword tables with any configured lists replacing them."""
    table = {k: list(v) for k, v in DEFAULT_KEYWORDS.items()}
    if overrides:
        table.update({k: [w.lower() for w in v] for k, v in overrides.items()})
    return table


def abs_slots(raw: Iterable[Mapping] | None = None) -> list[AbsSlot]:
    """Build the abs slot taxonomy from config entries (defaults if empty)."""
    slots = [
        AbsSlot(
            name=str(d.get("name", f"slot{i}")),
            muscle=str(d["muscle"]).lower(),
            note=str(d.get("note", "")),
            keywords=tuple(str(k).lower() for k in d.get("keywords", ())),
        )
        for i, d in enumerate(raw or ())
    ]
    return slots or list(DEFAULT_ABS_SLOTS)


def title_matches(title: str, keywords: Iterable[str]) -> bool:
    """Case-insensitive substring match of any keyword in *title*."""
    lowered = title.lower()
    return any(k in lowered for k in keywords)


def is_compound_leg(template: ExerciseTemplate, keywords: Mapping[str, list[str]] | None = None) -> bool:
    """True for leg-day movements worth programming (squats, presses, lunges...)."""
    table = keywords or DEFAULT_KEYWORDS
    return title_matches(template.title, table["compound_leg"])


def is_core_exercise(template: ExerciseTemplate, keywords: Mapping[str, list[str]] | None = None) -> bool:
    """True for genuine core work, excluding "core-adjacent" templates."""
    table = keywords or DEFAULT_KEYWORDS
    return title_matches(template.title, table["core"])


def is_abs_template(template: ExerciseTemplate, abs_muscles: Iterable[str] = ("abdominals", "obliques")) -> bool:
    return template.primary_muscle_group in tuple(abs_muscles)


def is_duration_based(
    template: ExerciseTemplate,
    keywords: Mapping[str, list[str]] | None = None,
    abs_muscles: Iterable[str] = ("abdominals", "obliques"),
) -> bool:
    """
    Decide whether sets are logged as seconds held rather than reps.

    Isometric/hold titles are always duration-based.  A bodyweight abs
    exercise is too, unless its title marks it as a rep movement
    (crunches, twists).
    """
    table = keywords or DEFAULT_KEYWORDS
    if title_matches(template.title, table["duration"]):
        return True
    return (
        is_abs_template(template, abs_muscles)
        and template.is_bodyweight
        and not title_matches(template.title, table["duration_exempt"])
    )


def split_for_muscle(muscle: str, split_muscles: Mapping[str, list[str]]) -> str | None:
    """Map a muscle group to the first split that trains it."""
    for split, muscles in split_muscles.items():
        if muscle in muscles:
            return split
    return None
