"""
JSON serialization for autoplan models.

Handles conversion between dataclasses and the JSON shapes used by the
Hevy API and the local state files.
"""

from datetime import datetime, timezone
from typing import Any

from ..core.models import (
    ExercisePerformance,
    ExerciseTemplate,
    PlannedSet,
    RemoteRoutine,
    RoutineExerciseEntry,
    RoutinePayload,
    SetRecord,
    SplitAssignment,
    WorkoutSession,
    normalize_name,
)


class ValidationError(Exception):
    """Raised when data validation fails."""

    pass


def parse_timestamp(value: Any) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts a trailing ``Z``; naive values are taken as UTC.

    Raises:
        ValidationError: If the value is not a valid timestamp
    """
    if isinstance(value, datetime):
        dt = value
    else:
        if not isinstance(value, str) or not value.strip():
            raise ValidationError(f"Invalid timestamp: {value!r}")
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            dt = datetime.fromisoformat(text)
        except ValueError as e:
            raise ValidationError(f"Invalid timestamp: {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _optional_number(data: dict[str, Any], key: str, cast: type) -> Any:
    value = data.get(key)
    if value is None:
        return None
    try:
        result = cast(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{key} must be numeric, got {value!r}") from e
    if result < 0:
        raise ValidationError(f"{key} must be non-negative, got {value}")
    return result


def dict_to_set_record(data: dict[str, Any]) -> SetRecord:
    """
    Convert a Hevy set dict to SetRecord.

    Raises:
        ValidationError: If a numeric field is invalid
    """
    return SetRecord(
        weight_kg=_optional_number(data, "weight_kg", float),
        reps=_optional_number(data, "reps", int),
        duration_seconds=_optional_number(data, "duration_seconds", int),
        distance_meters=_optional_number(data, "distance_meters", float),
    )


def dict_to_workout_session(data: dict[str, Any]) -> WorkoutSession:
    """
    Convert a Hevy workout dict to WorkoutSession.

    Raises:
        ValidationError: If required fields are missing or invalid
    """
    if "start_time" not in data:
        raise ValidationError(f"Workout {data.get('id')!r} has no start_time")
    exercises = tuple(
        ExercisePerformance(
            title=str(ex.get("title") or ""),
            template_id=str(ex.get("exercise_template_id") or ""),
            sets=tuple(dict_to_set_record(s) for s in ex.get("sets") or []),
        )
        for ex in data.get("exercises") or []
    )
    return WorkoutSession(
        id=str(data.get("id", "")),
        start_time=parse_timestamp(data["start_time"]),
        exercises=exercises,
        title=str(data.get("title") or ""),
    )


def dict_to_exercise_template(data: dict[str, Any]) -> ExerciseTemplate:
    """
    Convert a Hevy exercise template dict to ExerciseTemplate.

    Raises:
        ValidationError: If id or title is missing
    """
    if not data.get("id") or not data.get("title"):
        raise ValidationError(f"Exercise template needs id and title: {data!r}")
    return ExerciseTemplate(
        id=str(data["id"]),
        title=str(data["title"]),
        primary_muscle_group=normalize_name(data.get("primary_muscle_group")),
        equipment=normalize_name(data.get("equipment")) or "none",
    )


def planned_set_to_dict(planned_set: PlannedSet) -> dict[str, Any]:
    """Convert PlannedSet to the Hevy routine set shape."""
    return {
        "type": planned_set.type,
        "weight_kg": planned_set.weight_kg,
        "reps": planned_set.reps,
        "duration_seconds": planned_set.duration_seconds,
        "distance_meters": None,
    }


def routine_entry_to_dict(entry: RoutineExerciseEntry) -> dict[str, Any]:
    """Convert RoutineExerciseEntry to the Hevy routine exercise shape."""
    return {
        "exercise_template_id": entry.template_id,
        "superset_id": entry.superset_id,
        "rest_seconds": entry.rest_seconds,
        "notes": entry.notes,
        "sets": [planned_set_to_dict(s) for s in entry.sets],
    }


def routine_payload_to_dict(payload: RoutinePayload) -> dict[str, Any]:
    """
    Convert RoutinePayload to the request body for create/update.

    Returns:
        {"routine": {...}} as expected by the Hevy API
    """
    return {
        "routine": {
            "title": payload.title,
            "notes": payload.notes,
            "exercises": [routine_entry_to_dict(e) for e in payload.exercises],
        }
    }


def dict_to_remote_routine(data: dict[str, Any]) -> RemoteRoutine:
    """
    Convert a Hevy routine dict to RemoteRoutine.

    Raises:
        ValidationError: If id or title is missing
    """
    if not data.get("id") or not isinstance(data.get("title"), str):
        raise ValidationError(f"Routine needs id and title: {data!r}")
    updated = data.get("updated_at")
    return RemoteRoutine(
        id=str(data["id"]),
        title=data["title"],
        updated_at=parse_timestamp(updated) if updated else None,
        exercises=tuple(data.get("exercises") or ()),
    )


def remote_routine_to_dict(routine: RemoteRoutine) -> dict[str, Any]:
    """Convert RemoteRoutine to a cache record."""
    return {
        "id": routine.id,
        "title": routine.title,
        "updated_at": routine.updated_at.isoformat() if routine.updated_at else None,
        "exercises": list(routine.exercises),
    }


def unwrap_routine_response(data: Any) -> dict[str, Any]:
    """
    Extract the routine object from a create/update response.

    The API has answered with ``{"routine": [...]}``, ``{"routine": {...}}``,
    a bare list, or the routine itself.

    Raises:
        ValidationError: If no routine object can be found
    """
    if isinstance(data, dict) and "routine" in data:
        data = data["routine"]
    if isinstance(data, list):
        data = data[0] if data else None
    if not isinstance(data, dict):
        raise ValidationError(f"Unexpected routine response: {data!r}")
    return data


def split_assignment_to_dict(assignment: SplitAssignment) -> dict[str, Any]:
    return {"split": assignment.split, "timestamp": assignment.scheduled_at.isoformat()}


def dict_to_split_assignment(data: dict[str, Any]) -> SplitAssignment:
    """
    Convert a persisted ``{split, timestamp}`` record.

    Raises:
        ValidationError: If either field is missing or invalid
    """
    split = data.get("split")
    if not isinstance(split, str) or not split:
        raise ValidationError(f"Invalid split in state: {split!r}")
    return SplitAssignment(split=split, scheduled_at=parse_timestamp(data.get("timestamp")))
