"""
JSON-based local state for autoplan.

Two small files under the state directory:
- ``last_scheduled.json``: the split assigned by the previous run
- ``routines.json``: the last known list of remote routines

Both are advisory.  A missing or unreadable file reads as empty so a
damaged state directory degrades to a fresh rotation instead of failing.
"""

import json
import logging
from pathlib import Path

from ..core.engine.config_loader import get_state_dir
from ..core.models import RemoteRoutine, SplitAssignment
from .serializers import (
    ValidationError,
    dict_to_remote_routine,
    dict_to_split_assignment,
    remote_routine_to_dict,
    split_assignment_to_dict,
)

logger = logging.getLogger(__name__)

SPLIT_STATE_FILENAME = "last_scheduled.json"
ROUTINE_CACHE_FILENAME = "routines.json"


def _write_json(path: Path, data: object) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=2)


class SplitStateStore:
    """Persists the last scheduled split as ``{split, timestamp}``."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load_assignment(self) -> SplitAssignment | None:
        """
        Load the persisted assignment.

        Returns:
            SplitAssignment, or None if the file is missing or invalid
        """
        if not self.path.exists():
            return None
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
            return dict_to_split_assignment(data)
        except (json.JSONDecodeError, ValueError, ValidationError, OSError, AttributeError) as e:
            logger.warning("Ignoring unreadable split state %s: %s", self.path, e)
            return None

    def save_assignment(self, assignment: SplitAssignment) -> None:
        """Persist the assignment, creating the state directory if needed."""
        _write_json(self.path, split_assignment_to_dict(assignment))
        logger.debug("Saved split %s to %s", assignment.split, self.path)


class RoutineCache:
    """
    Last known remote routine list.

    Only ever a hint: the remote service is the source of truth.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def exists(self) -> bool:
        return self.path.exists()

    def load(self) -> list[RemoteRoutine]:
        """
        Load cached routines.

        Entries that fail validation are skipped.

        Returns:
            Cached routines, or [] if the file is missing or unreadable
        """
        if not self.path.exists():
            return []
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, ValueError, OSError) as e:
            logger.warning("Ignoring unreadable routine cache %s: %s", self.path, e)
            return []
        if not isinstance(data, list):
            logger.warning("Routine cache %s is not a list; ignoring", self.path)
            return []

        routines: list[RemoteRoutine] = []
        for item in data:
            try:
                routines.append(dict_to_remote_routine(item))
            except (ValidationError, AttributeError) as e:
                logger.warning("Skipping invalid cached routine: %s", e)
        return routines

    def save(self, routines: list[RemoteRoutine]) -> None:
        """Replace the cache contents."""
        _write_json(self.path, [remote_routine_to_dict(r) for r in routines])
        logger.debug("Cached %d routines in %s", len(routines), self.path)

    def ids(self) -> set[str]:
        return {r.id for r in self.load()}


def get_default_split_store() -> SplitStateStore:
    """
    Get a SplitStateStore in the default state directory.

    Returns:
        SplitStateStore instance
    """
    return SplitStateStore(get_state_dir() / SPLIT_STATE_FILENAME)


def get_default_routine_cache() -> RoutineCache:
    """
    Get a RoutineCache in the default state directory.

    Returns:
        RoutineCache instance
    """
    return RoutineCache(get_state_dir() / ROUTINE_CACHE_FILENAME)
