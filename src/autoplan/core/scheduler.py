"""
Split scheduling.

Chooses today's training split from weekly coverage and recency, retrying a
scheduled split whose session was never logged before rotating further.
"""

import logging
import math
from datetime import datetime, timezone
from typing import Protocol

from .config import AutoplanConfig
from .models import HistoryAnalysis, SplitAssignment

logger = logging.getLogger(__name__)


class SplitStateStore(Protocol):
    """Persistence for the last scheduled split."""

    def load_assignment(self) -> SplitAssignment | None: ...

    def save_assignment(self, assignment: SplitAssignment) -> None: ...


def days_since(moment: datetime | None, now: datetime) -> float:
    """Fractional days since *moment*; infinity if it never happened."""
    if moment is None:
        return math.inf
    return (now - moment).total_seconds() / 86400.0


def choose_split(
    analysis: HistoryAnalysis,
    assignment: SplitAssignment | None,
    now: datetime,
    config: AutoplanConfig | None = None,
) -> str:
    """
    Decide today's split.

    Decision order:
    1. A persisted assignment dated after the last logged session was never
       trained: return it unchanged.
    2. Splits with no session this week, longest-rested first.
    3. Least-frequent split this week not trained in the recency guard window.
    4. Longest-rested split.

    Ties fall back to rotation order.

    Args:
        analysis: History analysis (weekly frequency, last hit per split)
        assignment: Split persisted by the previous run, if any
        now: Reference time
        config: Engine configuration

    Returns:
        Split name
    """
    config = config or AutoplanConfig()
    rotation = list(config.rotation)
    if not rotation:
        return config.default_split

    if assignment is not None and assignment.split in config.split_muscles:
        last = analysis.last_session_at
        if last is None or assignment.scheduled_at.date() > last.date():
            logger.info(
                "Scheduled %s on %s was never logged; scheduling it again",
                assignment.split,
                assignment.scheduled_at.date().isoformat(),
            )
            return assignment.split

    weekly = analysis.weekly_split_frequency
    rested = {s: days_since(analysis.split_last_hit.get(s), now) for s in rotation}
    order = {s: i for i, s in enumerate(rotation)}

    uncovered = [s for s in rotation if weekly.get(s, 0) == 0]
    if uncovered:
        split = min(uncovered, key=lambda s: (-rested[s], order[s]))
        logger.info("Coverage-first split: %s (no sessions this week)", split)
        return split

    eligible = [s for s in rotation if rested[s] >= config.split_recency_guard_days]
    if eligible:
        split = min(eligible, key=lambda s: (weekly.get(s, 0), -rested[s], order[s]))
        logger.info(
            "Least-frequent split: %s (%d this week, last hit %.1fd ago)",
            split, weekly.get(split, 0), rested[split],
        )
        return split

    split = min(rotation, key=lambda s: (-rested[s], order[s]))
    logger.info("All splits recent; longest-rested: %s (%.1fd)", split, rested[split])
    return split


def schedule_next_split(
    analysis: HistoryAnalysis,
    store: SplitStateStore,
    now: datetime | None = None,
    config: AutoplanConfig | None = None,
    persist: bool = True,
) -> str:
    """
    Read the persisted assignment, choose the split and persist it.

    Args:
        analysis: History analysis
        store: Split assignment store
        now: Reference time (defaults to current UTC time)
        config: Engine configuration
        persist: Set False to preview without writing state

    Returns:
        Split name
    """
    now = now or datetime.now(timezone.utc)
    split = choose_split(analysis, store.load_assignment(), now, config)
    if persist:
        store.save_assignment(SplitAssignment(split=split, scheduled_at=now))
    return split
