"""
Planning engine for autoplan.

History analysis, split scheduling, exercise selection, routine building
and synchronisation.  Nothing here touches the network directly; remote
access goes through the stores handed in by the caller.
"""

from .autoplan import autoplan, run_daily
from .config import AutoplanConfig, RoutineShape
from .models import AutoplanResult

__all__ = [
    "AutoplanConfig",
    "AutoplanResult",
    "RoutineShape",
    "autoplan",
    "run_daily",
]
