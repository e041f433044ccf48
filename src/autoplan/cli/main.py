"""
CLI entry point using Typer.

Commands:
- run: Plan today's routine and write it to Hevy
- next-split: Show (and by default save) today's split
- state: Show the persisted split and cached routines
- analyze: Frequency and progression tables
- feedback: Trainer feedback over the last three sets
- trends: Long-term per-exercise trends
"""

from .app import app
from .commands import analysis, planning  # noqa: F401  (registers commands)

__all__ = ["app"]


if __name__ == "__main__":
    app()
