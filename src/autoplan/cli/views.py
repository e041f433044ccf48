"""
CLI view formatters using Rich for pretty console output.

Handles table formatting and display of plans, analysis and state.
"""

from datetime import datetime
from typing import Any

from rich.console import Console
from rich.table import Table

from ..core.models import AutoplanResult, HistoryAnalysis, RemoteRoutine, SplitAssignment
from ..core.progression import format_weight
from ..core.routine_builder import is_managed_title

console = Console()


def _fmt_time(moment: datetime | None) -> str:
    if moment is None:
        return "-"
    return moment.strftime("%Y-%m-%d %H:%M")


def _fmt_set(s: dict[str, Any], unit: str) -> str:
    if s.get("duration_seconds"):
        return f"{s['duration_seconds']}s"
    weight = s.get("weight_kg") or 0.0
    if weight:
        return f"{s.get('reps')}x{format_weight(weight, unit)}"
    return f"{s.get('reps')}"


def format_workout_table(workout: dict[str, Any], unit: str = "kg") -> Table:
    """
    Create a Rich table for today's workout.

    Args:
        workout: ``todays_workout`` dict from an AutoplanResult
        unit: Display unit for weights

    Returns:
        Rich Table object
    """
    table = Table(title=workout.get("title") or "Today's workout")

    table.add_column("#", justify="right", style="dim", width=3)
    table.add_column("Exercise", style="cyan")
    table.add_column("SS", justify="center", style="magenta")
    table.add_column("Sets")
    table.add_column("Rest(s)", justify="right")
    table.add_column("Notes", style="dim")

    for i, ex in enumerate(workout.get("exercises", []), 1):
        sets = ex.get("sets") or []
        superset = ex.get("superset_id")
        table.add_row(
            str(i),
            ex.get("title") or ex.get("exercise_template_id") or "?",
            str(superset) if superset is not None else "-",
            ", ".join(_fmt_set(s, unit) for s in sets) or "-",
            str(ex.get("rest_seconds") or "-"),
            ex.get("notes") or "",
        )

    return table


def print_result(result: AutoplanResult, unit: str = "kg") -> None:
    """Print the outcome of an autoplan run."""
    if not result.success:
        print_error(result.error or "Unknown error")
        return
    print_success(result.message)
    if result.todays_workout:
        console.print()
        console.print(format_workout_table(result.todays_workout, unit))
        console.print()


def print_analysis(analysis: HistoryAnalysis, unit: str = "kg") -> None:
    """Print muscle/split frequency and progression tables."""
    splits = Table(title="Splits this week")
    splits.add_column("Split", style="cyan")
    splits.add_column("Sessions", justify="right")
    splits.add_column("Last hit")
    for split, count in analysis.weekly_split_frequency.items():
        splits.add_row(split, str(count), _fmt_time(analysis.split_last_hit.get(split)))
    console.print(splits)

    muscles = Table(title="Muscle group frequency (sets)")
    muscles.add_column("Muscle", style="cyan")
    muscles.add_column("Sets", justify="right")
    for muscle, count in sorted(analysis.muscle_frequency.items(), key=lambda kv: -kv[1]):
        muscles.add_row(muscle, str(count))
    console.print(muscles)

    if not analysis.progression:
        print_info("No progression data yet (need two weighted sets per exercise).")
        return

    progression = Table(title="Progression")
    progression.add_column("Exercise", style="cyan")
    progression.add_column("Last", justify="right")
    progression.add_column("Vol Δ", justify="right")
    progression.add_column("Suggestion", style="green")
    for title, record in sorted(analysis.progression.items()):
        progression.add_row(
            title,
            f"{record.last_reps}x{format_weight(record.last_weight_kg, unit)}",
            f"{record.volume_change:+.1f}",
            record.suggestion,
        )
    console.print(progression)


def print_feedback(feedback: list[dict], unit: str = "kg") -> None:
    """Print the trainer feedback table."""
    table = Table(title="Trainer feedback (last 3 sets)")
    table.add_column("Exercise", style="cyan")
    table.add_column("Avg weight", justify="right")
    table.add_column("Avg reps", justify="right")
    table.add_column("Suggestion", style="green")
    for item in feedback:
        table.add_row(
            item["title"],
            format_weight(item["avg_weight_kg"], unit),
            f"{item['avg_reps']:.1f}",
            item["suggestion"],
        )
    console.print(table)


def print_trends(trends: dict[str, dict], unit: str = "kg") -> None:
    """Print the long-term trends table, most performed first."""
    table = Table(title="Long-term trends")
    table.add_column("Exercise", style="cyan")
    table.add_column("Sessions", justify="right")
    table.add_column("Max weight", justify="right")
    table.add_column("Last volume", justify="right")
    table.add_column("Most recent")
    for title, entry in sorted(trends.items(), key=lambda kv: -kv[1]["total_sessions"]):
        series = entry["volume_over_time"]
        table.add_row(
            title,
            str(entry["total_sessions"]),
            format_weight(entry["max_weight_kg"], unit),
            f"{series[-1][1]:.0f}" if series else "-",
            _fmt_time(entry["most_recent"]),
        )
    console.print(table)


def print_state(assignment: SplitAssignment | None, routines: list[RemoteRoutine], marker: str) -> None:
    """Print the persisted split assignment and cached routines."""
    if assignment is None:
        print_info("No split scheduled yet.")
    else:
        console.print(f"Last scheduled: [bold]{assignment.split}[/bold] at {_fmt_time(assignment.scheduled_at)}")

    table = Table(title="Cached routines")
    table.add_column("ID", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Exercises", justify="right")
    table.add_column("Updated")
    table.add_column("Managed", justify="center")
    for routine in routines:
        table.add_row(
            routine.id,
            routine.title,
            str(routine.exercise_count),
            _fmt_time(routine.updated_at),
            "✓" if is_managed_title(routine.title, marker) else "",
        )
    console.print(table)


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[green]{message}[/green]")


def print_error(message: str) -> None:
    """Print an error message."""
    console.print(f"[red]Error: {message}[/red]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[yellow]Warning: {message}[/yellow]")


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[blue]{message}[/blue]")
