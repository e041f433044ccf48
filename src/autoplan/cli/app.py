"""Shared Typer app object, shared option types, and store utilities."""

import asyncio
import logging
from pathlib import Path
from typing import Annotated, Optional

import typer

from ..core.config import AutoplanConfig
from ..core.engine.config_loader import load_config
from ..core.models import ExerciseTemplate, WorkoutSession
from ..io.hevy_client import HevyClient, HevyClientError
from ..io.retry import RetryPolicy
from ..io.state_store import (
    ROUTINE_CACHE_FILENAME,
    SPLIT_STATE_FILENAME,
    RoutineCache,
    SplitStateStore,
    get_default_routine_cache,
    get_default_split_store,
)
from . import views

# Shared options used across all commands
ApiKeyOption = Annotated[
    Optional[str],
    typer.Option("--api-key", envvar="HEVY_API_KEY", help="Hevy API key", show_default=False),
]
StateDirOption = Annotated[
    Optional[Path],
    typer.Option("--state-dir", envvar="AUTOPLAN_STATE_DIR", help="Directory for local state files"),
]
ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="YAML config override (default: <state dir>/autoplan.yaml)"),
]
JsonOption = Annotated[
    bool,
    typer.Option("--json", "-j", help="Output as JSON for machine processing"),
]

app = typer.Typer(
    name="autoplan",
    help="Daily workout routine planner for the Hevy tracker.",
    no_args_is_help=True,
)


@app.callback()
def main_callback(
    verbose: Annotated[
        bool,
        typer.Option("--verbose", "-v", help="Show decision and retry logs"),
    ] = False,
) -> None:
    """
    Plan today's workout from your Hevy history and keep one routine up to date.
    """
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_stores(state_dir: Path | None) -> tuple[SplitStateStore, RoutineCache]:
    """Split state store and routine cache in *state_dir* (or the default)."""
    if state_dir is None:
        return get_default_split_store(), get_default_routine_cache()
    return SplitStateStore(state_dir / SPLIT_STATE_FILENAME), RoutineCache(state_dir / ROUTINE_CACHE_FILENAME)


def get_config(config_path: Path | None, state_dir: Path | None = None) -> AutoplanConfig:
    """Load configuration, exiting with an error message if it is invalid."""
    if config_path is not None and not config_path.exists():
        views.print_error(f"Config file not found: {config_path}")
        raise typer.Exit(1)
    if config_path is None and state_dir is not None and (state_dir / "autoplan.yaml").exists():
        config_path = state_dir / "autoplan.yaml"
    try:
        return load_config(config_path)
    except (ValueError, TypeError) as e:
        views.print_error(f"Invalid configuration: {e}")
        raise typer.Exit(1)


def get_client(api_key: str | None, config: AutoplanConfig) -> HevyClient:
    """Build a HevyClient, exiting if no API key is configured."""
    if not api_key:
        views.print_error("No Hevy API key given.")
        views.print_info("Pass --api-key or set HEVY_API_KEY.")
        raise typer.Exit(1)
    retry = RetryPolicy(max_attempts=config.retry_max_attempts, base_delay=config.retry_base_delay)
    return HevyClient(api_key, retry=retry)


def fetch_history(
    client: HevyClient,
    config: AutoplanConfig,
) -> tuple[list[WorkoutSession], list[ExerciseTemplate]]:
    """Fetch recent workouts and the template catalog, exiting on API errors."""

    async def _fetch() -> tuple[list[WorkoutSession], list[ExerciseTemplate]]:
        async with client:
            sessions = await client.list_workouts(max_sessions=config.analysis_window_sessions)
            templates = await client.list_exercise_templates()
            return sessions, templates

    try:
        return asyncio.run(_fetch())
    except HevyClientError as e:
        views.print_error(str(e))
        raise typer.Exit(1)
