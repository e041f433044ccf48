"""Planning commands: run, next-split, state."""

import asyncio
import json
from datetime import datetime, timezone
from typing import Annotated

import typer

from ...core.analyzer import analyze_history
from ...core.autoplan import run_daily
from ...core.scheduler import choose_split, schedule_next_split
from .. import views
from ..app import (
    ApiKeyOption,
    ConfigOption,
    JsonOption,
    StateDirOption,
    app,
    fetch_history,
    get_client,
    get_config,
    get_stores,
)


@app.command()
def run(
    api_key: ApiKeyOption = None,
    state_dir: StateDirOption = None,
    config_path: ConfigOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Plan today's routine from recent history and write it to Hevy.
    """
    config = get_config(config_path, state_dir)
    client = get_client(api_key, config)
    state, cache = get_stores(state_dir)

    async def _run():
        async with client:
            return await run_daily(client, state, cache, config=config)

    result = asyncio.run(_run())

    if json_out:
        print(json.dumps(result.to_dict(), indent=2, default=str))
    else:
        views.print_result(result, config.display_unit)

    if not result.success:
        raise typer.Exit(1)


@app.command("next-split")
def next_split(
    api_key: ApiKeyOption = None,
    state_dir: StateDirOption = None,
    config_path: ConfigOption = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", "-n", help="Show the decision without saving it"),
    ] = False,
    json_out: JsonOption = False,
) -> None:
    """
    Show which split would be trained today.
    """
    config = get_config(config_path, state_dir)
    client = get_client(api_key, config)
    state, _ = get_stores(state_dir)

    sessions, templates = fetch_history(client, config)
    now = datetime.now(timezone.utc)
    analysis = analyze_history(sessions, templates, now, config)
    if dry_run:
        split = choose_split(analysis, state.load_assignment(), now, config)
    else:
        split = schedule_next_split(analysis, state, now, config)

    if json_out:
        print(json.dumps({
            "split": split,
            "saved": not dry_run,
            "weekly_split_frequency": analysis.weekly_split_frequency,
        }, indent=2))
        return

    views.console.print(f"Next split: [bold cyan]{split}[/bold cyan]")
    if dry_run:
        views.print_info("Dry run: state not saved.")


@app.command()
def state(
    state_dir: StateDirOption = None,
    config_path: ConfigOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show the persisted split assignment and cached routines.
    """
    config = get_config(config_path, state_dir)
    split_store, cache = get_stores(state_dir)
    assignment = split_store.load_assignment()
    routines = cache.load()

    if json_out:
        print(json.dumps({
            "last_scheduled": (
                {"split": assignment.split, "timestamp": assignment.scheduled_at.isoformat()}
                if assignment else None
            ),
            "routines": [{"id": r.id, "title": r.title} for r in routines],
        }, indent=2))
        return

    views.print_state(assignment, routines, config.managed_title_marker)
