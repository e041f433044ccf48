"""Analysis commands: analyze, feedback, trends."""

import json

from ...core.analyzer import analyze_history, long_term_trends, trainer_feedback
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
)


@app.command()
def analyze(
    api_key: ApiKeyOption = None,
    state_dir: StateDirOption = None,
    config_path: ConfigOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Show muscle group and split frequency, and progression suggestions.
    """
    config = get_config(config_path, state_dir)
    client = get_client(api_key, config)
    sessions, templates = fetch_history(client, config)
    analysis = analyze_history(sessions, templates, config=config)

    if json_out:
        print(json.dumps({
            "muscle_frequency": analysis.muscle_frequency,
            "exercise_frequency": analysis.exercise_frequency,
            "weekly_split_frequency": analysis.weekly_split_frequency,
            "progression": {
                title: {
                    "last_weight_kg": r.last_weight_kg,
                    "last_reps": r.last_reps,
                    "volume_change": r.volume_change,
                    "suggestion": r.suggestion,
                }
                for title, r in analysis.progression.items()
            },
        }, indent=2))
        return

    if not sessions:
        views.print_warning("No workouts found.")
        return
    views.print_analysis(analysis, config.display_unit)


@app.command()
def feedback(
    api_key: ApiKeyOption = None,
    state_dir: StateDirOption = None,
    config_path: ConfigOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Per-exercise coaching feedback from the last three weighted sets.
    """
    config = get_config(config_path, state_dir)
    client = get_client(api_key, config)
    sessions, _ = fetch_history(client, config)
    items = trainer_feedback(sessions, config.display_unit)

    if json_out:
        print(json.dumps(items, indent=2))
        return

    if not items:
        views.print_info("No weighted sets logged yet.")
        return
    views.print_feedback(items, config.display_unit)


@app.command()
def trends(
    api_key: ApiKeyOption = None,
    state_dir: StateDirOption = None,
    config_path: ConfigOption = None,
    json_out: JsonOption = False,
) -> None:
    """
    Long-term per-exercise trends: sessions, max weight, volume.
    """
    config = get_config(config_path, state_dir)
    client = get_client(api_key, config)
    sessions, _ = fetch_history(client, config)
    result = long_term_trends(sessions)

    if json_out:
        print(json.dumps(result, indent=2, default=str))
        return

    if not result:
        views.print_info("No workouts found.")
        return
    views.print_trends(result, config.display_unit)
