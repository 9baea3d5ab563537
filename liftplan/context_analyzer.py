"""
Derive a training focus from workout history.

Exactly one branch of the returned WorkoutAnalysis is populated: auto_focus
when the user left the split to us, split_weaknesses when they chose one.
"""

import logging
from datetime import datetime, timedelta

from liftplan.catalog import calculate_overall_percentile, strength_level_name
from liftplan.models import (
    LBS_PER_KG,
    AutoFocus,
    SplitWeaknesses,
    WorkoutAnalysis,
)
from liftplan.templates import (
    DEFAULT_SPLIT,
    MAJOR_MUSCLE_GROUPS,
    MUSCLE_TO_SPLIT,
    get_split_template,
    normalize_split,
)


logger = logging.getLogger(__name__)

RECENT_SESSION_COUNT = 3
GAP_DAYS = 3
PROGRESSION_WINDOW_DAYS = 21


def _naive(value):
    """Aware datetimes become naive local time so they compare with datetime.now()."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone().replace(tzinfo=None)
    return value


def _trained_at(workout):
    return _naive(workout.created_at) or datetime.min


def _sorted_history(history):
    return sorted(history or [], key=_trained_at)


def _format_delta(value):
    value = round(value, 1) + 0.0
    return f"{value:+g}"


def collect_recent_exercise_ids(history, sessions=RECENT_SESSION_COUNT):
    """Exercise ids of the last few sessions, duplicates kept."""
    recent = _sorted_history(history)[-sessions:] if sessions > 0 else []
    return [exercise.id for workout in recent for exercise in workout.exercises]


def analyze_auto_focus(history, catalog, now):
    """Recommend the split that closes the largest muscle-group training gap."""
    now = _naive(now)
    if not history:
        return AutoFocus(
            recommended_split=DEFAULT_SPLIT,
            reasoning="No training history yet. A full body session covers every major muscle group.",
            muscle_group_gaps=[],
        )

    last_trained = {}
    for workout in history:
        trained_at = _trained_at(workout)
        for exercise in workout.exercises:
            entry = catalog.get_by_id(exercise.id)
            if not entry:
                continue
            for muscle in entry.primary_muscles:
                if muscle not in MAJOR_MUSCLE_GROUPS:
                    continue
                if muscle not in last_trained or trained_at > last_trained[muscle]:
                    last_trained[muscle] = trained_at

    staleness = []
    for muscle in MAJOR_MUSCLE_GROUPS:
        last = last_trained.get(muscle)
        days = None if last is None else max((now - last).days, 0)
        staleness.append((muscle, days))

    # Never-trained groups first, then the longest gap.
    staleness.sort(key=lambda item: (item[1] is not None, -(item[1] or 0)))

    gaps = [(muscle, days) for muscle, days in staleness if days is None or days >= GAP_DAYS]
    gap_labels = [
        f"{muscle} (never trained)" if days is None else f"{muscle} ({days} days)"
        for muscle, days in gaps
    ]

    gap_splits = {MUSCLE_TO_SPLIT[muscle] for muscle, _ in gaps}
    stalest_muscle, stalest_days = staleness[0]
    if {"push", "pull", "legs"} <= gap_splits:
        recommended = DEFAULT_SPLIT
        reasoning = "Push, pull and leg muscles all have training gaps, so a full body session is recommended."
    else:
        recommended = MUSCLE_TO_SPLIT[stalest_muscle]
        since = "has not been trained yet" if stalest_days is None else f"was last trained {stalest_days} days ago"
        reasoning = f"{stalest_muscle.capitalize()} {since}; a {recommended} session addresses the longest gap."

    return AutoFocus(
        recommended_split=recommended,
        reasoning=reasoning,
        muscle_group_gaps=gap_labels,
    )


def _best_set(completed_sets):
    best = None
    for completed in completed_sets or []:
        if not completed.completed:
            continue
        candidate = (round(completed.weight_in_lbs(), 1), completed.reps)
        if best is None or candidate > best:
            best = candidate
    return best


def analyze_split_weaknesses(history, catalog, split, now, weight_unit="lbs"):
    """Progression trend per split exercise over the trailing window."""
    template = get_split_template(split)
    split_muscles = template["primary_muscles"]
    now = _naive(now)
    window_start = now - timedelta(days=PROGRESSION_WINDOW_DAYS)

    in_window = [
        workout
        for workout in _sorted_history(history)
        if workout.created_at and window_start <= _trained_at(workout) <= now
    ]
    if not in_window:
        return SplitWeaknesses()

    sessions_by_exercise = {}
    muscles_by_exercise = {}
    trained_muscles = set()
    for workout in in_window:
        for exercise in workout.exercises:
            entry = catalog.get_by_id(exercise.id)
            if not entry:
                continue
            touched = [m for m in entry.primary_muscles if m in split_muscles]
            if not touched:
                continue
            trained_muscles.update(touched)
            muscles_by_exercise[exercise.id] = touched
            best = _best_set(exercise.completed_sets)
            if best is None:
                continue
            sessions_by_exercise.setdefault(exercise.id, []).append(best)

    progression_analysis = []
    progression_issues = []
    issue_muscles = []
    for exercise_id, bests in sessions_by_exercise.items():
        name = catalog.name_for(exercise_id)
        if len(bests) < 2:
            progression_analysis.append(f"{name}: 1 session logged")
            continue

        (first_weight, first_reps), (last_weight, last_reps) = bests[0], bests[-1]
        weight_delta = round(last_weight - first_weight, 1)
        rep_delta = last_reps - first_reps
        shown_delta = weight_delta / LBS_PER_KG if weight_unit == "kg" else weight_delta
        progression_analysis.append(
            f"{name}: {_format_delta(shown_delta)} {weight_unit}, {rep_delta:+d} reps over {len(bests)} sessions"
        )

        if weight_delta < 0 or (weight_delta == 0 and rep_delta <= 0):
            trend = "declining" if weight_delta < 0 or rep_delta < 0 else "flat"
            progression_issues.append(f"{name} ({trend})")
            issue_muscles.extend(muscles_by_exercise[exercise_id])

    weaker_areas = [m for m in split_muscles if m not in trained_muscles]
    for muscle in issue_muscles:
        if muscle not in weaker_areas:
            weaker_areas.append(muscle)

    return SplitWeaknesses(
        weaker_areas=weaker_areas,
        progression_analysis=progression_analysis,
        progression_issues=progression_issues,
    )


def empty_analysis(user_progress=None):
    """Analysis with percentile gating only: no history, no focus branch."""
    percentile = calculate_overall_percentile(
        [progress.percentile_ranking for progress in user_progress or []]
    )
    return WorkoutAnalysis(
        recent_exercise_ids=[],
        overall_percentile=percentile,
        strength_level=strength_level_name(percentile),
    )


def analyze_workout_history(
    history,
    catalog,
    selected_split=None,
    user_progress=None,
    now=None,
    weight_unit="lbs",
):
    """
    Build the WorkoutAnalysis for one generation call.

    Args:
        history: List of GeneratedWorkout sessions (any order)
        catalog: ExerciseCatalog used to resolve muscle groups
        selected_split: Split chosen by the user, or None for auto focus
        user_progress: List of UserProgress used for percentile gating
        now: Reference time (defaults to datetime.now())
        weight_unit: Unit used when rendering progression deltas

    Returns:
        WorkoutAnalysis with exactly one of auto_focus / split_weaknesses set
    """
    now = _naive(now) or datetime.now()
    history = list(history or [])
    analysis = empty_analysis(user_progress)
    analysis.recent_exercise_ids = collect_recent_exercise_ids(history)

    split = normalize_split(selected_split)
    if split:
        analysis.split_weaknesses = analyze_split_weaknesses(
            history, catalog, split, now, weight_unit=weight_unit
        )
    else:
        analysis.auto_focus = analyze_auto_focus(history, catalog, now)

    logger.debug(
        "History analysis: %d sessions, percentile %s, branch=%s",
        len(history),
        analysis.overall_percentile,
        "split_weaknesses" if split else "auto_focus",
    )
    return analysis
