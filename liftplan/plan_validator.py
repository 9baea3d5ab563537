"""
Validation utilities for generated workout plans.

validate_plan is a pure scoring function: the same plan and catalog always
produce the same ValidationResult, whether the plan came from the oracle or
from the fallback planner.
"""

import re

from liftplan.models import ValidationResult
from liftplan.templates import PRIMARY_LIFTS


HIGH_REP_RE = re.compile(r"15|20|25")
BIG_THREE_TOKENS = ["squat", "bench", "deadlift"]

STARTING_SCORE = 100
PASSING_SCORE = 60
MIN_EXERCISES = 4
MAX_EXERCISES = 7
LATEST_PRIMARY_INDEX = 2
MIN_DURATION = 30
MAX_DURATION = 90
MIN_TOTAL_SETS = 10
MAX_TOTAL_SETS = 25


def _resolve_entries(workout, catalog):
    resolved = []
    unresolved = []
    for exercise in workout.exercises:
        entry = catalog.get_by_id(exercise.id)
        if entry is None:
            unresolved.append(exercise.id)
        else:
            resolved.append((exercise, entry))
    return resolved, unresolved


def validate_plan(workout, catalog, require_primary_lift=True):
    """
    Score a candidate plan against the hard rule set.

    Args:
        workout: GeneratedWorkout candidate
        catalog: ExerciseCatalog (custom exercises already merged in)
        require_primary_lift: False when the active strategy waives the rule

    Returns:
        ValidationResult
    """
    feedback = []
    critical_issues = []
    suggestions = []
    score = STARTING_SCORE

    exercises = workout.exercises
    exercise_count = len(exercises)
    resolved, unresolved = _resolve_entries(workout, catalog)

    has_primary_lift = any(exercise.id in PRIMARY_LIFTS for exercise in exercises)
    if require_primary_lift and not has_primary_lift:
        critical_issues.append(
            "Missing primary lift (squat, bench-press, deadlift, or overhead-press)"
        )
        score -= 40

    if exercise_count < MIN_EXERCISES:
        critical_issues.append(f"Too few exercises (minimum {MIN_EXERCISES} for a complete session)")
        score -= 25
    elif exercise_count > MAX_EXERCISES:
        feedback.append("High exercise count - ensure adequate recovery between sessions")
        score -= 10

    compound_count = sum(1 for _, entry in resolved if entry.category == "compound")
    isolation_count = sum(1 for _, entry in resolved if entry.category == "isolation")

    if compound_count == 0:
        critical_issues.append("No compound movements - strength sessions require compound exercises")
        score -= 30

    if compound_count < isolation_count and exercise_count > MIN_EXERCISES:
        feedback.append("Consider prioritizing compound movements over isolation work")
        score -= 10

    high_rep_primaries = [
        exercise
        for exercise, _ in resolved
        if exercise.id in PRIMARY_LIFTS and HIGH_REP_RE.search(str(exercise.reps))
    ]
    if high_rep_primaries:
        feedback.append("Primary lifts should stay in strength rep ranges (1-8 reps)")
        score -= 15

    muscle_groups = set()
    for _, entry in resolved:
        muscle_groups.update(entry.primary_muscles)
    if len(muscle_groups) < 2 and exercise_count > MIN_EXERCISES:
        feedback.append("Consider adding variety in muscle groups targeted")
        score -= 10

    primary_index = next(
        (index for index, exercise in enumerate(exercises) if exercise.id in PRIMARY_LIFTS),
        -1,
    )
    if primary_index > LATEST_PRIMARY_INDEX:
        suggestions.append("Consider placing primary lifts earlier in the workout when energy is highest")
        score -= 5

    if workout.estimated_duration < MIN_DURATION:
        feedback.append("Short duration may not allow for proper warm-up and main lift work")
        score -= 10
    elif workout.estimated_duration > MAX_DURATION:
        feedback.append("Long duration may lead to fatigue affecting lift quality")
        score -= 5

    total_sets = sum(exercise.sets for exercise in exercises)
    if total_sets < MIN_TOTAL_SETS:
        feedback.append("Low total volume for strength development")
        score -= 10
    elif total_sets > MAX_TOTAL_SETS:
        feedback.append("High volume may impact recovery")
        score -= 5

    if score > 70:
        ids = [exercise.id for exercise in exercises]
        if not any(token in exercise_id for exercise_id in ids for token in BIG_THREE_TOKENS):
            suggestions.append("Consider including at least one of the big 3 movements (squat, bench, deadlift)")

    if unresolved:
        critical_issues.append(
            "Unknown exercise ids (not in the catalog): " + ", ".join(unresolved)
        )

    is_valid = not critical_issues and score >= PASSING_SCORE
    return ValidationResult(
        is_valid=is_valid,
        score=max(0, score),
        feedback=feedback,
        critical_issues=critical_issues,
        suggestions=suggestions,
    )


def summarize_validation(result):
    status = "valid" if result.is_valid else "invalid"
    return (
        f"Validation: {status}, score {result.score}, "
        f"{len(result.critical_issues)} critical, {len(result.feedback)} issue(s), "
        f"{len(result.suggestions)} suggestion(s)."
    )
