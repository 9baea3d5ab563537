"""
Deterministic catalog-only plan construction.

Used when the oracle is disabled or the retry loop is exhausted. The plan is
built by a tiered greedy fill, so the same inputs always give the same plan.
"""

import logging
import uuid
from datetime import datetime

from liftplan.catalog import (
    UNGATED_PERCENTILE,
    calculate_overall_percentile,
    strength_level_name,
)
from liftplan.models import GeneratedWorkout, WorkoutExercise
from liftplan.plan_validator import summarize_validation, validate_plan
from liftplan.templates import (
    DEFAULT_SPLIT,
    EXERCISE_PRIORITY,
    PRIMARY_LIFTS,
    get_split_template,
    is_primary_lift,
    is_secondary_priority,
    normalize_split,
)


logger = logging.getLogger(__name__)

MIN_EXERCISES = 4
MAX_EXERCISES = 6
SECONDARY_PICKS = 2

PRIMARY_SETS, PRIMARY_REPS = 4, "5"
SECONDARY_SETS, SECONDARY_REPS = 3, "8"
ACCESSORY_SETS, ACCESSORY_REPS = 3, "12"

MINUTES_PER_EXERCISE = 10
WARMUP_MINUTES = 15


def fallback_duration(exercise_count):
    return exercise_count * MINUTES_PER_EXERCISE + WARMUP_MINUTES


def _prescription(entry):
    if is_primary_lift(entry.id):
        return PRIMARY_SETS, PRIMARY_REPS
    if is_secondary_priority(entry.id) and entry.category == "compound":
        return SECONDARY_SETS, SECONDARY_REPS
    return ACCESSORY_SETS, ACCESSORY_REPS


def _split_title(split):
    return split.replace("-", " ").title()


class _Selection:
    """Ordered, duplicate-free exercise pick list."""

    def __init__(self):
        self.entries = []
        self._ids = set()

    def __len__(self):
        return len(self.entries)

    def __contains__(self, entry):
        return entry.id in self._ids

    def add(self, entry):
        if entry.id in self._ids:
            return False
        self.entries.append(entry)
        self._ids.add(entry.id)
        return True

    def fill(self, candidates, target):
        for entry in candidates:
            if len(self) >= target:
                break
            self.add(entry)


def build_fallback_plan(
    context,
    catalog,
    split=None,
    previous_workout=None,
    require_primary_lift=True,
    now=None,
):
    """
    Build a rule-satisfying plan from the catalog alone.

    Args:
        context: WorkoutContext for this call
        catalog: ExerciseCatalog
        split: Split to build for (defaults to full-body)
        previous_workout: Optional plan to vary from; its exercises rank last
        require_primary_lift: Passed through to the sanity validation
        now: Timestamp for created_at

    Returns:
        GeneratedWorkout with at most 6 exercises
    """
    now = now or datetime.now()
    split = normalize_split(split) or DEFAULT_SPLIT
    template = get_split_template(split)
    percentile = calculate_overall_percentile(
        [progress.percentile_ranking for progress in context.user_progress]
    )
    equipment = context.effective_equipment()
    used_before = set(previous_workout.exercise_ids()) if previous_workout else set()

    def candidates(entries):
        allowed = [entry for entry in entries if context.allows_exercise(entry)]
        # Stable sort: unused entries keep catalog order ahead of reused ones.
        return sorted(allowed, key=lambda entry: entry.id in used_before)

    filtered = candidates(
        catalog.list_by_percentile_and_equipment(
            percentile, equipment, template["primary_muscles"]
        )
    )
    ungated = candidates(catalog.list_by_percentile_and_equipment(UNGATED_PERCENTILE, equipment))

    selection = _Selection()

    # Tier 1: one primary lift, split-required first.
    primary = (
        next((e for e in filtered if e.id in template["required_primary_lifts"]), None)
        or next((e for e in filtered if e.id in PRIMARY_LIFTS), None)
        or next((e for e in ungated if e.id in PRIMARY_LIFTS), None)
    )
    if primary is not None:
        selection.add(primary)
    else:
        logger.info("No primary lift available for equipment %s", equipment)

    # Tier 2: secondary-priority compounds.
    secondary = [
        e for e in filtered
        if e.category == "compound" and e.id in EXERCISE_PRIORITY["secondary"] and e not in selection
    ]
    for entry in secondary[:SECONDARY_PICKS]:
        selection.add(entry)

    # Tier 3: remaining compounds up to the minimum.
    selection.fill([e for e in filtered if e.category == "compound"], MIN_EXERCISES)

    # Tier 4: isolation work up to the target.
    selection.fill([e for e in filtered if e.category == "isolation"], MAX_EXERCISES)

    # Tier 5: sparse catalog, ignore split and tier gating.
    if len(selection) < MIN_EXERCISES:
        logger.info("Filtered catalog too sparse for %s, widening to all tiers", split)
        selection.fill(ungated, MIN_EXERCISES)

    # Tier 6
    chosen = selection.entries[:MAX_EXERCISES]

    exercises = []
    for entry in chosen:
        sets, reps = _prescription(entry)
        exercises.append(WorkoutExercise(id=entry.id, sets=sets, reps=reps))

    workout = GeneratedWorkout(
        id=uuid.uuid4().hex,
        title=f"{_split_title(split)} Strength Workout",
        description=f"{template['description']} Focus: {template['strength_focus']}.",
        exercises=exercises,
        estimated_duration=fallback_duration(len(exercises)),
        difficulty=strength_level_name(percentile),
        created_at=now,
    )

    lookup = catalog.with_custom_exercises(context.custom_exercises)
    validation = validate_plan(workout, lookup, require_primary_lift=require_primary_lift)
    if validation.is_valid:
        logger.info("Fallback plan built: %s", summarize_validation(validation))
    else:
        logger.warning(
            "FallbackValidationAnomaly: %s critical=%s feedback=%s",
            summarize_validation(validation),
            validation.critical_issues,
            validation.feedback,
        )

    return workout
