"""
Public entry point: closed-loop workout plan generation.
"""

import logging
from datetime import datetime

from liftplan.catalog import load_catalog, load_default_catalog
from liftplan.context_analyzer import analyze_workout_history, empty_analysis
from liftplan.fallback_planner import build_fallback_plan
from liftplan.models import ValidationResult
from liftplan.oracle import build_oracle, parse_oracle_response
from liftplan.plan_validator import validate_plan
from liftplan.prompt_strategies import (
    DEFAULT_WORKOUT_TYPE,
    allowed_exercise_ids,
    get_prompt_strategy,
)
from liftplan.retry_controller import MAX_RETRY_ATTEMPTS, Accepted, RetryController
from liftplan.templates import resolve_split


logger = logging.getLogger(__name__)


def evaluate_candidate(workout, catalog, require_primary_lift=True, previous_plan=None, allowed_ids=None):
    """
    Validate a candidate against the rules and the allowed exercise list.

    Ids outside ``allowed_ids`` (the tier, equipment and split subset offered
    to the oracle, custom exercises included) are critical. An exact repeat of
    the previous plan only counts against the candidate when the allowed list
    offers at least one exercise the previous plan did not use.
    """
    result = validate_plan(workout, catalog, require_primary_lift=require_primary_lift)
    extra_issues = []

    if allowed_ids is not None:
        allowed = set(allowed_ids)
        outside = [
            exercise_id
            for exercise_id in workout.exercise_ids()
            if exercise_id not in allowed and catalog.get_by_id(exercise_id) is not None
        ]
        if outside:
            extra_issues.append(
                "Exercises not in the allowed list for this user: " + ", ".join(outside)
            )

    if previous_plan:
        previous_ids = set(previous_plan.exercise_ids())
        alternatives = set(allowed_ids or []) - previous_ids
        if set(workout.exercise_ids()) == previous_ids and alternatives:
            extra_issues.append(
                "Same exercises as the previous workout - swap in at least one different exercise"
            )

    if not extra_issues:
        return result

    return ValidationResult(
        is_valid=False,
        score=result.score,
        feedback=list(result.feedback),
        critical_issues=result.critical_issues + extra_issues,
        suggestions=list(result.suggestions),
    )


class WorkoutPlanGenerator:
    """Generates workout plans with Claude, falling back to the catalog planner."""

    def __init__(
        self,
        catalog,
        oracle=None,
        max_attempts=MAX_RETRY_ATTEMPTS,
        clock=None,
        default_workout_type=DEFAULT_WORKOUT_TYPE,
    ):
        """
        Initialize the generator.

        Args:
            catalog: ExerciseCatalog
            oracle: Object with ``async complete(prompt)``, or None to disable
            max_attempts: Retries after the first oracle call
            clock: Zero-argument callable returning the current datetime
            default_workout_type: Strategy used when the context names none
        """
        self.catalog = catalog
        self.oracle = oracle
        self.max_attempts = max_attempts
        self.clock = clock or datetime.now
        self.default_workout_type = default_workout_type

    @classmethod
    def from_config(cls, config, catalog=None):
        config = config or {}
        generation = config.get("generation", {}) or {}
        if catalog is None:
            catalog_path = (config.get("catalog", {}) or {}).get("path")
            catalog = load_catalog(catalog_path) if catalog_path else load_default_catalog()

        return cls(
            catalog=catalog,
            oracle=build_oracle(config),
            max_attempts=generation.get("max_retry_attempts", MAX_RETRY_ATTEMPTS),
            default_workout_type=generation.get("default_workout_type", DEFAULT_WORKOUT_TYPE),
        )

    async def generate_plan(self, context, custom_request=None, split_override=None, previous_plan=None):
        """
        Generate one plan. Analysis and oracle errors never escape; the worst
        case is a fallback plan.

        Args:
            context: WorkoutContext
            custom_request: Optional free-text request passed to the oracle
            split_override: Optional split chosen by the user
            previous_plan: Optional GeneratedWorkout to vary from

        Returns:
            GeneratedWorkout
        """
        now = self.clock()
        strategy = get_prompt_strategy(context.workout_type or self.default_workout_type)
        try:
            analysis = analyze_workout_history(
                context.workout_history,
                self.catalog,
                selected_split=split_override,
                user_progress=context.user_progress,
                now=now,
                weight_unit=context.user_profile.weight_unit,
            )
            split = resolve_split(analysis, split_override)
        except Exception:
            logger.exception("History analysis failed; continuing with an empty analysis")
            analysis = empty_analysis(context.user_progress)
            split = resolve_split(None, split_override)
        logger.info(
            "Generating %s plan: split=%s percentile=%s",
            strategy.key,
            split,
            analysis.overall_percentile,
        )

        if self.oracle is None:
            logger.info("Oracle unavailable; using fallback planner")
            return self._fallback(context, split, previous_plan, strategy, now)

        try:
            outcome = await self._run_oracle(
                context, analysis, strategy, split, custom_request, previous_plan, now
            )
        except Exception:
            logger.exception("Unexpected error on the oracle path; using fallback planner")
            return self._fallback(context, split, previous_plan, strategy, now)

        if isinstance(outcome, Accepted):
            logger.info(
                "Oracle plan accepted after %d attempt(s) with score %d",
                outcome.attempts,
                outcome.validation.score,
            )
            return outcome.workout

        logger.warning("Oracle attempts exhausted (%d); using fallback planner", outcome.attempts)
        return self._fallback(context, split, previous_plan, strategy, now)

    async def _run_oracle(self, context, analysis, strategy, split, custom_request, previous_plan, now):
        prompt = strategy.build_prompt(
            context,
            analysis,
            self.catalog,
            custom_request=custom_request,
            split_override=split,
            previous_workout=previous_plan,
            now=now,
        )
        lookup = self.catalog.with_custom_exercises(context.custom_exercises)
        allowed_ids = allowed_exercise_ids(
            strategy, context, self.catalog, split, analysis.overall_percentile
        )

        def parse(text):
            return parse_oracle_response(text, strategy.minutes_per_exercise, now=now)

        def evaluate(workout):
            return evaluate_candidate(
                workout,
                lookup,
                require_primary_lift=strategy.requires_primary_lift,
                previous_plan=previous_plan,
                allowed_ids=allowed_ids,
            )

        controller = RetryController(self.oracle, parse, evaluate, max_attempts=self.max_attempts)
        return await controller.run(prompt)

    def _fallback(self, context, split, previous_plan, strategy, now):
        return build_fallback_plan(
            context,
            self.catalog,
            split=split,
            previous_workout=previous_plan,
            require_primary_lift=strategy.requires_primary_lift,
            now=now,
        )
