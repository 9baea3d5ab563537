"""
Prompt strategies for the generation oracle.

Each strategy turns (context, analysis, catalog subset) into one prompt that
embeds a closed list of allowed exercise ids and the numeric generation
contract. Strategies are looked up by workout type in PROMPT_STRATEGIES.
"""

import json
import logging
from datetime import datetime

from liftplan.catalog import calculate_overall_percentile
from liftplan.templates import (
    PRIMARY_LIFTS,
    get_split_template,
    resolve_split,
)


logger = logging.getLogger(__name__)

DEFAULT_WORKOUT_TYPE = "powerlifting"


def _gating_percentile(context, percentile):
    if percentile is not None:
        return percentile
    return calculate_overall_percentile(
        [progress.percentile_ranking for progress in context.user_progress]
    )


def _filter_for_context(entries, context):
    return [entry for entry in entries if context.allows_exercise(entry)]


def _custom_exercises(context):
    excluded = set(context.excluded_exercise_ids)
    return [entry for entry in context.custom_exercises if entry.id not in excluded]


def _format_entry(entry, with_equipment=False):
    line = f"{entry.id}: {entry.name} ({', '.join(entry.primary_muscles)}) - {entry.category}"
    if with_equipment:
        line += f" - Equipment: {', '.join(entry.equipment)}"
    return line


def _format_date(now):
    return f"{now:%A, %B} {now.day}"


def _analysis_section(heading, analysis, split):
    recent = ", ".join(analysis.recent_exercise_ids) or "None"
    if analysis.auto_focus:
        focus = analysis.auto_focus
        gaps = (
            f"Priority gaps: {', '.join(focus.muscle_group_gaps)}"
            if focus.muscle_group_gaps
            else "No significant training gaps"
        )
        return (
            f"{heading} (Auto-Generated):\n"
            f"{focus.reasoning}\n"
            f"{gaps}\n"
            f"Recent exercises (avoid overuse): {recent}"
        )

    weaknesses = analysis.split_weaknesses
    if weaknesses is None:
        return ""
    progression = ", ".join(weaknesses.progression_analysis) or "No recent data"
    issues = (
        f"Issues requiring attention: {', '.join(weaknesses.progression_issues)}"
        if weaknesses.progression_issues
        else "All exercises progressing well"
    )
    areas = (
        f"Focus areas: {', '.join(weaknesses.weaker_areas)}"
        if weaknesses.weaker_areas
        else "No specific weak areas identified"
    )
    return (
        f"{heading} ({split.upper()} Split):\n"
        f"Exercise progression over 21 days: {progression}\n"
        f"{issues}\n"
        f"{areas}\n"
        f"Recent exercises (avoid overuse): {recent}"
    )


def _previous_workout_section(previous_workout):
    if not previous_workout:
        return ""
    return (
        "PREVIOUS WORKOUT (regeneration request - the user wants something different):\n"
        f"Title: {previous_workout.title}\n"
        f"Exercises used: {', '.join(previous_workout.exercise_ids())}\n"
        "IMPORTANT: Do not repeat this exact set of exercises. Swap in different exercises "
        "where possible while keeping the same workout type."
    )


def _custom_section(custom_entries):
    if not custom_entries:
        return ""
    lines = [f"{entry.id}: {entry.name} (custom)" for entry in custom_entries]
    return "USER'S CUSTOM EXERCISES (allowed, prefer these when relevant):\n" + "\n".join(lines)


def _profile_section(context, analysis, level_label, extra_lines=None):
    profile = context.user_profile
    duration = context.preferences.duration
    lines = [
        "CLIENT PROFILE:",
        f"- Gender: {profile.gender}",
        f"- {level_label}: {analysis.strength_level} ({analysis.overall_percentile}th percentile)",
        f"- Weight unit: {profile.weight_unit}",
        f"- Target duration: {f'{duration} minutes' if duration else 'not specified'}",
    ]
    lines.extend(extra_lines or [])
    return "\n".join(lines)


def _output_contract(strategy, example_exercises, difficulty, title_hint, description_hint):
    count = len(example_exercises)
    example = {
        "title": title_hint,
        "description": description_hint,
        "exercises": example_exercises,
        "estimatedDuration": strategy.estimated_duration(count),
        "difficulty": difficulty,
    }
    return (
        "CRITICAL: Return ONLY the JSON object below. No markdown, no code blocks, "
        "no explanations, no other text. Start with { and end with }:\n"
        + json.dumps(example)
    )


def _numeric_contract(strategy):
    minutes = strategy.minutes_per_exercise
    low, high = strategy.min_exercises, strategy.max_exercises
    return [
        f"Include between {low} and {high} exercises",
        "Give an exact integer number for sets and reps (reps as a string like \"8\"), never a range",
        (
            f"CRITICAL: For estimatedDuration, calculate as exercises.length * {minutes} "
            f"(e.g., {low} exercises = {low * minutes}, {high} exercises = {high * minutes})"
        ),
    ]


def _numbered(instructions):
    return "\n".join(f"{index}. {text}" for index, text in enumerate(instructions, start=1))


def _join_sections(sections):
    return "\n\n".join(section for section in sections if section)


def _rank(entries, score):
    return sorted(entries, key=score)


class PowerliftingPromptStrategy:
    """Competition-lift-biased prompts: barbell work first, a primary lift required."""

    key = "powerlifting"
    min_exercises = 4
    max_exercises = 7
    minutes_per_exercise = 12
    requires_primary_lift = True

    def estimated_duration(self, exercise_count):
        return exercise_count * self.minutes_per_exercise

    def available_exercises(self, context, catalog, split, percentile=None):
        percentile = _gating_percentile(context, percentile)
        template = get_split_template(split)
        entries = catalog.list_by_percentile_and_equipment(
            percentile, context.effective_equipment(), template["primary_muscles"]
        )
        entries = _rank(
            entries,
            lambda e: -((2 if "barbell" in e.equipment else 0) + (1 if "machine" in e.equipment else 0)),
        )
        return _filter_for_context(entries, context)

    def build_prompt(
        self,
        context,
        analysis,
        catalog,
        custom_request=None,
        split_override=None,
        previous_workout=None,
        now=None,
    ):
        """
        Build the powerlifting generation prompt.

        Args:
            context: WorkoutContext for this call
            analysis: WorkoutAnalysis from the context analyzer
            catalog: ExerciseCatalog
            custom_request: Optional free-text request from the user
            split_override: Optional forced split
            previous_workout: Optional GeneratedWorkout to vary from
            now: Reference time for the date line

        Returns:
            Prompt string
        """
        now = now or datetime.now()
        split = resolve_split(analysis, split_override)
        template = get_split_template(split)
        entries = self.available_exercises(context, catalog, split, analysis.overall_percentile)
        custom_entries = _custom_exercises(context)

        primary = [e for e in entries if e.id in PRIMARY_LIFTS]
        required = [e for e in entries if e.id in template["required_primary_lifts"]]

        instructions = [
            "MANDATORY: Include at least 1 primary lift (squat, bench-press, deadlift, or overhead-press)",
            f"Design a {split} workout targeting: {', '.join(template['focus_areas'])}",
            "Prioritize compound movements that support the competition lifts",
            "Structure: Primary lift -> Competition support -> Accessories",
            "Volume: 3-5 sets per exercise",
            "Rep targets: competition lifts 1-8, support lifts 6-12, accessories 8-15",
        ] + _numeric_contract(self)

        sections = [
            "You are an expert powerlifting coach with competition experience designing training programs.",
            _profile_section(context, analysis, "Powerlifting Strength Level"),
            _analysis_section("POWERLIFTING FOCUS ANALYSIS", analysis, split),
            _previous_workout_section(previous_workout),
            (
                f"TODAY'S POWERLIFTING FOCUS: \"{split}\"\n"
                f"{template['description']}\n"
                f"Powerlifting emphasis: {template['strength_focus']}"
            ),
            (
                "MANDATORY: ALWAYS include at least ONE of these primary lifts:\n"
                + "\n".join(f"{e.id}: {e.name}" for e in primary)
            ),
            (
                "REQUIRED LIFTS for this session (include at least one):\n"
                + "\n".join(f"{e.id}: {e.name} - {template['strength_focus']}" for e in required)
            ),
            (
                "ALL AVAILABLE EXERCISES (use ONLY these IDs, this is the only list of exercises you can use):\n"
                + "\n".join(_format_entry(e) for e in entries)
            ),
            _custom_section(custom_entries),
            "POWERLIFTING COACH INSTRUCTIONS:\n" + _numbered(instructions),
            f"SPECIAL POWERLIFTING REQUEST: {custom_request}" if custom_request else "",
            f"Today is {_format_date(now)}",
            _output_contract(
                self,
                [
                    {"id": "squat", "sets": 4, "reps": "5"},
                    {"id": "leg-press", "sets": 3, "reps": "8"},
                    {"id": "exercise-id", "sets": 3, "reps": "8"},
                    {"id": "exercise-id", "sets": 3, "reps": "10"},
                ],
                analysis.strength_level,
                "A workout title based on the day of the week and the session focus, eg. 'Tuesday Legs'",
                "[2-3 sentence description emphasizing competition lift carryover]",
            ),
        ]
        return _join_sections(sections)


class BodyweightPromptStrategy:
    """Minimal-equipment prompts. The primary lift rule is waived."""

    key = "bodyweight"
    min_exercises = 4
    max_exercises = 8
    minutes_per_exercise = 10
    requires_primary_lift = False

    def estimated_duration(self, exercise_count):
        return exercise_count * self.minutes_per_exercise

    def available_exercises(self, context, catalog, split, percentile=None):
        percentile = _gating_percentile(context, percentile)
        entries = catalog.list_by_percentile_and_equipment(
            percentile, context.effective_equipment()
        )

        def score(entry):
            if "bodyweight" in entry.equipment:
                return 0
            if "dumbbell" in entry.equipment or "kettlebell" in entry.equipment:
                return 1
            return 2

        return _filter_for_context(_rank(entries, score), context)

    def build_prompt(
        self,
        context,
        analysis,
        catalog,
        custom_request=None,
        split_override=None,
        previous_workout=None,
        now=None,
    ):
        now = now or datetime.now()
        split = resolve_split(analysis, split_override)
        entries = self.available_exercises(context, catalog, split, analysis.overall_percentile)

        instructions = [
            "Prioritize compound movements and functional patterns",
            f"Design a {split} workout with progressive difficulty",
            "Include skill-based movements when appropriate (handstands, muscle-ups)",
            "Structure: Compound patterns -> Isolation/Skills -> Core",
            "Volume: 3-4 sets for beginners, 4-6 sets for advanced",
            "Balance pushing and pulling movements",
        ] + _numeric_contract(self)

        sections = [
            "You are an expert calisthenics and bodyweight training coach specializing in minimal equipment workouts.",
            _profile_section(
                context,
                analysis,
                "Fitness Level",
                ["- Training focus: Bodyweight/Calisthenics movements"],
            ),
            _analysis_section("BODYWEIGHT TRAINING ANALYSIS", analysis, split),
            _previous_workout_section(previous_workout),
            (
                f"TODAY'S BODYWEIGHT FOCUS: \"{split}\"\n"
                "Focus on functional movement patterns, progressive overload through variations, "
                "and skill development."
            ),
            (
                "ALL AVAILABLE EXERCISES (use ONLY these IDs):\n"
                + "\n".join(_format_entry(e, with_equipment=True) for e in entries)
            ),
            _custom_section(_custom_exercises(context)),
            "BODYWEIGHT TRAINING INSTRUCTIONS:\n" + _numbered(instructions),
            f"SPECIAL BODYWEIGHT REQUEST: {custom_request}" if custom_request else "",
            f"Today is {_format_date(now)}",
            _output_contract(
                self,
                [
                    {"id": "push-up", "sets": 3, "reps": "12"},
                    {"id": "bodyweight-squat", "sets": 4, "reps": "15"},
                    {"id": "exercise-id", "sets": 3, "reps": "10"},
                    {"id": "exercise-id", "sets": 3, "reps": "8"},
                ],
                analysis.strength_level,
                "A bodyweight workout title based on the movement focus, eg. 'Evening Calisthenics'",
                "[2-3 sentence description emphasizing functional movement and bodyweight progression]",
            ),
        ]
        return _join_sections(sections)


class GeneralFitnessPromptStrategy:
    """Balanced general-fitness prompts that still require one primary lift."""

    key = "general"
    min_exercises = 4
    max_exercises = 8
    minutes_per_exercise = 11
    requires_primary_lift = True

    def estimated_duration(self, exercise_count):
        return exercise_count * self.minutes_per_exercise

    def available_exercises(self, context, catalog, split, percentile=None):
        percentile = _gating_percentile(context, percentile)
        template = get_split_template(split)
        entries = catalog.list_by_percentile_and_equipment(
            percentile, context.effective_equipment(), template["primary_muscles"]
        )
        return _filter_for_context(entries, context)

    def build_prompt(
        self,
        context,
        analysis,
        catalog,
        custom_request=None,
        split_override=None,
        previous_workout=None,
        now=None,
    ):
        now = now or datetime.now()
        split = resolve_split(analysis, split_override)
        template = get_split_template(split)
        entries = self.available_exercises(context, catalog, split, analysis.overall_percentile)
        primary = [e for e in entries if e.id in PRIMARY_LIFTS]
        focus_areas = context.preferences.focus_areas or template["focus_areas"]

        instructions = [
            "Include at least 1 primary lift (squat, bench-press, deadlift, or overhead-press)",
            f"Design a balanced {split} workout targeting: {', '.join(focus_areas)}",
            "Mix compound and isolation movements, compounds first",
            "Volume: 3-4 sets per exercise",
            "Rep targets: strength 5-8, hypertrophy 8-12, endurance 12-15",
        ] + _numeric_contract(self)

        sections = [
            "You are an experienced personal trainer designing a balanced general fitness session.",
            _profile_section(context, analysis, "Strength Level"),
            _analysis_section("TRAINING ANALYSIS", analysis, split),
            _previous_workout_section(previous_workout),
            (
                f"TODAY'S FOCUS: \"{split}\"\n"
                f"{template['description']}"
            ),
            (
                "PRIMARY LIFTS (include at least one):\n"
                + "\n".join(f"{e.id}: {e.name}" for e in primary)
            ),
            (
                "ALL AVAILABLE EXERCISES (use ONLY these IDs):\n"
                + "\n".join(_format_entry(e) for e in entries)
            ),
            _custom_section(_custom_exercises(context)),
            "TRAINER INSTRUCTIONS:\n" + _numbered(instructions),
            f"SPECIAL REQUEST: {custom_request}" if custom_request else "",
            f"Today is {_format_date(now)}",
            _output_contract(
                self,
                [
                    {"id": "bench-press", "sets": 4, "reps": "6"},
                    {"id": "exercise-id", "sets": 3, "reps": "10"},
                    {"id": "exercise-id", "sets": 3, "reps": "12"},
                    {"id": "exercise-id", "sets": 3, "reps": "12"},
                ],
                analysis.strength_level,
                "A short workout title naming the day and focus, eg. 'Thursday Full Body'",
                "[2-3 sentence description of the session and its balance]",
            ),
        ]
        return _join_sections(sections)


PROMPT_STRATEGIES = {
    PowerliftingPromptStrategy.key: PowerliftingPromptStrategy(),
    BodyweightPromptStrategy.key: BodyweightPromptStrategy(),
    GeneralFitnessPromptStrategy.key: GeneralFitnessPromptStrategy(),
}


def get_prompt_strategy(workout_type):
    """Look up the strategy for a workout type; unknown types get powerlifting."""
    strategy = PROMPT_STRATEGIES.get((workout_type or DEFAULT_WORKOUT_TYPE).lower())
    if strategy is None:
        logger.warning("Unknown workout type %r, using %s", workout_type, DEFAULT_WORKOUT_TYPE)
        strategy = PROMPT_STRATEGIES[DEFAULT_WORKOUT_TYPE]
    return strategy


def allowed_exercise_ids(strategy, context, catalog, split, percentile=None):
    """Ids the oracle may use for this call, custom exercises included."""
    ids = [entry.id for entry in strategy.available_exercises(context, catalog, split, percentile)]
    ids.extend(entry.id for entry in _custom_exercises(context) if entry.id not in ids)
    return ids
