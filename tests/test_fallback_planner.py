import unittest
from datetime import datetime

from liftplan.catalog import ExerciseCatalog, load_default_catalog
from liftplan.fallback_planner import build_fallback_plan
from liftplan.models import (
    CatalogEntry,
    EquipmentFilter,
    UserProfile,
    UserProgress,
    WorkoutContext,
    WorkoutFilters,
)
from liftplan.plan_validator import validate_plan
from liftplan.templates import PRIMARY_LIFTS


NOW = datetime(2026, 10, 19, 9, 30)


def _barbell_context(**overrides):
    values = {
        "user_profile": UserProfile(body_weight=200, weight_unit="lbs"),
        "user_progress": [UserProgress(exercise_id="squat", percentile_ranking=40)],
        "available_equipment": ["barbell"],
    }
    values.update(overrides)
    return WorkoutContext(**values)


class FallbackPlannerTests(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.catalog = load_default_catalog()

    def test_barbell_only_intermediate_scenario(self):
        plan = build_fallback_plan(_barbell_context(), self.catalog, now=NOW)
        self.assertEqual(
            plan.exercise_ids(),
            ["squat", "overhead-press", "front-squat", "bench-press", "barbell-shrug", "barbell-calf-raise"],
        )
        self.assertEqual(plan.estimated_duration, 6 * 10 + 15)
        self.assertEqual(plan.title, "Full Body Strength Workout")
        self.assertEqual(plan.difficulty, "Intermediate")
        self.assertEqual(plan.created_at, NOW)
        for exercise_id in plan.exercise_ids():
            self.assertIn("barbell", self.catalog.get_by_id(exercise_id).equipment)
        self.assertTrue(validate_plan(plan, self.catalog).is_valid)

    def test_prescriptions_follow_priority_tiers(self):
        plan = build_fallback_plan(_barbell_context(), self.catalog, now=NOW)
        by_id = {exercise.id: (exercise.sets, exercise.reps) for exercise in plan.exercises}
        self.assertEqual(by_id["squat"], (4, "5"))
        self.assertEqual(by_id["overhead-press"], (4, "5"))
        self.assertEqual(by_id["front-squat"], (3, "8"))
        self.assertEqual(by_id["barbell-shrug"], (3, "12"))
        for exercise in plan.exercises:
            self.assertTrue(exercise.reps.isdigit())
            self.assertEqual(exercise.completed_sets, [])

    def test_split_required_lift_comes_first(self):
        plan = build_fallback_plan(_barbell_context(), self.catalog, split="pull", now=NOW)
        self.assertEqual(plan.exercise_ids()[0], "deadlift")
        self.assertEqual(plan.title, "Pull Strength Workout")

    def test_previous_workout_changes_the_exercise_set(self):
        context = _barbell_context()
        first = build_fallback_plan(context, self.catalog, now=NOW)
        second = build_fallback_plan(context, self.catalog, previous_workout=first, now=NOW)
        self.assertNotEqual(set(first.exercise_ids()), set(second.exercise_ids()))
        self.assertEqual(second.exercise_ids()[0], "deadlift")
        self.assertTrue(validate_plan(second, self.catalog).is_valid)

    def test_is_deterministic(self):
        context = _barbell_context()
        first = build_fallback_plan(context, self.catalog, now=NOW)
        second = build_fallback_plan(context, self.catalog, now=NOW)
        self.assertEqual(first.exercises, second.exercises)

    def test_excluded_ids_are_never_selected(self):
        context = _barbell_context(workout_filters=WorkoutFilters(excluded_exercise_ids=["squat"]))
        plan = build_fallback_plan(context, self.catalog, now=NOW)
        self.assertNotIn("squat", plan.exercise_ids())
        self.assertEqual(plan.exercise_ids()[0], "bench-press")

    def test_bodyweight_only_plan_without_primary_lift(self):
        context = WorkoutContext(
            user_profile=UserProfile(),
            equipment_filter=EquipmentFilter(mode="bodyweight-only"),
            workout_filters=WorkoutFilters(workout_type="bodyweight"),
        )
        plan = build_fallback_plan(
            context, self.catalog, split="calisthenics", require_primary_lift=False, now=NOW
        )
        self.assertEqual(len(plan.exercises), 6)
        self.assertFalse(set(plan.exercise_ids()) & set(PRIMARY_LIFTS))
        self.assertTrue(validate_plan(plan, self.catalog, require_primary_lift=False).is_valid)

    def test_sparse_catalog_uses_emergency_tiers(self):
        catalog = ExerciseCatalog(
            [
                CatalogEntry(id="squat", name="Squat", category="compound",
                             primary_muscles=["legs"], equipment=["barbell"]),
                CatalogEntry(id="deadlift", name="Deadlift", category="compound",
                             primary_muscles=["back", "legs"], equipment=["barbell"]),
                CatalogEntry(id="barbell-curl", name="Curl", category="isolation",
                             primary_muscles=["arms"], equipment=["barbell"]),
                CatalogEntry(id="good-morning", name="Good Morning", category="compound",
                             primary_muscles=["back", "legs"], equipment=["barbell"], tier="god"),
            ]
        )
        plan = build_fallback_plan(_barbell_context(), catalog, split="push", now=NOW)
        self.assertEqual(plan.exercise_ids(), ["squat", "barbell-curl", "deadlift", "good-morning"])
        self.assertEqual(plan.estimated_duration, 55)

    def test_unmatched_equipment_logs_anomaly_and_still_returns(self):
        context = _barbell_context(available_equipment=["resistance-band"])
        with self.assertLogs("liftplan.fallback_planner", level="WARNING") as logs:
            plan = build_fallback_plan(context, self.catalog, now=NOW)
        self.assertEqual(plan.exercises, [])
        self.assertEqual(plan.estimated_duration, 15)
        self.assertTrue(any("FallbackValidationAnomaly" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
