import unittest
from datetime import datetime

from liftplan.models import GeneratedWorkout, WorkoutContext


class WorkoutContextFromDictTests(unittest.TestCase):
    def test_filters_without_type_leave_workout_type_unset(self):
        context = WorkoutContext.from_dict(
            {"user_profile": {}, "workout_filters": {"excluded_exercise_ids": ["squat"]}}
        )
        self.assertIsNone(context.workout_type)
        self.assertEqual(context.excluded_exercise_ids, ["squat"])

    def test_explicit_type_is_kept(self):
        context = WorkoutContext.from_dict(
            {"user_profile": {}, "workout_filters": {"workout_type": "bodyweight"}}
        )
        self.assertEqual(context.workout_type, "bodyweight")

    def test_no_filters_means_no_type(self):
        self.assertIsNone(WorkoutContext.from_dict({"user_profile": {}}).workout_type)


class GeneratedWorkoutTests(unittest.TestCase):
    def test_camel_case_round_trip_fields(self):
        workout = GeneratedWorkout.from_dict(
            {
                "id": "w1",
                "title": "Legs",
                "exercises": [{"id": "squat", "sets": 4, "reps": 5, "isCompleted": True}],
                "estimatedDuration": 25,
                "difficulty": "Beginner",
                "createdAt": "2026-10-19T09:30:00",
            }
        )
        self.assertEqual(workout.exercises[0].reps, "5")
        self.assertTrue(workout.exercises[0].is_completed)
        self.assertEqual(workout.estimated_duration, 25)
        self.assertEqual(workout.created_at, datetime(2026, 10, 19, 9, 30))


if __name__ == "__main__":
    unittest.main()
