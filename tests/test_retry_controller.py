import json
import unittest

from liftplan.catalog import load_default_catalog
from liftplan.errors import OracleCallFailed
from liftplan.models import ValidationResult
from liftplan.oracle import parse_oracle_response
from liftplan.plan_validator import validate_plan
from liftplan.retry_controller import (
    CORRECTION_CHECKLIST,
    Accepted,
    Attempt,
    Exhausted,
    RetryController,
    build_feedback_prompt,
)


VALID_PLAN = json.dumps(
    {
        "title": "Monday Legs",
        "description": "Squat day.",
        "exercises": [
            {"id": "squat", "sets": 4, "reps": "5"},
            {"id": "romanian-deadlift", "sets": 3, "reps": "8"},
            {"id": "leg-press", "sets": 3, "reps": "10"},
            {"id": "hip-thrust", "sets": 3, "reps": "10"},
        ],
        "estimatedDuration": 48,
        "difficulty": "Intermediate",
    }
)

NO_PRIMARY_PLAN = json.dumps(
    {
        "title": "Arms",
        "description": "Pump day.",
        "exercises": [
            {"id": "barbell-curl", "sets": 3, "reps": "12"},
            {"id": "tricep-pushdown", "sets": 3, "reps": "12"},
        ],
        "estimatedDuration": 24,
        "difficulty": "Intermediate",
    }
)


class FakeOracle:
    """Replays canned responses; Exception instances are raised."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    async def complete(self, prompt):
        self.prompts.append(prompt)
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class RetryControllerTests(unittest.IsolatedAsyncioTestCase):
    @classmethod
    def setUpClass(cls):
        cls.catalog = load_default_catalog()

    def _controller(self, oracle, max_attempts=2):
        return RetryController(
            oracle,
            parse=lambda text: parse_oracle_response(text, 12),
            evaluate=lambda workout: validate_plan(workout, self.catalog),
            max_attempts=max_attempts,
        )

    async def test_first_valid_response_is_accepted_unchanged(self):
        oracle = FakeOracle(VALID_PLAN)
        state = await self._controller(oracle).run("base prompt")
        self.assertIsInstance(state, Accepted)
        self.assertEqual(state.attempts, 1)
        self.assertEqual(state.workout.title, "Monday Legs")
        self.assertEqual(oracle.prompts, ["base prompt"])

    async def test_three_malformed_responses_exhaust(self):
        oracle = FakeOracle("not json", "{broken", "still not json")
        state = await self._controller(oracle).run("base prompt")
        self.assertIsInstance(state, Exhausted)
        self.assertEqual(state.attempts, 3)
        self.assertEqual(len(oracle.prompts), 3)
        self.assertFalse(state.last_validation.is_valid)

    async def test_oracle_failure_consumes_an_attempt(self):
        oracle = FakeOracle(OracleCallFailed("rate limited"), VALID_PLAN)
        state = await self._controller(oracle).run("base prompt")
        self.assertIsInstance(state, Accepted)
        self.assertEqual(state.attempts, 2)
        self.assertIn("OracleCallFailed: rate limited", oracle.prompts[1])

    async def test_unexpected_oracle_exception_is_contained(self):
        oracle = FakeOracle(RuntimeError("boom"), RuntimeError("boom"), RuntimeError("boom"))
        state = await self._controller(oracle).run("base prompt")
        self.assertIsInstance(state, Exhausted)

    async def test_rejection_feeds_issues_into_next_prompt(self):
        oracle = FakeOracle(NO_PRIMARY_PLAN, VALID_PLAN)
        state = await self._controller(oracle).run("base prompt")
        self.assertIsInstance(state, Accepted)
        second = oracle.prompts[1]
        self.assertTrue(second.startswith("base prompt"))
        self.assertIn("CRITICAL: Missing primary lift", second)
        self.assertIn("PLEASE REGENERATE", second)

    async def test_zero_retries_means_single_try(self):
        oracle = FakeOracle(NO_PRIMARY_PLAN)
        state = await self._controller(oracle, max_attempts=0).run("base prompt")
        self.assertIsInstance(state, Exhausted)
        self.assertEqual(state.attempts, 1)


class AdvanceTests(unittest.TestCase):
    def setUp(self):
        self.controller = RetryController(oracle=None, parse=None, evaluate=None, max_attempts=2)
        self.rejection = ValidationResult(
            is_valid=False,
            score=35,
            feedback=["Low total volume for strength development"],
            critical_issues=["Too few exercises"],
            suggestions=["Place primary lifts first"],
        )

    def test_advance_moves_to_next_attempt_with_feedback(self):
        first = self.controller.start("base prompt")
        second = self.controller.advance(first, self.rejection)
        self.assertIsInstance(second, Attempt)
        self.assertEqual(second.number, 1)
        self.assertEqual(second.base_prompt, "base prompt")
        self.assertIn("Too few exercises", second.prompt)

        # Feedback is always built on the original prompt, not stacked.
        third = self.controller.advance(second, self.rejection)
        self.assertEqual(third.prompt.count("WORKOUT VALIDATION FEEDBACK"), 1)

    def test_advance_from_last_attempt_exhausts(self):
        last = Attempt(number=2, prompt="p", base_prompt="p")
        state = self.controller.advance(last, self.rejection)
        self.assertIsInstance(state, Exhausted)
        self.assertEqual(state.attempts, 3)
        self.assertIs(state.last_validation, self.rejection)

    def test_feedback_prompt_lists_all_sections_and_checklist(self):
        prompt = build_feedback_prompt("base prompt", self.rejection)
        self.assertIn("- CRITICAL: Too few exercises", prompt)
        self.assertIn("- ISSUE: Low total volume for strength development", prompt)
        self.assertIn("- Place primary lifts first", prompt)
        for index, rule in enumerate(CORRECTION_CHECKLIST, start=1):
            self.assertIn(f"{index}. {rule}", prompt)
        self.assertEqual(len(CORRECTION_CHECKLIST), 5)


if __name__ == "__main__":
    unittest.main()
