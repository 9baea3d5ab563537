"""
Bounded generate -> validate -> re-prompt loop around the oracle.

The loop is an explicit state machine: Attempt(0) .. Attempt(max_attempts),
ending in Accepted or Exhausted.

Oracle failures, parse failures and validation failures all consume one
attempt. The controller never raises; Exhausted hands control back to the
caller, which falls back to the deterministic planner.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from liftplan.models import GeneratedWorkout, ValidationResult


logger = logging.getLogger(__name__)

MAX_RETRY_ATTEMPTS = 2

CORRECTION_CHECKLIST = [
    "MUST include at least one primary lift (squat, bench-press, deadlift, overhead-press) unless the instructions waive it",
    "MUST include at least 4 exercises",
    "Keep primary lifts in strength rep ranges (1-8 reps) and use exact integers, never ranges",
    "Prioritize compound movements over isolation work",
    "Order the session: primary lift first, then support lifts, then accessories",
]


@dataclass
class Attempt:
    number: int
    prompt: str
    base_prompt: str


@dataclass
class Accepted:
    workout: GeneratedWorkout
    validation: ValidationResult
    attempts: int


@dataclass
class Exhausted:
    attempts: int
    last_validation: Optional[ValidationResult] = None


def rejection_for_failure(exc):
    """Turn an oracle or parse failure into a rejection the next prompt can quote."""
    return ValidationResult(
        is_valid=False,
        score=0,
        feedback=[],
        critical_issues=[f"{type(exc).__name__}: {exc}"],
        suggestions=["Return exactly one JSON object matching the output contract"],
    )


def build_feedback_prompt(base_prompt, rejection):
    """
    Build the corrective re-request.

    Args:
        base_prompt: The original (attempt 0) prompt
        rejection: ValidationResult of the previous attempt

    Returns:
        Prompt string
    """
    lines = ["WORKOUT VALIDATION FEEDBACK - the previous workout was rejected.", ""]
    lines.append("PROBLEMS WITH THE PREVIOUS WORKOUT:")
    lines.extend(f"- CRITICAL: {issue}" for issue in rejection.critical_issues)
    lines.extend(f"- ISSUE: {issue}" for issue in rejection.feedback)
    if not rejection.critical_issues and not rejection.feedback:
        lines.append(f"- Score {rejection.score} is below the passing threshold")

    if rejection.suggestions:
        lines.append("")
        lines.append("IMPROVEMENTS NEEDED:")
        lines.extend(f"- {suggestion}" for suggestion in rejection.suggestions)

    lines.append("")
    lines.append("PLEASE REGENERATE with these corrections:")
    lines.extend(f"{index}. {rule}" for index, rule in enumerate(CORRECTION_CHECKLIST, start=1))
    lines.append("")
    lines.append("Return the corrected workout in the same JSON format.")

    return f"{base_prompt}\n\n" + "\n".join(lines)


class RetryController:
    """
    Drive the oracle through at most ``max_attempts + 1`` tries.

    Args:
        oracle: Object with ``async complete(prompt) -> str``
        parse: Callable turning response text into a GeneratedWorkout
        evaluate: Callable turning a GeneratedWorkout into a ValidationResult
        max_attempts: Number of retries after the first try
    """

    def __init__(self, oracle, parse, evaluate, max_attempts=MAX_RETRY_ATTEMPTS):
        self.oracle = oracle
        self.parse = parse
        self.evaluate = evaluate
        self.max_attempts = max(0, int(max_attempts))

    def start(self, prompt):
        return Attempt(number=0, prompt=prompt, base_prompt=prompt)

    def advance(self, attempt, rejection):
        """Next state after a rejected attempt: another Attempt, or Exhausted."""
        if attempt.number >= self.max_attempts:
            return Exhausted(attempts=attempt.number + 1, last_validation=rejection)
        return Attempt(
            number=attempt.number + 1,
            prompt=build_feedback_prompt(attempt.base_prompt, rejection),
            base_prompt=attempt.base_prompt,
        )

    async def step(self, attempt):
        """Run one attempt and return the next state."""
        try:
            text = await self.oracle.complete(attempt.prompt)
            workout = self.parse(text)
        except Exception as exc:
            logger.warning("Attempt %d failed: %s", attempt.number + 1, exc)
            return self.advance(attempt, rejection_for_failure(exc))

        validation = self.evaluate(workout)
        if validation.is_valid:
            logger.info(
                "Attempt %d accepted with score %d", attempt.number + 1, validation.score
            )
            return Accepted(workout=workout, validation=validation, attempts=attempt.number + 1)

        logger.info(
            "Attempt %d rejected: score %d, %d critical issue(s)",
            attempt.number + 1,
            validation.score,
            len(validation.critical_issues),
        )
        return self.advance(attempt, validation)

    async def run(self, prompt):
        """Loop until Accepted or Exhausted. Attempts are awaited one at a time."""
        state = self.start(prompt)
        while isinstance(state, Attempt):
            state = await self.step(state)
        return state
