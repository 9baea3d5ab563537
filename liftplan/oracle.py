"""
Generation oracle: Claude API client plus the response parser.

The oracle is untrusted. Its text is parsed into a GeneratedWorkout here and
judged by the plan validator before anything is accepted.
"""

import json
import logging
import os
import re
import uuid
from datetime import datetime

import anthropic

from liftplan.errors import MalformedResponse, OracleCallFailed, OracleUnavailable
from liftplan.models import GeneratedWorkout, WorkoutExercise


logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-sonnet-4-5"
DEFAULT_MAX_TOKENS = 2048
DEFAULT_TIMEOUT = 120

INTEGER_RE = re.compile(r"^\d+$")


class ClaudeOracle:
    """Async wrapper around the Anthropic messages API."""

    def __init__(self, api_key, model=None, max_tokens=None, timeout=None, system_prompt=None):
        """
        Initialize the oracle.

        Args:
            api_key: Anthropic API key
            model: Claude model to use
            max_tokens: Maximum tokens for the response
            timeout: Client timeout in seconds
            system_prompt: Optional system prompt sent with every request
        """
        if not api_key:
            raise OracleUnavailable("No Anthropic API key configured")
        self.client = anthropic.AsyncAnthropic(
            api_key=api_key,
            timeout=timeout or DEFAULT_TIMEOUT,
        )
        self.model = model or DEFAULT_MODEL
        self.max_tokens = max_tokens or DEFAULT_MAX_TOKENS
        self.system_prompt = system_prompt

    async def complete(self, prompt):
        """Send one prompt and return the first text block of the reply."""
        request = {
            "model": self.model,
            "max_tokens": self.max_tokens,
            "messages": [
                {
                    "role": "user",
                    "content": prompt
                }
            ],
        }
        if self.system_prompt:
            request["system"] = self.system_prompt

        try:
            message = await self.client.messages.create(**request)
        except anthropic.APIError as exc:
            raise OracleCallFailed(f"Claude request failed: {exc}") from exc

        try:
            text = message.content[0].text
        except (IndexError, AttributeError) as exc:
            raise OracleCallFailed("Claude returned no text content") from exc

        if not text or not text.strip():
            raise OracleCallFailed("Claude returned an empty response")
        return text


def build_oracle(config):
    """
    Build a ClaudeOracle from the ``claude`` config section.

    Returns None when no API key is configured, which sends generation
    straight to the fallback planner.
    """
    claude_config = (config or {}).get("claude", {}) or {}
    api_key_env = claude_config.get("api_key_env", "ANTHROPIC_API_KEY")
    try:
        return ClaudeOracle(
            api_key=os.getenv(api_key_env),
            model=claude_config.get("model"),
            max_tokens=claude_config.get("max_tokens"),
            timeout=claude_config.get("timeout"),
            system_prompt=claude_config.get("system_prompt"),
        )
    except OracleUnavailable:
        logger.info("%s is not set; oracle disabled", api_key_env)
        return None


def _strip_code_fences(text):
    text = text.strip()
    if text.startswith("```"):
        text = re.sub(r"^```\w*\n?", "", text)
        text = re.sub(r"\n?```$", "", text)
        text = text.strip()
    return text


def _extract_json_object(text):
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        raise MalformedResponse("No JSON object found in response")
    try:
        payload = json.loads(text[start:end + 1])
    except json.JSONDecodeError as exc:
        raise MalformedResponse(f"Invalid JSON in response: {exc}") from exc
    if not isinstance(payload, dict):
        raise MalformedResponse("Response JSON is not an object")
    return payload


def _require_string(payload, key):
    value = payload.get(key)
    if not isinstance(value, str):
        raise MalformedResponse(f"Field '{key}' must be a string")
    return value.strip()


def _parse_sets(raw, exercise_id):
    if isinstance(raw, bool) or not isinstance(raw, int) or raw <= 0:
        raise MalformedResponse(f"Exercise '{exercise_id}' sets must be a positive integer, got {raw!r}")
    return raw


def _parse_reps(raw, exercise_id):
    if isinstance(raw, bool):
        raise MalformedResponse(f"Exercise '{exercise_id}' reps must be an integer string, got {raw!r}")
    if isinstance(raw, int):
        raw = str(raw)
    if not isinstance(raw, str) or not INTEGER_RE.match(raw.strip()) or int(raw) <= 0:
        raise MalformedResponse(f"Exercise '{exercise_id}' reps must be one exact integer, got {raw!r}")
    return str(int(raw))


def _parse_exercise(item, index):
    if not isinstance(item, dict):
        raise MalformedResponse(f"Exercise #{index + 1} is not an object")
    exercise_id = item.get("id")
    if not isinstance(exercise_id, str) or not exercise_id.strip():
        raise MalformedResponse(f"Exercise #{index + 1} has no id")
    exercise_id = exercise_id.strip()
    return WorkoutExercise(
        id=exercise_id,
        sets=_parse_sets(item.get("sets"), exercise_id),
        reps=_parse_reps(item.get("reps"), exercise_id),
        completed_sets=[],
        is_completed=False,
    )


def parse_oracle_response(text, minutes_per_exercise, now=None):
    """
    Parse oracle text into a GeneratedWorkout.

    Args:
        text: Raw response text (may be wrapped in a markdown code fence)
        minutes_per_exercise: Strategy multiplier for estimatedDuration
        now: Timestamp for created_at (defaults to datetime.now())

    Returns:
        GeneratedWorkout

    Raises:
        MalformedResponse: when the text is not a JSON plan matching the contract
    """
    if not text or not text.strip():
        raise MalformedResponse("Empty response")

    payload = _extract_json_object(_strip_code_fences(text))

    title = _require_string(payload, "title")
    description = _require_string(payload, "description")
    difficulty = _require_string(payload, "difficulty")

    raw_exercises = payload.get("exercises")
    if not isinstance(raw_exercises, list) or not raw_exercises:
        raise MalformedResponse("Field 'exercises' must be a non-empty list")
    exercises = [_parse_exercise(item, index) for index, item in enumerate(raw_exercises)]

    reported = payload.get("estimatedDuration")
    estimated_duration = len(exercises) * minutes_per_exercise
    if reported != estimated_duration:
        logger.debug(
            "Oracle estimatedDuration %r replaced with %d", reported, estimated_duration
        )

    return GeneratedWorkout(
        id=uuid.uuid4().hex,
        title=title,
        description=description,
        exercises=exercises,
        estimated_duration=estimated_duration,
        difficulty=difficulty,
        created_at=now or datetime.now(),
    )
