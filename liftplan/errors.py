"""
Error types raised inside the plan generation pipeline.

None of these escape WorkoutPlanGenerator.generate_plan; they are caught at
the retry/fallback boundary.
"""


class PlanGenerationError(Exception):
    """Base class for recoverable generation failures."""


class OracleUnavailable(PlanGenerationError):
    """No credential or service is configured for the oracle."""


class OracleCallFailed(PlanGenerationError):
    """The oracle request itself failed (network, auth, rate limit, empty body)."""


class MalformedResponse(PlanGenerationError):
    """The oracle answered, but not with a JSON plan matching the contract."""


class CatalogError(RuntimeError):
    """Raised when the exercise catalog file cannot be loaded."""


class ConfigError(RuntimeError):
    """Raised when config file parsing fails."""
