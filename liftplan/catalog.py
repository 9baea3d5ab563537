"""
Exercise catalog: tier-gated, equipment-tagged exercise lookup.

The catalog is read-only to the generation core. Entries are kept in file
order, and every query preserves that order so selections stay deterministic.
"""

import logging
import math
import os

import yaml

from liftplan.errors import CatalogError
from liftplan.models import CatalogEntry


logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = os.path.join(os.path.dirname(__file__), "data", "exercises.yaml")

TIER_REQUIRED_PERCENTILE = {
    "beginner": 0,
    "intermediate": 25,
    "advanced": 50,
    "elite": 75,
    "god": 90,
}

# Brand-new users (no rankings, or only zero rankings) are gated as if they
# sat at the median. This changes which catalog tiers they see.
DEFAULT_PERCENTILE = 50

UNGATED_PERCENTILE = 100


def required_percentile(tier):
    return TIER_REQUIRED_PERCENTILE.get((tier or "beginner").lower(), 0)


def _round_half_up(value):
    return int(math.floor(value + 0.5))


def calculate_overall_percentile(percentiles):
    """
    Average the positive percentile rankings.

    Returns DEFAULT_PERCENTILE when there is nothing to average.
    """
    ranked = [p for p in (percentiles or []) if p and p > 0]
    if not ranked:
        return DEFAULT_PERCENTILE
    return _round_half_up(sum(ranked) / len(ranked))


def strength_level_name(percentile):
    if percentile >= 90:
        return "God"
    if percentile >= 75:
        return "Elite"
    if percentile >= 50:
        return "Advanced"
    if percentile >= 25:
        return "Intermediate"
    if percentile >= 10:
        return "Beginner"
    return "Untrained"


class ExerciseCatalog:
    """
    Queryable exercise set.

    Usage:
        catalog = load_default_catalog()
        catalog.get_by_id("squat").name  # -> "Back Squat"
        catalog.list_by_percentile_and_equipment(40, ["barbell"], ["legs"])
    """

    def __init__(self, entries):
        self._entries = list(entries)
        self._by_id = {}
        for entry in self._entries:
            if entry.id in self._by_id:
                logger.warning("Duplicate catalog id %s, keeping the first entry", entry.id)
                continue
            self._by_id[entry.id] = entry

    def __iter__(self):
        return iter(self._entries)

    def __len__(self):
        return len(self._entries)

    def __contains__(self, exercise_id):
        return exercise_id in self._by_id

    def get_by_id(self, exercise_id):
        return self._by_id.get(exercise_id)

    def name_for(self, exercise_id):
        entry = self.get_by_id(exercise_id)
        return entry.name if entry else exercise_id

    def list_by_percentile(self, percentile):
        return [e for e in self._entries if required_percentile(e.tier) <= percentile]

    def list_by_percentile_and_equipment(self, percentile, equipment, muscle_filter=None):
        equipment = set(equipment or [])
        muscles = set(muscle_filter) if muscle_filter else None

        results = []
        for entry in self.list_by_percentile(percentile):
            if not equipment.intersection(entry.equipment):
                continue
            if muscles is not None and not muscles.intersection(entry.primary_muscles):
                continue
            results.append(entry)
        return results

    def with_custom_exercises(self, custom_entries):
        """Return a catalog in which user-supplied custom ids also resolve."""
        if not custom_entries:
            return self
        extra = [e for e in custom_entries if e.id not in self._by_id]
        return ExerciseCatalog(self._entries + extra)


def load_catalog(path):
    """Load a catalog YAML file with a top-level ``exercises`` list."""
    if not os.path.exists(path):
        raise CatalogError(f"Exercise catalog not found: {path}")

    try:
        with open(path, "r") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as exc:
        raise CatalogError(f"Invalid catalog YAML {path}: {exc}") from exc

    items = raw.get("exercises") if isinstance(raw, dict) else raw
    if not isinstance(items, list):
        raise CatalogError(f"Catalog {path} must contain an 'exercises' list")

    entries = []
    for item in items:
        if not isinstance(item, dict) or not item.get("id"):
            raise CatalogError(f"Catalog {path} has an entry without an id: {item!r}")
        entries.append(CatalogEntry.from_dict(item))
    return ExerciseCatalog(entries)


def load_default_catalog():
    return load_catalog(DEFAULT_CATALOG_PATH)
