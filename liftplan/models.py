"""
Data model shared by the analyzer, prompt strategies, validator and planners.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


ALL_EQUIPMENT = [
    "barbell",
    "dumbbell",
    "machine",
    "smith-machine",
    "bodyweight",
    "cable",
    "kettlebell",
]

EXERCISE_CATEGORIES = ["compound", "isolation", "cardio", "flexibility"]

LBS_PER_KG = 2.20462


def _parse_datetime(value):
    if isinstance(value, datetime):
        return value
    if not value:
        return None
    return datetime.fromisoformat(str(value).replace("Z", "+00:00")).replace(tzinfo=None)


def _first(data, *keys, default=None):
    """Return the first present key so input files can use either naming style."""
    for key in keys:
        if key in data and data[key] is not None:
            return data[key]
    return default


@dataclass
class UserProfile:
    gender: str = "male"
    age: Optional[int] = None
    body_weight: Optional[float] = None
    height: Optional[float] = None
    weight_unit: str = "lbs"

    @classmethod
    def from_dict(cls, data):
        data = data or {}
        return cls(
            gender=_first(data, "gender", default="male"),
            age=_first(data, "age"),
            body_weight=_first(data, "body_weight", "bodyWeight", "weight"),
            height=_first(data, "height"),
            weight_unit=_first(data, "weight_unit", "weightUnitPreference", default="lbs"),
        )


@dataclass
class UserProgress:
    exercise_id: str
    personal_record: float = 0.0
    percentile_ranking: float = 0.0
    strength_level: str = ""

    @classmethod
    def from_dict(cls, data):
        return cls(
            exercise_id=_first(data, "exercise_id", "workoutId", "id"),
            personal_record=float(_first(data, "personal_record", "personalRecord", default=0)),
            percentile_ranking=float(_first(data, "percentile_ranking", "percentileRanking", default=0)),
            strength_level=_first(data, "strength_level", "strengthLevel", default=""),
        )


@dataclass
class CompletedSet:
    weight: float
    reps: int
    unit: str = "lbs"
    completed: bool = True

    def weight_in_lbs(self):
        if self.unit == "kg":
            return self.weight * LBS_PER_KG
        return self.weight

    @classmethod
    def from_dict(cls, data):
        return cls(
            weight=float(_first(data, "weight", default=0)),
            reps=int(_first(data, "reps", default=0)),
            unit=_first(data, "unit", default="lbs"),
            completed=bool(_first(data, "completed", default=True)),
        )


@dataclass
class WorkoutExercise:
    id: str
    sets: int
    reps: str
    completed_sets: List[CompletedSet] = field(default_factory=list)
    is_completed: bool = False

    def to_dict(self):
        return {
            "id": self.id,
            "sets": self.sets,
            "reps": self.reps,
            "completedSets": [
                {"weight": s.weight, "reps": s.reps, "unit": s.unit, "completed": s.completed}
                for s in self.completed_sets
            ],
            "isCompleted": self.is_completed,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(data["id"]),
            sets=int(_first(data, "sets", default=0)),
            reps=str(_first(data, "reps", default="")),
            completed_sets=[
                CompletedSet.from_dict(s)
                for s in _first(data, "completed_sets", "completedSets", default=[])
            ],
            is_completed=bool(_first(data, "is_completed", "isCompleted", default=False)),
        )


@dataclass
class GeneratedWorkout:
    """A candidate or accepted plan. Oracle and fallback plans share this shape."""

    id: str
    title: str
    description: str
    exercises: List[WorkoutExercise]
    estimated_duration: int
    difficulty: str
    created_at: datetime = field(default_factory=datetime.now)

    def exercise_ids(self):
        return [exercise.id for exercise in self.exercises]

    def total_sets(self):
        return sum(exercise.sets for exercise in self.exercises)

    def to_dict(self):
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "exercises": [exercise.to_dict() for exercise in self.exercises],
            "estimatedDuration": self.estimated_duration,
            "difficulty": self.difficulty,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_dict(cls, data):
        return cls(
            id=str(_first(data, "id", default="")),
            title=_first(data, "title", default=""),
            description=_first(data, "description", default=""),
            exercises=[WorkoutExercise.from_dict(e) for e in _first(data, "exercises", default=[])],
            estimated_duration=int(_first(data, "estimated_duration", "estimatedDuration", default=0)),
            difficulty=_first(data, "difficulty", default=""),
            created_at=_parse_datetime(_first(data, "created_at", "createdAt")) or datetime.now(),
        )


@dataclass
class EquipmentFilter:
    mode: str = "all"  # all | bodyweight-only | custom
    equipment: List[str] = field(default_factory=list)

    def resolve(self):
        if self.mode == "bodyweight-only":
            return ["bodyweight"]
        if self.mode == "custom":
            return list(self.equipment)
        return list(ALL_EQUIPMENT)


@dataclass
class WorkoutFilters:
    workout_type: Optional[str] = None
    excluded_exercise_ids: List[str] = field(default_factory=list)


@dataclass
class WorkoutPreferences:
    duration: Optional[int] = None
    focus_areas: List[str] = field(default_factory=list)
    exclude_bodyweight: bool = False


@dataclass
class CatalogEntry:
    id: str
    name: str
    category: str
    primary_muscles: List[str]
    secondary_muscles: List[str] = field(default_factory=list)
    equipment: List[str] = field(default_factory=list)
    tier: str = "beginner"
    description: str = ""
    is_custom: bool = False

    @classmethod
    def from_dict(cls, data, is_custom=False):
        return cls(
            id=str(data["id"]),
            name=_first(data, "name", default=str(data["id"])),
            category=_first(data, "category", default="compound"),
            primary_muscles=list(_first(data, "primary_muscles", "primaryMuscles", default=[])),
            secondary_muscles=list(_first(data, "secondary_muscles", "secondaryMuscles", default=[])),
            equipment=list(_first(data, "equipment", default=[])),
            tier=_first(data, "tier", "themeLevel", default="beginner"),
            description=_first(data, "description", default=""),
            is_custom=bool(_first(data, "is_custom", "isCustom", default=is_custom)),
        )


@dataclass
class WorkoutContext:
    """Input to a single generation call. The pipeline reads it and never mutates it."""

    user_profile: UserProfile
    user_progress: List[UserProgress] = field(default_factory=list)
    available_equipment: List[str] = field(default_factory=list)
    workout_history: List[GeneratedWorkout] = field(default_factory=list)
    equipment_filter: Optional[EquipmentFilter] = None
    workout_filters: Optional[WorkoutFilters] = None
    custom_exercises: List[CatalogEntry] = field(default_factory=list)
    preferences: WorkoutPreferences = field(default_factory=WorkoutPreferences)

    @property
    def workout_type(self):
        if self.workout_filters:
            return self.workout_filters.workout_type
        return None

    @property
    def excluded_exercise_ids(self):
        if self.workout_filters:
            return list(self.workout_filters.excluded_exercise_ids)
        return []

    def allows_exercise(self, entry):
        """False for excluded ids and, when requested, bodyweight-only movements."""
        if entry.id in self.excluded_exercise_ids:
            return False
        if self.preferences.exclude_bodyweight and set(entry.equipment) <= {"bodyweight"}:
            return False
        return True

    def effective_equipment(self):
        """
        Equipment the user can train with.

        An explicit equipment filter wins. Otherwise the declared equipment is
        used, and an empty declaration means no restriction.
        """
        if self.equipment_filter:
            return self.equipment_filter.resolve()
        if self.available_equipment:
            return list(self.available_equipment)
        return list(ALL_EQUIPMENT)

    @classmethod
    def from_dict(cls, data):
        equipment_filter = None
        if data.get("equipment_filter"):
            raw = data["equipment_filter"]
            equipment_filter = EquipmentFilter(
                mode=raw.get("mode", "all"),
                equipment=list(raw.get("equipment") or []),
            )

        workout_filters = None
        if data.get("workout_filters"):
            raw = data["workout_filters"]
            workout_filters = WorkoutFilters(
                workout_type=raw.get("workout_type"),
                excluded_exercise_ids=list(raw.get("excluded_exercise_ids") or []),
            )

        raw_prefs = data.get("preferences") or {}
        preferences = WorkoutPreferences(
            duration=raw_prefs.get("duration"),
            focus_areas=list(raw_prefs.get("focus_areas") or []),
            exclude_bodyweight=bool(raw_prefs.get("exclude_bodyweight", False)),
        )

        return cls(
            user_profile=UserProfile.from_dict(data.get("user_profile")),
            user_progress=[UserProgress.from_dict(p) for p in data.get("user_progress") or []],
            available_equipment=list(data.get("available_equipment") or []),
            workout_history=[GeneratedWorkout.from_dict(w) for w in data.get("workout_history") or []],
            equipment_filter=equipment_filter,
            workout_filters=workout_filters,
            custom_exercises=[
                CatalogEntry.from_dict(e, is_custom=True) for e in data.get("custom_exercises") or []
            ],
            preferences=preferences,
        )


@dataclass
class AutoFocus:
    recommended_split: str
    reasoning: str
    muscle_group_gaps: List[str] = field(default_factory=list)


@dataclass
class SplitWeaknesses:
    weaker_areas: List[str] = field(default_factory=list)
    progression_analysis: List[str] = field(default_factory=list)
    progression_issues: List[str] = field(default_factory=list)


@dataclass
class WorkoutAnalysis:
    recent_exercise_ids: List[str]
    overall_percentile: int
    strength_level: str
    auto_focus: Optional[AutoFocus] = None
    split_weaknesses: Optional[SplitWeaknesses] = None


@dataclass
class ValidationResult:
    is_valid: bool
    score: int
    feedback: List[str] = field(default_factory=list)
    critical_issues: List[str] = field(default_factory=list)
    suggestions: List[str] = field(default_factory=list)
