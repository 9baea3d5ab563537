"""
Static domain tables: split templates, primary lifts and exercise priority.
"""

import logging


logger = logging.getLogger(__name__)

# At least one of these must appear in every accepted plan unless the active
# strategy waives the rule.
PRIMARY_LIFTS = [
    "squat",
    "bench-press",
    "deadlift",
    "overhead-press",
]

EXERCISE_PRIORITY = {
    # Competition lifts
    "primary": ["squat", "bench-press", "deadlift"],
    # Accessory lifts with direct carryover
    "secondary": [
        "overhead-press",
        "front-squat",
        "romanian-deadlift",
        "incline-bench-press",
        "pause-bench-press",
        "deficit-deadlift",
        "box-squat",
    ],
    # Supporting movements
    "accessory": [
        "barbell-rows",
        "pull-ups",
        "dips",
        "close-grip-bench-press",
        "bulgarian-split-squat",
        "hip-thrust",
        "face-pulls",
    ],
}

DEFAULT_SPLIT = "full-body"

SPLIT_TEMPLATES = {
    "push": {
        "name": "Push (Chest, Shoulders, Triceps)",
        "primary_muscles": ["chest", "shoulders", "arms"],
        "focus_areas": ["chest", "shoulders"],
        "required_primary_lifts": ["bench-press", "overhead-press"],
        "description": "Upper body pushing movements for pressing strength.",
        "strength_focus": "Bench press technique and overhead pressing strength",
    },
    "pull": {
        "name": "Pull (Back, Biceps)",
        "primary_muscles": ["back", "arms"],
        "focus_areas": ["back"],
        "required_primary_lifts": ["deadlift"],
        "description": "Upper body pulling movements supporting deadlift strength.",
        "strength_focus": "Deadlift support and posterior chain development",
    },
    "legs": {
        "name": "Legs (Quads, Glutes, Hamstrings)",
        "primary_muscles": ["legs", "glutes"],
        "focus_areas": ["legs", "glutes"],
        "required_primary_lifts": ["squat", "deadlift"],
        "description": "Lower body foundation for squat and deadlift.",
        "strength_focus": "Squat technique and posterior chain for deadlifts",
    },
    "upper-body": {
        "name": "Upper Body",
        "primary_muscles": ["chest", "back", "shoulders", "arms"],
        "focus_areas": ["chest", "back", "shoulders"],
        "required_primary_lifts": ["bench-press", "overhead-press"],
        "description": "Complete upper body strength development.",
        "strength_focus": "Balanced pressing and pulling",
    },
    "lower-body": {
        "name": "Lower Body",
        "primary_muscles": ["legs", "glutes", "core"],
        "focus_areas": ["legs", "glutes"],
        "required_primary_lifts": ["squat", "deadlift"],
        "description": "Squat and hinge patterns with trunk stability work.",
        "strength_focus": "Leg drive and hip extension strength",
    },
    "full-body": {
        "name": "Full Body",
        "primary_muscles": ["chest", "back", "legs", "shoulders", "glutes", "core"],
        "focus_areas": ["legs", "chest", "back"],
        "required_primary_lifts": ["squat", "bench-press", "deadlift"],
        "description": "Comprehensive session hitting all major lifts.",
        "strength_focus": "All three competition lifts with supporting movements",
    },
    "calisthenics": {
        "name": "Calisthenics",
        "primary_muscles": ["chest", "back", "shoulders", "arms", "legs", "core"],
        "focus_areas": ["chest", "back", "core"],
        "required_primary_lifts": [],
        "description": "Bodyweight skill and strength session.",
        "strength_focus": "Relative strength through bodyweight progressions",
    },
}

SPLIT_ALIASES = {
    "upper": "upper-body",
    "upper_body": "upper-body",
    "lower": "lower-body",
    "lower_body": "lower-body",
    "full_body": "full-body",
    "fullbody": "full-body",
    "full": "full-body",
    "leg": "legs",
}

# Major groups scanned for training gaps.
MAJOR_MUSCLE_GROUPS = ["chest", "back", "shoulders", "legs", "arms", "glutes"]

MUSCLE_TO_SPLIT = {
    "chest": "push",
    "shoulders": "push",
    "back": "pull",
    "arms": "pull",
    "legs": "legs",
    "glutes": "legs",
    "core": "full-body",
    "full-body": "full-body",
}


def normalize_split(split):
    """Map a user-supplied split name onto a template key."""
    if not split:
        return None
    key = str(split).strip().lower().replace(" ", "-")
    key = SPLIT_ALIASES.get(key, key)
    if key in SPLIT_TEMPLATES:
        return key
    logger.warning("Unknown split %r, using %s", split, DEFAULT_SPLIT)
    return DEFAULT_SPLIT


def get_split_template(split):
    return SPLIT_TEMPLATES[normalize_split(split) or DEFAULT_SPLIT]


def resolve_split(analysis, split_override=None):
    """An explicit split wins, then the auto-focus recommendation, then full body."""
    if split_override:
        return normalize_split(split_override)
    if analysis is not None and analysis.auto_focus:
        return normalize_split(analysis.auto_focus.recommended_split)
    return DEFAULT_SPLIT


def split_label(split):
    return SPLIT_TEMPLATES.get(split, SPLIT_TEMPLATES[DEFAULT_SPLIT])["name"]


def is_primary_lift(exercise_id):
    return exercise_id in PRIMARY_LIFTS


def is_secondary_priority(exercise_id):
    return exercise_id in EXERCISE_PRIORITY["secondary"]
