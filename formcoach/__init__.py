# formcoach/__init__.py

from .dispatcher import advance
from .exercises import ExerciseSettings, ExerciseType, get_exercise_settings, list_exercises
from .rep_logic import ExerciseState, Feedback, FeedbackKind, RepPhase, create_state

__all__ = [
    "ExerciseSettings",
    "ExerciseState",
    "ExerciseType",
    "Feedback",
    "FeedbackKind",
    "RepPhase",
    "advance",
    "create_state",
    "get_exercise_settings",
    "list_exercises",
]
