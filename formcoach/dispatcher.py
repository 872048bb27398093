# formcoach/dispatcher.py

import logging
import time
from typing import Optional

from . import analyzers  # noqa: F401  (registers the analyzers)
from .exercises import ExerciseSettings, ExerciseType, get_exercise_settings
from .pose_utils import Pose
from .rep_logic import ANALYZERS, ExerciseState

logger = logging.getLogger(__name__)


def advance(
    state: ExerciseState,
    pose: Optional[Pose],
    now: Optional[float] = None,
    settings: Optional[ExerciseSettings] = None,
) -> ExerciseState:
    """
    Per-frame entry point.

    Routes the frame to the analyzer registered for the state's exercise and
    returns the next state. Without a pose, or with no exercise selected, the
    state is returned unchanged. Never raises.
    """
    if pose is None:
        return state

    exercise = ExerciseType.parse(state.exercise)
    analyzer = ANALYZERS.get(exercise)
    if exercise is ExerciseType.NONE or analyzer is None:
        return state

    now = time.time() if now is None else now
    settings = settings or get_exercise_settings(exercise)
    try:
        return analyzer.advance(state, pose, settings, now)
    except Exception:
        logger.exception("%s analyzer failed, keeping previous state", exercise.value)
        return state
