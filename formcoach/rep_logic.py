# formcoach/rep_logic.py

import logging
import math
import time
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, Iterable, List, Optional, Type, Union

from .exercises import ExerciseSettings, ExerciseType, Thresholds
from .pose_utils import Pose

logger = logging.getLogger(__name__)


class RepPhase(str, Enum):
    STARTING = "starting"
    UP = "up"
    DOWN = "down"
    COUNTING = "counting"  # reserved, never entered
    RESTING = "resting"
    INCORRECT_FORM = "incorrect_form"


class FeedbackKind(str, Enum):
    CANNOT_DETECT = "cannot_detect"
    FORM_FAULT = "form_fault"
    PHASE_PROGRESS = "phase_progress"
    REP_COMPLETE = "rep_complete"
    SET_COMPLETE = "set_complete"
    WORKOUT_COMPLETE = "workout_complete"
    RESTING = "resting"
    RECOVERED = "recovered"


@dataclass(frozen=True)
class Feedback:
    kind: FeedbackKind
    message: str
    fault: Optional[str] = None
    seconds_left: Optional[int] = None


@dataclass
class ExerciseState:
    exercise: ExerciseType
    rep_count: int = 0
    set_count: int = 0
    phase: RepPhase = RepPhase.STARTING
    feedback: List[Feedback] = field(default_factory=list)
    form_correct: bool = True
    form_issues: Dict[str, bool] = field(default_factory=dict)
    last_rep_timestamp: float = 0.0
    total_reps: int = 0
    correct_form_count: int = 0
    consecutive_errors: Dict[str, int] = field(default_factory=dict)
    starting_hip_height: Optional[float] = None
    starting_chest_height: Optional[float] = None
    baseline_captured: bool = False

    @property
    def form_feedback(self) -> List[str]:
        return [item.message for item in self.feedback]

    def next_frame(self) -> "ExerciseState":
        """
        Copy for the next frame: per-frame outputs are cleared, nested maps
        are copied so the previous snapshot is never mutated.
        """
        return replace(
            self,
            feedback=[],
            form_correct=True,
            form_issues={},
            consecutive_errors=dict(self.consecutive_errors),
        )

    def report(self, kind: FeedbackKind, message: str, **extra) -> None:
        self.feedback.append(Feedback(kind, message, **extra))

    def flag(
        self,
        fault: str,
        violated: bool,
        debounce: int,
        message: str,
        landmarks: Iterable[str] = (),
    ) -> bool:
        """
        Hysteresis for one fault category. Returns True when the fault is
        surfaced on this frame.
        """
        if not violated:
            self.consecutive_errors[fault] = 0
            return False

        count = self.consecutive_errors.get(fault, 0) + 1
        self.consecutive_errors[fault] = count
        if count < max(1, debounce):
            return False

        self.report(FeedbackKind.FORM_FAULT, message, fault=fault)
        self.form_correct = False
        for name in landmarks:
            self.form_issues[name] = True
        return True


def create_state(exercise: Union[ExerciseType, str, None], now: Optional[float] = None) -> ExerciseState:
    return ExerciseState(
        exercise=ExerciseType.parse(exercise),
        last_rep_timestamp=time.time() if now is None else now,
    )


# -------------------------------------------------------------
# Shared analyzer protocol
# -------------------------------------------------------------

class ExerciseAnalyzer:
    """
    Base class for the per-exercise analyzers.

    Subclasses provide feature extraction (including the landmark gate), the
    form checks, phase recovery and the exercise-specific transition table.
    `evaluate` runs the common frame protocol around them.
    """

    exercise: ExerciseType = ExerciseType.NONE
    thresholds_type: Type[Thresholds] = Thresholds
    cannot_detect_message = "Cannot detect body clearly"
    fix_form_message = "Fix your form to continue counting reps"
    recovered_message = "Good form, continue your exercise"
    rep_message = "Nice rep!"

    def extract(self, pose: Pose):
        raise NotImplementedError

    def capture_baseline(self, state: ExerciseState, features) -> None:
        pass

    def check_form(self, state: ExerciseState, features, th) -> None:
        raise NotImplementedError

    def recover_phase(self, features, th) -> RepPhase:
        raise NotImplementedError

    def transition(self, state: ExerciseState, features, settings: ExerciseSettings, th, now: float) -> None:
        raise NotImplementedError

    def thresholds(self, settings: ExerciseSettings):
        th = settings.thresholds
        if isinstance(th, self.thresholds_type):
            return th
        logger.warning(
            "%s settings carry %s thresholds, using %s defaults",
            self.exercise.value, type(th).__name__, self.thresholds_type.__name__,
        )
        # Zero angles mean "not configured"; the exercise defaults apply then.
        angles = {name: getattr(th, name) for name in ("up_angle", "down_angle") if getattr(th, name)}
        return self.thresholds_type(**angles)

    def advance(
        self,
        state: ExerciseState,
        pose: Pose,
        settings: ExerciseSettings,
        now: Optional[float] = None,
    ) -> ExerciseState:
        return self.evaluate(state, self.extract(pose), settings, now)

    def evaluate(
        self,
        state: ExerciseState,
        features,
        settings: ExerciseSettings,
        now: Optional[float] = None,
    ) -> ExerciseState:
        now = time.time() if now is None else now
        th = self.thresholds(settings)
        state = state.next_frame()

        # No usable signal: report and freeze phase and counters
        if features is None:
            state.report(FeedbackKind.CANNOT_DETECT, self.cannot_detect_message)
            state.form_correct = False
            return state

        if state.phase is RepPhase.STARTING and not state.baseline_captured:
            self.capture_baseline(state, features)
            state.baseline_captured = True

        self.check_form(state, features, th)

        if not state.form_correct and state.phase in (RepPhase.UP, RepPhase.DOWN):
            logger.debug("%s: %s -> incorrect_form", self.exercise.value, state.phase.value)
            state.phase = RepPhase.INCORRECT_FORM
            state.report(FeedbackKind.FORM_FAULT, self.fix_form_message)
            return state

        recovered = state.form_correct and state.phase is RepPhase.INCORRECT_FORM
        if recovered:
            state.phase = self.recover_phase(features, th)
            state.report(FeedbackKind.RECOVERED, self.recovered_message)

        if state.phase is RepPhase.RESTING:
            self.rest(state, settings, now)
        elif state.phase is not RepPhase.INCORRECT_FORM:
            self.transition(state, features, settings, th, now)

        # A transition gate can fault again on the very frame that recovered
        if recovered and state.phase is RepPhase.INCORRECT_FORM:
            state.feedback = [item for item in state.feedback if item.kind is not FeedbackKind.RECOVERED]
        return state

    def complete_rep(self, state: ExerciseState, settings: ExerciseSettings, now: float) -> None:
        state.rep_count += 1
        state.total_reps += 1
        if state.form_correct:
            state.correct_form_count += 1
            state.report(FeedbackKind.REP_COMPLETE, self.rep_message)
        state.last_rep_timestamp = now
        logger.debug("%s: rep %d (total %d)", self.exercise.value, state.rep_count, state.total_reps)

        if state.rep_count < settings.target_reps:
            return

        state.set_count += 1
        state.rep_count = 0
        state.phase = RepPhase.RESTING
        if state.set_count > settings.sets:
            state.set_count = settings.sets
            state.report(FeedbackKind.WORKOUT_COMPLETE, "Workout complete! Great job!")
        else:
            rest = int(settings.rest_between_sets)
            state.report(
                FeedbackKind.SET_COMPLETE,
                f"Set {state.set_count} complete! Rest for {rest} seconds.",
                seconds_left=rest,
            )
        logger.debug("%s: set %d complete", self.exercise.value, state.set_count)

    def rest(self, state: ExerciseState, settings: ExerciseSettings, now: float) -> None:
        elapsed = now - state.last_rep_timestamp
        if elapsed >= settings.rest_between_sets:
            state.phase = RepPhase.STARTING
            next_set = min(state.set_count + 1, settings.sets)
            state.report(FeedbackKind.PHASE_PROGRESS, f"Starting set {next_set}")
            return
        remaining = int(math.ceil(settings.rest_between_sets - elapsed))
        state.report(FeedbackKind.RESTING, f"Rest: {remaining}s remaining", seconds_left=remaining)


ANALYZERS: Dict[ExerciseType, ExerciseAnalyzer] = {}


def register_analyzer(cls):
    ANALYZERS[cls.exercise] = cls()
    return cls
