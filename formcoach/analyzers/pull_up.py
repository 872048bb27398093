# formcoach/analyzers/pull_up.py

from dataclasses import dataclass
from typing import Optional, Tuple

from ..exercises import ExerciseType, PullUpThresholds
from ..pose_utils import angle_between, get_landmark, get_landmarks, mean
from ..rep_logic import ExerciseAnalyzer, RepPhase, register_analyzer

CHIN_MESSAGE = "Pull higher - Chin needs to clear the bar (hands)"


@dataclass(frozen=True)
class PullUpFeatures:
    elbow_angle: float
    wrist_height: float
    nose_height: Optional[float]
    sides: Tuple[str, ...]

    @property
    def chin_above_wrist(self) -> bool:
        # Smaller y is higher on screen
        return self.nose_height is not None and self.nose_height < self.wrist_height


@register_analyzer
class PullUpAnalyzer(ExerciseAnalyzer):
    """
    UP is the hang (arms extended), DOWN is the top of the pull (arms
    contracted). A rep is counted on the way back to the hang.
    """

    exercise = ExerciseType.PULL_UP
    thresholds_type = PullUpThresholds
    cannot_detect_message = "Cannot detect arms and head clearly"

    def extract(self, pose):
        arms = {}
        for side in ("left", "right"):
            lm = get_landmarks(pose, (f"{side}_shoulder", f"{side}_elbow", f"{side}_wrist"))
            if all(p is not None for p in lm.values()):
                arms[side] = lm
        if not arms:
            return None

        nose = get_landmark(pose, "nose")
        return PullUpFeatures(
            elbow_angle=mean([
                angle_between(lm[f"{side}_shoulder"], lm[f"{side}_elbow"], lm[f"{side}_wrist"])
                for side, lm in arms.items()
            ]),
            wrist_height=mean([lm[f"{side}_wrist"][1] for side, lm in arms.items()]),
            nose_height=nose[1] if nose is not None else None,
            sides=tuple(arms),
        )

    def evaluate(self, state, features, settings, now=None):
        # The chin check cannot run without the nose
        if (features is not None and features.nose_height is None
                and self.thresholds(settings).chin_above_wrist_required):
            features = None
        return super().evaluate(state, features, settings, now)

    def _chin_landmarks(self, f):
        return ("nose",) + tuple(f"{side}_wrist" for side in f.sides)

    def check_form(self, state, f, th):
        """
        No per-frame checks. The chin drops below the hands as soon as the
        descent starts, so it is only judged on entry to the top position.
        """

    def recover_phase(self, f, th):
        chin_ok = f.chin_above_wrist or not th.chin_above_wrist_required
        if chin_ok and f.elbow_angle < th.down_angle:
            return RepPhase.DOWN
        return RepPhase.UP

    def transition(self, state, f, settings, th, now):
        if state.phase in (RepPhase.STARTING, RepPhase.UP):
            at_top = f.elbow_angle < th.down_angle + th.down_tolerance
            chin_low = at_top and th.chin_above_wrist_required and not f.chin_above_wrist
            if state.flag("chin", chin_low, th.error_debounce, CHIN_MESSAGE, self._chin_landmarks(f)):
                state.phase = RepPhase.INCORRECT_FORM
            elif at_top and not chin_low:
                state.phase = RepPhase.DOWN
        elif state.phase is RepPhase.DOWN:
            if f.elbow_angle > th.up_angle - th.up_tolerance:
                state.phase = RepPhase.UP
                self.complete_rep(state, settings, now)
