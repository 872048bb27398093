# formcoach/analyzers/bicep_curl.py

from dataclasses import dataclass

from ..exercises import BicepCurlThresholds, ExerciseType
from ..pose_utils import angle_between, angle_from_vertical_down, get_landmarks, vertical_deviation
from ..rep_logic import ExerciseAnalyzer, RepPhase, register_analyzer

LANDMARKS = (
    "left_shoulder", "left_elbow", "left_wrist", "left_hip",
    "right_shoulder", "right_elbow", "right_wrist", "right_hip",
)


@dataclass(frozen=True)
class BicepCurlFeatures:
    elbow_angle: float
    back_deviation: float
    upper_arm_deviation: float


@register_analyzer
class BicepCurlAnalyzer(ExerciseAnalyzer):
    """
    Counts a rep on the way back down (UP -> DOWN). "Up" is the contracted
    position, so the phase naming is inverted relative to the elbow angle.
    """

    exercise = ExerciseType.BICEP_CURL
    thresholds_type = BicepCurlThresholds
    cannot_detect_message = "Cannot detect arms and torso clearly"

    def extract(self, pose):
        lm = get_landmarks(pose, LANDMARKS)
        if any(p is None for p in lm.values()):
            return None

        elbow_angle = (
            angle_between(lm["left_shoulder"], lm["left_elbow"], lm["left_wrist"])
            + angle_between(lm["right_shoulder"], lm["right_elbow"], lm["right_wrist"])
        ) / 2
        back_deviation = (
            vertical_deviation(lm["left_shoulder"], lm["left_hip"])
            + vertical_deviation(lm["right_shoulder"], lm["right_hip"])
        ) / 2
        # Upper arm hanging straight down reads as 0°
        upper_arm_deviation = (
            angle_from_vertical_down(lm["left_elbow"], lm["left_shoulder"])
            + angle_from_vertical_down(lm["right_elbow"], lm["right_shoulder"])
        ) / 2

        return BicepCurlFeatures(
            elbow_angle=elbow_angle,
            back_deviation=back_deviation,
            upper_arm_deviation=upper_arm_deviation,
        )

    def check_form(self, state, f, th):
        state.flag(
            "back_angle",
            f.back_deviation > th.back_angle_max,
            th.error_debounce,
            f"Keep your back straight. Angle: {f.back_deviation:.0f}° (Max: {th.back_angle_max:.0f}°)",
            ("left_hip", "right_hip"),
        )
        state.flag(
            "upper_arm",
            f.upper_arm_deviation > th.upper_arm_movement_max,
            th.error_debounce,
            f"Keep upper arms still. Movement: {f.upper_arm_deviation:.0f}° (Max: {th.upper_arm_movement_max:.0f}°)",
            ("left_shoulder", "right_shoulder", "left_elbow", "right_elbow"),
        )

    def recover_phase(self, f, th):
        return RepPhase.UP if f.elbow_angle < th.up_angle else RepPhase.DOWN

    def transition(self, state, f, settings, th, now):
        if state.phase in (RepPhase.STARTING, RepPhase.DOWN):
            if f.elbow_angle < th.up_angle + th.up_tolerance:
                state.phase = RepPhase.UP
        elif state.phase is RepPhase.UP:
            if f.elbow_angle > th.down_angle - th.down_tolerance:
                state.phase = RepPhase.DOWN
                self.complete_rep(state, settings, now)
