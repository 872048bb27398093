# formcoach/analyzers/forward_lunge.py

from dataclasses import dataclass

from ..exercises import ExerciseType, ForwardLungeThresholds
from ..pose_utils import angle_between, get_landmarks, ratio, vertical_deviation
from ..rep_logic import ExerciseAnalyzer, FeedbackKind, RepPhase, register_analyzer

LANDMARKS = (
    "left_hip", "left_knee", "left_ankle", "left_shoulder",
    "right_hip", "right_knee", "right_ankle", "right_shoulder",
)

TORSO = ("left_hip", "right_hip", "left_shoulder", "right_shoulder")


@dataclass(frozen=True)
class ForwardLungeFeatures:
    front_side: str
    front_knee_angle: float
    back_knee_angle: float
    torso_deviation: float
    hip_height: float
    leg_length: float
    body_height: float
    shoulder_height_diff: float
    # How far the front knee sits past its ankle, in the stepping direction
    knee_past_ankle: float

    @property
    def back_side(self) -> str:
        return "right" if self.front_side == "left" else "left"


@register_analyzer
class ForwardLungeAnalyzer(ExerciseAnalyzer):
    exercise = ExerciseType.FORWARD_LUNGE
    thresholds_type = ForwardLungeThresholds
    cannot_detect_message = "Cannot detect legs and torso clearly"
    rep_message = "Great rep!"

    def extract(self, pose):
        lm = get_landmarks(pose, LANDMARKS)
        if any(p is None for p in lm.values()):
            return None

        # The front shin stays upright, so its knee-to-ankle drop is the larger one
        left_drop = abs(lm["left_ankle"][1] - lm["left_knee"][1])
        right_drop = abs(lm["right_ankle"][1] - lm["right_knee"][1])
        front = "left" if left_drop >= right_drop else "right"
        back = "right" if front == "left" else "left"

        front_hip, front_knee, front_ankle = (lm[f"{front}_hip"], lm[f"{front}_knee"], lm[f"{front}_ankle"])
        back_ankle = lm[f"{back}_ankle"]

        direction = 1.0 if front_ankle[0] >= back_ankle[0] else -1.0
        ankle_y = (lm["left_ankle"][1] + lm["right_ankle"][1]) / 2
        shoulder_y = (lm["left_shoulder"][1] + lm["right_shoulder"][1]) / 2

        return ForwardLungeFeatures(
            front_side=front,
            front_knee_angle=angle_between(front_hip, front_knee, front_ankle),
            back_knee_angle=angle_between(lm[f"{back}_hip"], lm[f"{back}_knee"], back_ankle),
            torso_deviation=(
                vertical_deviation(lm["left_shoulder"], lm["left_hip"])
                + vertical_deviation(lm["right_shoulder"], lm["right_hip"])
            ) / 2,
            hip_height=(lm["left_hip"][1] + lm["right_hip"][1]) / 2,
            leg_length=abs(front_hip[1] - front_ankle[1]),
            body_height=abs(shoulder_y - ankle_y),
            shoulder_height_diff=abs(lm["left_shoulder"][1] - lm["right_shoulder"][1]),
            knee_past_ankle=(front_knee[0] - front_ankle[0]) * direction,
        )

    def capture_baseline(self, state, features):
        state.starting_hip_height = features.hip_height

    def hip_drop(self, state, features):
        if state.starting_hip_height is None:
            return 0.0
        return ratio(features.hip_height - state.starting_hip_height, features.leg_length)

    def check_form(self, state, f, th):
        hip_drop = self.hip_drop(state, f)
        debounce = th.error_debounce
        front_knee = f"{f.front_side}_knee"
        back_knee = f"{f.back_side}_knee"

        near_bottom = state.phase is RepPhase.DOWN and f.front_knee_angle <= th.down_angle + th.front_knee_margin
        valid_down = near_bottom and hip_drop >= th.min_hip_drop_percentage
        valid_up = state.phase is RepPhase.UP and f.front_knee_angle >= th.up_angle - th.up_check_margin
        valid_attempt = valid_down or valid_up

        # near_bottom already caps the angle at down_angle + margin
        state.flag(
            "front_knee",
            valid_down and f.front_knee_angle < th.down_angle - th.front_knee_margin,
            debounce,
            "Front knee is bent too far, aim for 90°",
            (front_knee,),
        )

        low, high = th.back_knee_angle_range
        state.flag(
            "back_knee",
            valid_down and not (low <= f.back_knee_angle <= high),
            debounce,
            "Adjust your back knee, lower it towards the floor",
            (back_knee,),
        )

        state.flag(
            "torso",
            valid_attempt and f.torso_deviation > th.back_angle_max,
            debounce,
            "Keep your torso upright, reduce the forward lean",
            TORSO,
        )

        state.flag(
            "knee_over_toes",
            valid_down and f.knee_past_ankle > f.leg_length * th.knee_position_threshold,
            debounce,
            "Front knee is too far forward, keep it over your ankle",
            (front_knee,),
        )

        state.flag(
            "depth",
            near_bottom and f.front_knee_angle > th.min_depth_angle and hip_drop < th.min_hip_drop_percentage,
            debounce,
            "Go deeper, lower your hips",
            (front_knee,),
        )

        state.flag(
            "shoulders",
            valid_attempt and ratio(f.shoulder_height_diff, f.body_height) > th.shoulder_level_threshold,
            debounce,
            "Keep your shoulders level",
            ("left_shoulder", "right_shoulder"),
        )

    def recover_phase(self, f, th):
        return RepPhase.DOWN if f.front_knee_angle < th.down_angle else RepPhase.UP

    def transition(self, state, f, settings, th, now):
        if state.phase in (RepPhase.STARTING, RepPhase.UP):
            if f.front_knee_angle < th.down_angle + th.down_tolerance:
                state.phase = RepPhase.DOWN
                if state.form_correct:
                    state.report(FeedbackKind.PHASE_PROGRESS, "Good descent, keep going")
        elif state.phase is RepPhase.DOWN:
            if f.front_knee_angle >= th.up_angle - th.up_tolerance:
                state.phase = RepPhase.UP
                self.complete_rep(state, settings, now)
