# formcoach/analyzers/squat.py

from dataclasses import dataclass

from ..exercises import ExerciseType, SquatThresholds
from ..pose_utils import angle_between, get_landmarks, ratio, vertical_deviation
from ..rep_logic import ExerciseAnalyzer, FeedbackKind, RepPhase, register_analyzer

LANDMARKS = (
    "left_hip", "left_knee", "left_ankle", "left_shoulder",
    "right_hip", "right_knee", "right_ankle", "right_shoulder",
)

BACK_AND_SHOULDERS = ("left_hip", "right_hip", "left_shoulder", "right_shoulder")


@dataclass(frozen=True)
class SquatFeatures:
    knee_angle: float
    back_deviation: float
    hip_height: float
    leg_length: float
    body_height: float
    shoulder_height_diff: float
    # Positive when the knee sits inside its ankle
    left_knee_inset: float
    right_knee_inset: float
    # Horizontal shoulder-to-knee offset
    chest_forward_offset: float


@register_analyzer
class SquatAnalyzer(ExerciseAnalyzer):
    exercise = ExerciseType.SQUAT
    thresholds_type = SquatThresholds
    cannot_detect_message = "Cannot detect legs and torso clearly"
    rep_message = "Great rep!"

    def extract(self, pose):
        lm = get_landmarks(pose, LANDMARKS)
        if any(p is None for p in lm.values()):
            return None

        left_knee_angle = angle_between(lm["left_hip"], lm["left_knee"], lm["left_ankle"])
        right_knee_angle = angle_between(lm["right_hip"], lm["right_knee"], lm["right_ankle"])

        back_deviation = (
            vertical_deviation(lm["left_shoulder"], lm["left_hip"])
            + vertical_deviation(lm["right_shoulder"], lm["right_hip"])
        ) / 2

        hip_y = (lm["left_hip"][1] + lm["right_hip"][1]) / 2
        ankle_y = (lm["left_ankle"][1] + lm["right_ankle"][1]) / 2
        shoulder_x = (lm["left_shoulder"][0] + lm["right_shoulder"][0]) / 2
        shoulder_y = (lm["left_shoulder"][1] + lm["right_shoulder"][1]) / 2
        knee_x = (lm["left_knee"][0] + lm["right_knee"][0]) / 2

        return SquatFeatures(
            knee_angle=(left_knee_angle + right_knee_angle) / 2,
            back_deviation=back_deviation,
            hip_height=hip_y,
            leg_length=abs(hip_y - ankle_y),
            body_height=abs(shoulder_y - ankle_y),
            shoulder_height_diff=abs(lm["left_shoulder"][1] - lm["right_shoulder"][1]),
            left_knee_inset=lm["left_ankle"][0] - lm["left_knee"][0],
            right_knee_inset=lm["right_knee"][0] - lm["right_ankle"][0],
            chest_forward_offset=abs(shoulder_x - knee_x),
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

        near_depth = (f.knee_angle <= th.max_knee_angle_down + th.form_check_margin
                      or hip_drop >= th.hip_drop_percentage - th.hip_drop_tolerance)
        deep_enough = f.knee_angle <= th.max_knee_angle_down or hip_drop >= th.hip_drop_percentage

        valid_attempt = (
            (state.phase is RepPhase.DOWN and near_depth)
            or (state.phase is RepPhase.UP and f.knee_angle >= th.min_knee_angle_up - th.form_check_margin)
        )

        if f.back_deviation > 30:
            back_message = "Lift your chest, reduce the forward lean"
        else:
            back_message = f"Chest up, reduce the lean. Angle: {f.back_deviation:.0f}°"
        state.flag(
            "back_angle",
            valid_attempt and f.back_deviation > th.back_angle_max,
            debounce,
            back_message,
            BACK_AND_SHOULDERS,
        )

        leg_margin = f.leg_length * th.knee_position_threshold
        left_valgus = f.left_knee_inset > leg_margin
        right_valgus = f.right_knee_inset > leg_margin
        valgus_knees = [name for name, bad in (("left_knee", left_valgus), ("right_knee", right_valgus)) if bad]
        state.flag(
            "knee_valgus",
            valid_attempt and th.knee_valgus_check and bool(valgus_knees),
            debounce,
            "Push your knees out, keep them over your feet",
            valgus_knees,
        )

        state.flag(
            "shoulders",
            valid_attempt and ratio(f.shoulder_height_diff, f.body_height) > th.shoulder_level_threshold,
            debounce,
            "Keep your shoulders level",
            ("left_shoulder", "right_shoulder"),
        )

        state.flag(
            "chest_forward",
            (valid_attempt and state.phase is RepPhase.DOWN and th.chest_forward_check
             and ratio(f.chest_forward_offset, f.body_height) > th.chest_forward_threshold),
            debounce,
            "Keep your chest up, shoulders over your knees",
            BACK_AND_SHOULDERS,
        )

        # Only meaningful close to the bottom; the strict threshold applies here
        at_bottom = state.phase is RepPhase.DOWN and f.knee_angle <= th.down_angle + th.down_tolerance
        state.flag(
            "depth",
            at_bottom and not deep_enough,
            debounce,
            "Squat deeper, bend your knees to 90°",
            ("left_knee", "right_knee"),
        )

    def recover_phase(self, f, th):
        return RepPhase.DOWN if f.knee_angle < th.down_angle else RepPhase.UP

    def transition(self, state, f, settings, th, now):
        if state.phase in (RepPhase.STARTING, RepPhase.UP):
            if f.knee_angle <= th.down_angle + th.down_tolerance:
                state.phase = RepPhase.DOWN
                if state.form_correct:
                    state.report(FeedbackKind.PHASE_PROGRESS, "Good descent, keep going")
        elif state.phase is RepPhase.DOWN:
            if f.knee_angle >= th.up_angle - th.up_tolerance:
                state.phase = RepPhase.UP
                self.complete_rep(state, settings, now)
