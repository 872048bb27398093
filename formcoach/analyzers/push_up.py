# formcoach/analyzers/push_up.py

from dataclasses import dataclass
from typing import Optional, Tuple

from ..exercises import ExerciseType, PushUpThresholds
from ..pose_utils import angle_between, distance, get_landmark, get_landmarks, mean, ratio
from ..rep_logic import ExerciseAnalyzer, FeedbackKind, RepPhase, register_analyzer

SIDE_PARTS = ("shoulder", "elbow", "wrist", "hip", "knee")


@dataclass(frozen=True)
class PushUpFeatures:
    elbow_angle: float
    body_line_angle: float   # shoulder-hip-knee
    # Hip y minus the shoulder->knee line at the hip; positive when the hips sag
    hip_offset: float
    shoulder_angle: float    # elbow-shoulder-hip, elbow flare
    head_angle: Optional[float]
    arm_length: float
    chest_height: float
    sides: Tuple[str, ...]


def _visible_side(pose, side):
    lm = get_landmarks(pose, [f"{side}_{part}" for part in SIDE_PARTS])
    if any(p is None for p in lm.values()):
        return None
    return {name[len(side) + 1:]: p for name, p in lm.items()}


def _hip_offset(s):
    shoulder, hip, knee = s["shoulder"], s["hip"], s["knee"]
    run = knee[0] - shoulder[0]
    if run == 0:
        return 0.0
    line_y = shoulder[1] + (hip[0] - shoulder[0]) / run * (knee[1] - shoulder[1])
    return hip[1] - line_y


@register_analyzer
class PushUpAnalyzer(ExerciseAnalyzer):
    exercise = ExerciseType.PUSH_UP
    thresholds_type = PushUpThresholds
    cannot_detect_message = "Cannot detect arms, torso, and legs clearly"

    def extract(self, pose):
        sides = {}
        for side in ("left", "right"):
            points = _visible_side(pose, side)
            if points is not None:
                sides[side] = points
        # One side is enough, both missing is not
        if not sides:
            return None

        visible = list(sides.values())
        nose = get_landmark(pose, "nose")
        head_angle = None
        if nose is not None:
            first = visible[0]
            head_angle = angle_between(first["hip"], first["shoulder"], nose)

        return PushUpFeatures(
            elbow_angle=mean([angle_between(s["shoulder"], s["elbow"], s["wrist"]) for s in visible]),
            body_line_angle=mean([angle_between(s["shoulder"], s["hip"], s["knee"]) for s in visible]),
            hip_offset=mean([_hip_offset(s) for s in visible]),
            shoulder_angle=mean([angle_between(s["elbow"], s["shoulder"], s["hip"]) for s in visible]),
            head_angle=head_angle,
            arm_length=mean([distance(s["shoulder"], s["elbow"]) for s in visible]),
            chest_height=mean([s["shoulder"][1] for s in visible]),
            sides=tuple(sides),
        )

    def capture_baseline(self, state, features):
        state.starting_chest_height = features.chest_height

    def chest_drop(self, state, features):
        if state.starting_chest_height is None:
            return 0.0
        return ratio(features.chest_height - state.starting_chest_height, features.arm_length)

    def check_form(self, state, f, th):
        chest_drop = self.chest_drop(state, f)
        debounce = th.error_debounce
        hips = [f"{side}_hip" for side in f.sides]
        elbows = [f"{side}_elbow" for side in f.sides]

        valid_down = (state.phase is RepPhase.DOWN
                      and f.elbow_angle <= th.max_elbow_angle_down + th.down_check_margin
                      and chest_drop >= th.min_chest_drop_percentage)
        valid_up = (state.phase is RepPhase.UP
                    and f.elbow_angle >= th.min_elbow_angle_up - th.up_check_margin)
        valid_attempt = valid_down or valid_up

        # The angle is unsigned; which side of the line the hips are on tells sag from pike
        low, high = th.body_line_angle_range
        bent = 180.0 - f.body_line_angle > (high - low) / 2
        state.flag("sagging", valid_attempt and bent and f.hip_offset > 0, debounce,
                   "Lift hips, keep straight.", hips)
        state.flag("piking", valid_attempt and bent and f.hip_offset < 0, debounce,
                   "Lower hips, align body.", hips)

        state.flag("shallow", valid_down and f.elbow_angle > th.max_elbow_angle_down, debounce,
                   "Lower chest, elbows to 90°.", elbows)

        state.flag(
            "head",
            valid_attempt and f.head_angle is not None and abs(f.head_angle - 180) > th.head_angle_max,
            debounce,
            "Look forward, keep neutral.",
            ("nose",),
        )

        state.flag("elbow_flare", valid_down and f.shoulder_angle > th.elbow_angle_out_max, debounce,
                   "Tuck elbows, aim for 45°.", elbows)

        state.flag("extension", valid_up and f.elbow_angle < th.min_elbow_angle_up, debounce,
                   "Straighten arms.", elbows)

    def recover_phase(self, f, th):
        return RepPhase.DOWN if f.elbow_angle < th.down_angle else RepPhase.UP

    def transition(self, state, f, settings, th, now):
        if state.phase in (RepPhase.STARTING, RepPhase.UP):
            if (f.elbow_angle < th.down_angle + th.down_tolerance
                    and self.chest_drop(state, f) >= th.min_chest_drop_percentage):
                state.phase = RepPhase.DOWN
                if state.form_correct:
                    state.report(FeedbackKind.PHASE_PROGRESS, "Good descent, keep going")
        elif state.phase is RepPhase.DOWN:
            if f.elbow_angle > th.up_angle - th.up_tolerance:
                state.phase = RepPhase.UP
                self.complete_rep(state, settings, now)
