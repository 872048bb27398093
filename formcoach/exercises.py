# formcoach/exercises.py

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Tuple, Union


class ExerciseType(str, Enum):
    SQUAT = "squat"
    BICEP_CURL = "bicep_curl"
    PUSH_UP = "push_up"
    PULL_UP = "pull_up"
    FORWARD_LUNGE = "forward_lunge"
    NONE = "none"

    @classmethod
    def parse(cls, value: Union["ExerciseType", str, None]) -> "ExerciseType":
        """Resolves an identifier, falling back to NONE for anything unknown."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.NONE


# ----------------- Per-exercise thresholds -----------------
# Angles in degrees, ratios as fractions of a body-scale reference.

@dataclass(frozen=True)
class Thresholds:
    up_angle: float = 0.0
    down_angle: float = 0.0
    # Relaxation applied to phase-transition boundaries only
    up_tolerance: float = 0.0
    down_tolerance: float = 0.0
    # Consecutive faulted frames before a fault is surfaced
    error_debounce: int = 2


@dataclass(frozen=True)
class SquatThresholds(Thresholds):
    up_angle: float = 160.0
    down_angle: float = 105.0
    up_tolerance: float = 10.0
    down_tolerance: float = 10.0
    error_debounce: int = 2
    back_angle_max: float = 20.0            # torso lean from vertical
    knee_position_threshold: float = 0.15   # knee tracking over foot, x leg length
    hip_drop_percentage: float = 0.25       # ideal hip drop, x leg length
    hip_drop_tolerance: float = 0.05
    shoulder_level_threshold: float = 0.05  # shoulder height diff, x body height
    min_knee_angle_up: float = 160.0
    max_knee_angle_down: float = 105.0
    form_check_margin: float = 10.0
    knee_valgus_check: bool = True
    chest_forward_check: bool = True
    chest_forward_threshold: float = 0.1    # shoulders ahead of knees, x body height


@dataclass(frozen=True)
class BicepCurlThresholds(Thresholds):
    up_angle: float = 55.0      # contracted
    down_angle: float = 160.0   # extended
    error_debounce: int = 1
    back_angle_max: float = 20.0
    upper_arm_movement_max: float = 25.0


@dataclass(frozen=True)
class PushUpThresholds(Thresholds):
    up_angle: float = 170.0
    down_angle: float = 105.0
    error_debounce: int = 3
    body_line_angle_range: Tuple[float, float] = (175.0, 185.0)
    max_elbow_angle_down: float = 105.0
    min_elbow_angle_up: float = 160.0
    head_angle_max: float = 10.0
    min_chest_drop_percentage: float = 0.2  # x arm length
    elbow_angle_out_max: float = 75.0
    down_check_margin: float = 15.0
    up_check_margin: float = 10.0


@dataclass(frozen=True)
class PullUpThresholds(Thresholds):
    up_angle: float = 100.0     # arms extended, bottom of the movement
    down_angle: float = 95.0    # arms contracted, top of the movement
    error_debounce: int = 1
    chin_above_wrist_required: bool = True


@dataclass(frozen=True)
class ForwardLungeThresholds(Thresholds):
    up_angle: float = 170.0
    down_angle: float = 90.0
    up_tolerance: float = 10.0
    error_debounce: int = 3
    back_angle_max: float = 10.0
    knee_position_threshold: float = 0.1
    back_knee_angle_range: Tuple[float, float] = (80.0, 100.0)
    front_knee_margin: float = 15.0
    shoulder_level_threshold: float = 0.05
    min_depth_angle: float = 100.0
    min_hip_drop_percentage: float = 0.2
    up_check_margin: float = 10.0


@dataclass(frozen=True)
class ExerciseSettings:
    name: str
    type: ExerciseType
    target_reps: int
    rest_between_sets: float  # seconds
    sets: int
    thresholds: Thresholds
    form_instructions: Tuple[str, ...] = ()
    muscles_targeted: Tuple[str, ...] = ()
    primary_landmarks: Tuple[str, ...] = ()


EXERCISES: Dict[ExerciseType, ExerciseSettings] = {
    ExerciseType.SQUAT: ExerciseSettings(
        name="Squat",
        type=ExerciseType.SQUAT,
        target_reps=15,
        rest_between_sets=10,
        sets=3,
        thresholds=SquatThresholds(),
        form_instructions=(
            "Stand with feet shoulder-width apart",
            "Keep your back straight, chest up",
            "Lower until thighs are parallel to the ground (knee angle ~90°)",
            "Ensure knees track over toes, not caving inward",
            "Maintain weight primarily in heels/midfoot",
            "Return to standing position with knees and hips fully extended",
        ),
        muscles_targeted=("Quadriceps", "Hamstrings", "Glutes", "Core"),
        primary_landmarks=(
            "left_hip", "left_knee", "left_ankle",
            "right_hip", "right_knee", "right_ankle",
            "left_shoulder", "right_shoulder",
        ),
    ),
    ExerciseType.BICEP_CURL: ExerciseSettings(
        name="Bicep Curl",
        type=ExerciseType.BICEP_CURL,
        target_reps=12,
        rest_between_sets=10,
        sets=3,
        thresholds=BicepCurlThresholds(),
        form_instructions=(
            "Keep elbows tucked close to your sides",
            "Minimize upper arm movement; isolate the bicep",
            "Curl weight up towards shoulder (elbow angle ~55°)",
            "Lower weight slowly until arms are nearly straight (elbow angle ~160°)",
        ),
        muscles_targeted=("Biceps", "Forearms"),
        primary_landmarks=(
            "left_shoulder", "left_elbow", "left_wrist", "left_hip",
            "right_shoulder", "right_elbow", "right_wrist", "right_hip",
        ),
    ),
    ExerciseType.PUSH_UP: ExerciseSettings(
        name="Push Up",
        type=ExerciseType.PUSH_UP,
        target_reps=15,
        rest_between_sets=10,
        sets=3,
        thresholds=PushUpThresholds(),
        form_instructions=(
            "Place hands slightly wider than shoulder-width",
            "Keep body in a straight line from head to heels",
            "Lower chest towards the floor (elbow angle ~90°)",
            "Push back up until arms are extended (elbow angle ~170°)",
            "Keep elbows tucked at ~45° angle to body",
            "Maintain neutral head position, looking slightly forward",
        ),
        muscles_targeted=("Chest", "Shoulders", "Triceps", "Core"),
        primary_landmarks=(
            "left_shoulder", "left_elbow", "left_wrist",
            "right_shoulder", "right_elbow", "right_wrist",
            "left_hip", "right_hip", "left_knee", "right_knee", "nose",
        ),
    ),
    ExerciseType.PULL_UP: ExerciseSettings(
        name="Pull Up",
        type=ExerciseType.PULL_UP,
        target_reps=15,
        rest_between_sets=10,
        sets=3,
        thresholds=PullUpThresholds(),
        form_instructions=(
            "Grip bar slightly wider than shoulder-width, palms facing away",
            "Hang with arms fully extended",
            "Pull body up until chin is above the bar",
            "Lower body slowly until arms are fully extended",
            "Avoid excessive swinging or kipping",
        ),
        muscles_targeted=("Back (Lats)", "Biceps", "Shoulders", "Core"),
        primary_landmarks=(
            "left_shoulder", "left_elbow", "left_wrist",
            "right_shoulder", "right_elbow", "right_wrist",
            "nose",
        ),
    ),
    ExerciseType.FORWARD_LUNGE: ExerciseSettings(
        name="Forward Lunge",
        type=ExerciseType.FORWARD_LUNGE,
        target_reps=12,
        rest_between_sets=10,
        sets=3,
        thresholds=ForwardLungeThresholds(),
        form_instructions=(
            "Stand upright with feet together",
            "Step forward with one leg, bending front knee to 90°",
            "Keep your back straight, torso upright",
            "Ensure front knee stays over ankle, not past toes",
            "Back knee should bend to 80°-100°, hovering above ground",
            "Return to standing position with feet together",
            "Maintain level shoulders throughout the movement",
        ),
        muscles_targeted=("Quadriceps", "Hamstrings", "Glutes", "Hip Flexors", "Core"),
        primary_landmarks=(
            "left_hip", "right_hip",
            "left_knee", "right_knee",
            "left_ankle", "right_ankle",
            "left_shoulder", "right_shoulder",
        ),
    ),
    ExerciseType.NONE: ExerciseSettings(
        name="None",
        type=ExerciseType.NONE,
        target_reps=0,
        rest_between_sets=0,
        sets=0,
        thresholds=Thresholds(),
    ),
}


def get_exercise_settings(exercise: Union[ExerciseType, str, None]) -> ExerciseSettings:
    return EXERCISES[ExerciseType.parse(exercise)]


def list_exercises() -> List[ExerciseSettings]:
    return [s for t, s in EXERCISES.items() if t is not ExerciseType.NONE]
