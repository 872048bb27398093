# formcoach/pose_utils.py

import math
from typing import Dict, Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

Point = Tuple[float, float]
Pose = Mapping[str, Optional[Sequence[float]]]

LANDMARK_NAMES = (
    "nose",
    "left_shoulder", "right_shoulder",
    "left_elbow", "right_elbow",
    "left_wrist", "right_wrist",
    "left_hip", "right_hip",
    "left_knee", "right_knee",
    "left_ankle", "right_ankle",
)

# Offset used to build a synthetic point straight below a joint.
VERTICAL_OFFSET = 100.0


def angle_between(a, b, c):
    """
    Returns the angle (in degrees) at point b formed by points a-b-c.
    """
    a = np.array(a, dtype=float)
    b = np.array(b, dtype=float)
    c = np.array(c, dtype=float)

    v1 = a - b
    v2 = c - b

    denom = (np.linalg.norm(v1) * np.linalg.norm(v2) + 1e-8)
    cosang = np.dot(v1, v2) / denom
    cosang = np.clip(cosang, -1.0, 1.0)
    angle = np.degrees(np.arccos(cosang))
    return float(angle)


def get_landmark(pose: Optional[Pose], name: str) -> Optional[Point]:
    """
    Looks up a landmark by name.

    Missing names, None values and non-finite coordinates are all reported as
    absent (None). Absent landmarks are never replaced by (0, 0).
    """
    if not pose:
        return None
    value = pose.get(name)
    if value is None:
        return None
    try:
        x, y = float(value[0]), float(value[1])
    except (TypeError, ValueError, IndexError):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return (x, y)


def get_landmarks(pose: Optional[Pose], names: Iterable[str]) -> Dict[str, Optional[Point]]:
    return {name: get_landmark(pose, name) for name in names}


def point_below(p: Point, offset: float = VERTICAL_OFFSET) -> Point:
    return (p[0], p[1] + offset)


def vertical_deviation(top: Point, pivot: Point) -> float:
    """Deviation (degrees) of the pivot->top segment from straight up."""
    return 180.0 - angle_between(top, pivot, point_below(pivot))


def angle_from_vertical_down(end: Point, pivot: Point) -> float:
    """Angle (degrees) of the pivot->end segment relative to straight down."""
    return angle_between(end, pivot, point_below(pivot))


def distance(a: Point, b: Point) -> float:
    return float(np.linalg.norm(np.array(a, dtype=float) - np.array(b, dtype=float)))


def mean(values: Sequence[float]) -> float:
    return float(sum(values) / len(values)) if values else 0.0


def ratio(numerator: float, denominator: float) -> float:
    # Degenerate body-scale references (zero length) yield a neutral ratio.
    if denominator <= 0:
        return 0.0
    return float(numerator / denominator)
