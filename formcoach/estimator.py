# formcoach/estimator.py

import os
os.environ.setdefault("TF_CPP_MIN_LOG_LEVEL", "3")

import cv2
import mediapipe as mp

from .pose_utils import LANDMARK_NAMES


class PoseEstimator:
    def __init__(self, min_visibility=0.5):
        self.min_visibility = min_visibility
        self.mp_pose = mp.solutions.pose
        self.pose = self.mp_pose.Pose(
            static_image_mode=False,
            model_complexity=1,
            enable_segmentation=False,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )
        # MediaPipe enum names map onto our vocabulary, e.g. LEFT_KNEE -> left_knee
        self.indices = {
            name: self.mp_pose.PoseLandmark[name.upper()].value for name in LANDMARK_NAMES
        }

    def process(self, frame_bgr):
        """
        Input: BGR frame from OpenCV.
        Output:
          - pose: dict of landmark name -> (x, y) in pixels, only for landmarks
            visible enough to trust, or None if no person was detected
          - landmarks: pose_landmarks (for drawing), or None if not detected
        """
        h, w, _ = frame_bgr.shape
        rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        results = self.pose.process(rgb)

        if not results.pose_landmarks:
            return None, None

        lm = results.pose_landmarks.landmark
        pose = {}
        for name, idx in self.indices.items():
            p = lm[idx]
            if p.visibility >= self.min_visibility:
                pose[name] = (p.x * w, p.y * h)

        return pose, results.pose_landmarks

    def close(self):
        self.pose.close()
