# src/poselog/backends/mediapipe_backend.py
from typing import List

import cv2
import mediapipe as mp

from ..data_models import Pose
from ..keypoints import BLAZEPOSE
from .base import PoseBackend, make_pose

mp_pose = mp.solutions.pose


class MediaPipeBackend(PoseBackend):
    """
    MediaPipe Pose backend (33 BlazePose landmarks).

    Landmark visibility is used as the keypoint score, so the same
    threshold applies as for MoveNet.
    """

    keypoint_catalog = BLAZEPOSE

    def __init__(self, model_complexity: int = 1):
        self.pose = mp_pose.Pose(
            static_image_mode=False,
            model_complexity=model_complexity,
            smooth_landmarks=False,      # no cross-frame smoothing
            enable_segmentation=False,
            min_detection_confidence=0.5,
            min_tracking_confidence=0.5,
        )
        print("[PoseEngine] Loaded MediaPipe Pose")

    def name(self) -> str:
        return "MediaPipe"

    def estimate(self, frame_bgr) -> List[Pose]:
        results = self.pose.process(cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB))
        if not results.pose_landmarks:
            return []
        h, w = frame_bgr.shape[:2]
        lms = results.pose_landmarks.landmark
        return [make_pose(
            BLAZEPOSE.names,
            [lm.x * w for lm in lms],
            [lm.y * h for lm in lms],
            [lm.visibility for lm in lms],
        )]

    def close(self) -> None:
        if self.pose is not None:
            self.pose.close()
            self.pose = None
