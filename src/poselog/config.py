# src/poselog/config.py
# ---------------------------------------------------------------
# Global configuration for poselog: detector thresholds, sampling
# cadence, camera defaults, model paths and overlay styling.
# Everything that should be tweakable without touching the
# pipeline modules lives here.
# ---------------------------------------------------------------

import os
from dataclasses import dataclass, field
from typing import Tuple

import cv2

from .utils.resources import model_path

# ------------------ Detection / Sampling ------------------

SCORE_THRESHOLD = 0.3                # A keypoint counts only when its score is strictly above this
UPDATE_RATE = 30                     # Pose samples per second (also the default render rate)

# ------------------ Camera / Display Defaults ------------------

CAM_INDEX = (0, cv2.CAP_DSHOW) if os.name == "nt" else 0   # DirectShow avoids slow camera start on Windows
FRAME_SIZE = (640, 480)              # Requested capture size (width, height)
DISPLAY_SIZE = (1280, 720)           # Display canvas size until the client reports its own
JOINT_TARGET_SIZE = (50, 50)         # Click target around each joint vertex, in display pixels
JPEG_QUALITY = 80

# ------------------ Model Files ------------------

MOVENET_LIGHTNING_PATH = model_path("movenet_singlepose_lightning.tflite")
MOVENET_THUNDER_PATH   = model_path("movenet_singlepose_thunder.tflite")

# ------------------ Backend Options ------------------

BACKEND_MOVENET = "MoveNet"          # TFLite MoveNet singlepose (17 COCO keypoints)
BACKEND_MEDIAPIPE = "MediaPipe"      # MediaPipe Pose (33 BlazePose landmarks)

# ------------------ Export ------------------

CSV_FILENAME = "data.csv"
CSV_NULL_TOKEN = ""                  # Written for invalid measurements

# ------------------ Overlay Styling (BGR) ------------------

KEYPOINT_COLOR = (0, 0, 255)
KEYPOINT_OUTLINE = (255, 255, 255)
KEYPOINT_RADIUS = 5
SKELETON_COLOR = (0, 0, 255)
ANGLE_TEXT_COLOR = (255, 255, 255)


@dataclass
class BackendChoice:
    name: str = BACKEND_MOVENET      # 'MoveNet' or 'MediaPipe'
    variant: str = "lightning"       # MoveNet only: 'lightning' | 'thunder'

    @property
    def model_path(self) -> str:
        return MOVENET_THUNDER_PATH if self.variant == "thunder" else MOVENET_LIGHTNING_PATH


@dataclass
class EngineConfig:
    """Per-engine settings; one score threshold drives drawing, joints and logging."""
    backend: BackendChoice = field(default_factory=BackendChoice)
    score_threshold: float = SCORE_THRESHOLD
    update_rate: float = UPDATE_RATE
    frame_size: Tuple[int, int] = FRAME_SIZE
    display_size: Tuple[int, int] = DISPLAY_SIZE
