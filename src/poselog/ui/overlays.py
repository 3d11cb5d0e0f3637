# src/poselog/ui/overlays.py
# --------------------------------------------------------------------
# Drawing utilities: aspect-fill the camera frame onto the display
# canvas and paint keypoints, skeleton and joint angles on top.
# Points are mapped from video to display space with the same
# AspectFill the controller exposes for click targets.
# --------------------------------------------------------------------

from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np

from ..config import (
    ANGLE_TEXT_COLOR, KEYPOINT_COLOR, KEYPOINT_OUTLINE, KEYPOINT_RADIUS,
    SCORE_THRESHOLD, SKELETON_COLOR,
)
from ..data_models import Pose
from ..geometry.aspect_fill import AspectFill
from ..joints import Joint
from ..keypoints import KeypointCatalog

Segment = Tuple[Tuple[float, float], Tuple[float, float]]


def _px(p: Tuple[float, float]) -> Tuple[int, int]:
    return (int(round(p[0])), int(round(p[1])))


def fill_display(frame: np.ndarray, fill: AspectFill, display_size: Tuple[int, int]) -> np.ndarray:
    """Scale the frame to cover the display, centred, cropping the overflow."""
    return cv2.warpAffine(frame, fill.affine(), (int(display_size[0]), int(display_size[1])),
                          flags=cv2.INTER_LINEAR)


def skeleton_segments(pose: Pose, catalog: KeypointCatalog, fill: AspectFill,
                      threshold: float = SCORE_THRESHOLD) -> List[Segment]:
    """Display-space bones whose two endpoints are both above threshold."""
    segs: List[Segment] = []
    for i, j in catalog.adjacent_pairs:
        if i >= len(pose) or j >= len(pose):
            continue
        a, b = pose[i], pose[j]
        if a.score > threshold and b.score > threshold:
            segs.append((fill.to_display((a.x, a.y)), fill.to_display((b.x, b.y))))
    return segs


def draw_keypoints(canvas: np.ndarray, pose: Pose, fill: AspectFill,
                   threshold: float = SCORE_THRESHOLD) -> None:
    for kp in pose.keypoints:
        if kp.score > threshold:
            c = _px(fill.to_display((kp.x, kp.y)))
            cv2.circle(canvas, c, KEYPOINT_RADIUS, KEYPOINT_COLOR, -1)
            cv2.circle(canvas, c, KEYPOINT_RADIUS, KEYPOINT_OUTLINE, 1)


def draw_skeleton(canvas: np.ndarray, segments: List[Segment]) -> None:
    for a, b in segments:
        cv2.line(canvas, _px(a), _px(b), SKELETON_COLOR, 1, cv2.LINE_AA)


def draw_angles(canvas: np.ndarray, joints: Dict[str, Joint], fill: AspectFill) -> List[str]:
    """Write each enabled, valid joint's angle at its vertex. Returns the joints drawn."""
    shown = []
    for name, j in joints.items():
        if not (j.enabled and j.is_valid) or j.angle is None:
            continue
        txt = str(j.angle)
        (tw, th), _ = cv2.getTextSize(txt, cv2.FONT_HERSHEY_SIMPLEX, 1.0, 2)
        x, y = _px(fill.to_display(j.position))
        # dark outline first so the number reads on any background
        cv2.putText(canvas, txt, (x - tw // 2, y), cv2.FONT_HERSHEY_SIMPLEX, 1.0, (0, 0, 0), 4, cv2.LINE_AA)
        cv2.putText(canvas, txt, (x - tw // 2, y), cv2.FONT_HERSHEY_SIMPLEX, 1.0, ANGLE_TEXT_COLOR, 2, cv2.LINE_AA)
        shown.append(name)
    return shown


def render_overlay(frame: np.ndarray, fill: AspectFill, display_size: Tuple[int, int],
                   pose: Optional[Pose], catalog: KeypointCatalog,
                   joints: Dict[str, Joint], threshold: float = SCORE_THRESHOLD) -> np.ndarray:
    canvas = fill_display(frame, fill, display_size)
    if pose is None:
        return canvas
    draw_keypoints(canvas, pose, fill, threshold)
    draw_skeleton(canvas, skeleton_segments(pose, catalog, fill, threshold))
    draw_angles(canvas, joints, fill)
    return canvas
