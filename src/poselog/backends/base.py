# src/poselog/backends/base.py
from typing import List

import numpy as np

from ..data_models import Keypoint, Pose
from ..keypoints import KeypointCatalog


class PoseBackend:
    """Interface for pose detectors (MoveNet, MediaPipe)."""

    # landmark schema of this detector's output
    keypoint_catalog: KeypointCatalog

    def name(self) -> str:
        raise NotImplementedError

    def estimate(self, frame_bgr: np.ndarray) -> List[Pose]:
        """
        Run pose estimation on one BGR frame.

        Returns zero or more poses; each has the catalog's keypoints in
        catalog order, with x, y in pixel coordinates of `frame_bgr`.
        """
        raise NotImplementedError

    def close(self) -> None:
        pass


def make_pose(names, xs, ys, scores) -> Pose:
    return Pose(keypoints=tuple(
        Keypoint(name=n, x=float(x), y=float(y), score=float(np.clip(s, 0.0, 1.0)))
        for n, x, y, s in zip(names, xs, ys, scores)
    ))
