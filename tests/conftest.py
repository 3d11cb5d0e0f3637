import numpy as np
import pytest

from poselog.backends.base import PoseBackend
from poselog.data_models import Keypoint, Pose
from poselog.keypoints import MOVENET


def make_pose(overrides=None, score=0.9, catalog=MOVENET):
    """Pose in catalog order; every keypoint at (10*i, 20*i) unless overridden by name."""
    overrides = overrides or {}
    kps = []
    for i, name in enumerate(catalog.names):
        x, y, s = overrides.get(name, (10.0 * i, 20.0 * i, score))
        kps.append(Keypoint(name=name, x=x, y=y, score=s))
    return Pose(keypoints=tuple(kps))


class FakeBackend(PoseBackend):
    keypoint_catalog = MOVENET

    def __init__(self, poses=None):
        self.poses = poses if poses is not None else [make_pose()]
        self.calls = 0
        self.closed = False

    def name(self):
        return "Fake"

    def estimate(self, frame_bgr):
        self.calls += 1
        return list(self.poses)

    def close(self):
        self.closed = True


@pytest.fixture
def pose():
    return make_pose()


@pytest.fixture
def frame():
    return np.zeros((480, 640, 3), dtype=np.uint8)
