# src/poselog/io/frame_logger.py
# ---------------------------------------------------------------
# Per-frame log records and the logging session that collects them.
# A record is an ordered dict: "time" first, then joint angles
# and/or keypoint coordinates. Every record of one session carries
# the same keys in the same order so the CSV stays rectangular.
# ---------------------------------------------------------------

from __future__ import annotations
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple, Union

from ..config import SCORE_THRESHOLD
from ..errors import SchemaMismatchError
from ..keypoints import is_face_detail

if TYPE_CHECKING:
    from ..data_models import Pose
    from ..joints import Joint

Value = Union[str, int, float, None]
LoggedFrame = Dict[str, Value]


class LoggingMode(str, Enum):
    JOINT_ANGLES = "angles"
    KEYPOINTS = "positions"
    BOTH = "both"

    @property
    def label(self) -> str:
        return {
            LoggingMode.JOINT_ANGLES: "Record angles",
            LoggingMode.KEYPOINTS: "Record positions",
            LoggingMode.BOTH: "Record both",
        }[self]

    @property
    def logs_angles(self) -> bool:
        return self in (LoggingMode.JOINT_ANGLES, LoggingMode.BOTH)

    @property
    def logs_keypoints(self) -> bool:
        return self in (LoggingMode.KEYPOINTS, LoggingMode.BOTH)


def now_iso() -> str:
    """Local wall-clock time, ISO-8601 with UTC offset."""
    return datetime.now().astimezone().isoformat(timespec="milliseconds")


def build_logged_frame(pose: "Pose", joints: Dict[str, "Joint"], mode: LoggingMode,
                       timestamp: str, threshold: float = SCORE_THRESHOLD) -> LoggedFrame:
    frame: LoggedFrame = {"time": timestamp}

    if mode.logs_angles:
        # disabled joints get no column at all
        for name, joint in joints.items():
            if joint.enabled:
                frame[f"{name}_angle"] = joint.angle if joint.is_valid else None

    if mode.logs_keypoints:
        # every non-face keypoint always gets both columns, null when below threshold
        for kp in pose.keypoints:
            if is_face_detail(kp.name):
                continue
            valid = kp.score > threshold
            frame[f"{kp.name}_x"] = kp.x if valid else None
            frame[f"{kp.name}_y"] = kp.y if valid else None

    return frame


class LoggingSession:
    """Start/stop lifecycle and frame buffer of one logging run."""

    def __init__(self, threshold: float = SCORE_THRESHOLD):
        self.threshold = threshold
        self.active: bool = False
        self._frames: List[LoggedFrame] = []
        self._schema: Optional[Tuple[str, ...]] = None

    @property
    def frames(self) -> Tuple[LoggedFrame, ...]:
        return tuple(self._frames)

    def __len__(self) -> int:
        return len(self._frames)

    @property
    def can_export(self) -> bool:
        return not self.active and bool(self._frames)

    def start(self) -> bool:
        """Clear the buffer and begin logging; a second start while active does nothing."""
        if self.active:
            return False
        self._frames = []
        self._schema = None
        self.active = True
        return True

    def stop(self) -> bool:
        if not self.active:
            return False
        self.active = False
        return True

    def toggle(self) -> bool:
        if self.active:
            self.stop()
        else:
            self.start()
        return self.active

    def log_frame(self, pose: Optional["Pose"], joints: Dict[str, "Joint"], mode: LoggingMode,
                  timestamp: Optional[str] = None) -> Optional[LoggedFrame]:
        if not self.active or pose is None:
            return None

        frame = build_logged_frame(pose, joints, mode, timestamp or now_iso(), self.threshold)
        keys = tuple(frame)
        if self._schema is None:
            self._schema = keys
        elif keys != self._schema:
            raise SchemaMismatchError(
                f"frame columns {list(keys)} differ from session columns {list(self._schema)}"
            )
        self._frames.append(frame)
        return dict(frame)
