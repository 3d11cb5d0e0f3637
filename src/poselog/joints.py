# src/poselog/joints.py
# ---------------------------------------------------------------
# Joint model: which keypoint triples form an anatomical joint,
# per-frame validity/angle for each triple, and the user-toggled
# enabled set. Roles are resolved to detector indices once per
# keypoint catalog and the role table order is the log column order.
# ---------------------------------------------------------------

from __future__ import annotations
from dataclasses import dataclass
from typing import TYPE_CHECKING, Dict, Iterable, List, Optional, Tuple

from .config import SCORE_THRESHOLD
from .geometry.angles import angle_deg, round_angle
from .keypoints import KeypointCatalog

if TYPE_CHECKING:
    from .data_models import Keypoint, Pose


@dataclass(frozen=True)
class JointSpec:
    """A named hinge: (proximal, vertex, distal) keypoint names."""
    name: str
    roles: Tuple[str, str, str]
    default_enabled: bool = True


JOINT_SPECS: Tuple[JointSpec, ...] = (
    # quick check that needs only a face in frame
    JointSpec("nose", ("left_eye", "nose", "right_eye"), default_enabled=False),
    JointSpec("left_elbow", ("left_shoulder", "left_elbow", "left_wrist")),
    JointSpec("right_elbow", ("right_shoulder", "right_elbow", "right_wrist")),
    JointSpec("left_shoulder", ("left_hip", "left_shoulder", "left_elbow")),
    JointSpec("right_shoulder", ("right_hip", "right_shoulder", "right_elbow")),
    JointSpec("left_hip", ("left_shoulder", "left_hip", "left_knee")),
    JointSpec("right_hip", ("right_shoulder", "right_hip", "right_knee")),
    JointSpec("left_knee", ("left_hip", "left_knee", "left_ankle")),
    JointSpec("right_knee", ("right_hip", "right_knee", "right_ankle")),
)


@dataclass(frozen=True)
class JointTable:
    """Joint specs with their roles resolved to one detector's keypoint indices."""
    catalog: KeypointCatalog
    entries: Tuple[Tuple[JointSpec, Tuple[int, int, int]], ...]

    @property
    def names(self) -> List[str]:
        return [spec.name for spec, _ in self.entries]


def resolve_joint_table(catalog: KeypointCatalog,
                        specs: Iterable[JointSpec] = JOINT_SPECS) -> JointTable:
    entries = []
    for spec in specs:
        idx = tuple(catalog.index_of(role) for role in spec.roles)
        entries.append((spec, idx))
    return JointTable(catalog=catalog, entries=tuple(entries))


@dataclass(frozen=True)
class Joint:
    name: str
    keypoints: Tuple["Keypoint", "Keypoint", "Keypoint"]
    enabled: bool = True
    threshold: float = SCORE_THRESHOLD

    @property
    def position(self) -> Tuple[float, float]:
        vertex = self.keypoints[1]
        return (vertex.x, vertex.y)

    @property
    def is_valid(self) -> bool:
        return all(kp.score > self.threshold for kp in self.keypoints)

    @property
    def angle(self) -> Optional[int]:
        """Rounded angle in degrees.

        None unless all three keypoints are valid, and also None for a valid
        joint whose proximal or distal bone has zero length.
        """
        if not self.is_valid:
            return None
        a, j, b = ((kp.x, kp.y) for kp in self.keypoints)
        raw = angle_deg(a, j, b)
        return None if raw is None else round_angle(raw)


def define_joints(pose: "Pose", table: JointTable, enabled: Dict[str, bool],
                  threshold: float = SCORE_THRESHOLD) -> Dict[str, Joint]:
    """Build every joint of `table` for one pose, in role table order."""
    joints: Dict[str, Joint] = {}
    for spec, (i, j, k) in table.entries:
        joints[spec.name] = Joint(
            name=spec.name,
            keypoints=(pose[i], pose[j], pose[k]),
            enabled=enabled.get(spec.name, spec.default_enabled),
            threshold=threshold,
        )
    return joints


class JointToggles:
    """Enabled flag per joint. Flags are frozen while a logging session runs."""

    def __init__(self, specs: Iterable[JointSpec] = JOINT_SPECS):
        self._enabled: Dict[str, bool] = {s.name: s.default_enabled for s in specs}

    def __contains__(self, name: str) -> bool:
        return name in self._enabled

    def is_enabled(self, name: str) -> bool:
        return self._enabled[name]

    def toggle(self, name: str, session_active: bool) -> bool:
        """Flip `name`; returns False (and changes nothing) while logging."""
        if name not in self._enabled:
            raise KeyError(name)
        if session_active:
            return False
        self._enabled[name] = not self._enabled[name]
        return True

    def snapshot(self) -> Dict[str, bool]:
        return dict(self._enabled)
