# src/poselog/keypoints.py
# ---------------------------------------------------------------
# Keypoint catalogs: the fixed landmark names each detector model
# returns (in its own output order) and the adjacent pairs used to
# draw the skeleton. Name -> index maps are built once per model.
# ---------------------------------------------------------------

from dataclasses import dataclass, field
from typing import Dict, Tuple

from .errors import UnknownKeypointError, UnknownModelError

MOVENET_KEYPOINTS: Tuple[str, ...] = (
    "nose", "left_eye", "right_eye", "left_ear", "right_ear",
    "left_shoulder", "right_shoulder", "left_elbow", "right_elbow",
    "left_wrist", "right_wrist", "left_hip", "right_hip",
    "left_knee", "right_knee", "left_ankle", "right_ankle",
)

MOVENET_PAIRS: Tuple[Tuple[int, int], ...] = (
    (0, 1), (0, 2), (1, 3), (2, 4),                     # face
    (5, 6), (5, 7), (5, 11), (6, 8), (6, 12),           # shoulders / torso
    (7, 9), (8, 10),                                    # forearms
    (11, 12), (11, 13), (12, 14), (13, 15), (14, 16),   # hips / legs
)

BLAZEPOSE_KEYPOINTS: Tuple[str, ...] = (
    "nose", "left_eye_inner", "left_eye", "left_eye_outer",
    "right_eye_inner", "right_eye", "right_eye_outer",
    "left_ear", "right_ear", "mouth_left", "mouth_right",
    "left_shoulder", "right_shoulder", "left_elbow", "right_elbow",
    "left_wrist", "right_wrist", "left_pinky", "right_pinky",
    "left_index", "right_index", "left_thumb", "right_thumb",
    "left_hip", "right_hip", "left_knee", "right_knee",
    "left_ankle", "right_ankle", "left_heel", "right_heel",
    "left_foot_index", "right_foot_index",
)

BLAZEPOSE_PAIRS: Tuple[Tuple[int, int], ...] = (
    (0, 1), (0, 4), (1, 2), (2, 3), (3, 7), (4, 5), (5, 6), (6, 8), (9, 10),
    (11, 12), (11, 13), (11, 23), (12, 14), (12, 24), (13, 15), (14, 16),
    (15, 17), (15, 19), (15, 21), (16, 18), (16, 20), (16, 22), (17, 19), (18, 20),
    (23, 24), (23, 25), (24, 26), (25, 27), (26, 28),
    (27, 29), (27, 31), (28, 30), (28, 32), (29, 31), (30, 32),
)


@dataclass(frozen=True)
class KeypointCatalog:
    """Landmark schema of one detector model."""
    model: str
    names: Tuple[str, ...]
    adjacent_pairs: Tuple[Tuple[int, int], ...]
    _index: Dict[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_index", {n: i for i, n in enumerate(self.names)})

    def __len__(self) -> int:
        return len(self.names)

    def __contains__(self, name: str) -> bool:
        return name in self._index

    def index_of(self, name: str) -> int:
        try:
            return self._index[name]
        except KeyError:
            raise UnknownKeypointError(f"{self.model} has no keypoint named {name!r}") from None


MOVENET = KeypointCatalog("MoveNet", MOVENET_KEYPOINTS, MOVENET_PAIRS)
BLAZEPOSE = KeypointCatalog("BlazePose", BLAZEPOSE_KEYPOINTS, BLAZEPOSE_PAIRS)

CATALOGS: Dict[str, KeypointCatalog] = {c.model: c for c in (MOVENET, BLAZEPOSE)}


def catalog_for(model: str) -> KeypointCatalog:
    try:
        return CATALOGS[model]
    except KeyError:
        raise UnknownModelError(f"No keypoint catalog for model {model!r}") from None


def is_face_detail(name: str) -> bool:
    """Ear and eye landmarks are left out of keypoint logs."""
    return "ear" in name or "eye" in name
