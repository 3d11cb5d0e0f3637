# src/poselog/geometry/angles.py
import math
from typing import Optional, Tuple

import numpy as np

EPS = 1e-6

Point = Tuple[float, float]


def vec(a: Point, b: Point) -> np.ndarray:
    """Return 2D vector from b -> a."""
    return np.array([a[0] - b[0], a[1] - b[1]], dtype=np.float64)


def angle_deg(proximal: Point, vertex: Point, distal: Point) -> Optional[float]:
    """Unsigned angle (degrees, 0..180) at `vertex` between the bones to `proximal` and `distal`."""
    v1 = vec(proximal, vertex)
    v2 = vec(distal, vertex)
    n1 = np.linalg.norm(v1); n2 = np.linalg.norm(v2)
    if n1 < EPS or n2 < EPS:
        return None
    cosv = float(np.clip(np.dot(v1, v2) / (n1 * n2), -1.0, 1.0))
    return float(math.degrees(math.acos(cosv)))


def round_angle(angle: float) -> int:
    # half-up, so 90.5 -> 91 like a display would show it
    return int(math.floor(angle + 0.5))
