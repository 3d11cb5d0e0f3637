# src/poselog/camera/video_source.py
import time
from typing import Optional, Tuple, Union

import cv2
import numpy as np

from ..config import CAM_INDEX, FRAME_SIZE


def parse_device_id(device_id: Optional[str]) -> Union[int, str, Tuple[int, int]]:
    """'' / None -> default camera, '2' -> index 2, anything else -> file path or stream URL."""
    if device_id is None or not str(device_id).strip():
        return CAM_INDEX
    device_id = str(device_id).strip()
    return int(device_id) if device_id.isdigit() else device_id


class VideoSource:
    """OpenCV capture that keeps the most recently read frame for the sampler."""

    def __init__(self, frame_size: Tuple[int, int] = FRAME_SIZE):
        self.frame_size = frame_size
        self.cap: Optional[cv2.VideoCapture] = None
        self.device_id: Optional[str] = None
        self.latest_frame: Optional[np.ndarray] = None

    @property
    def ready(self) -> bool:
        """Capture open and at least one frame read (its size is known)."""
        return self.cap is not None and self.cap.isOpened() and self.latest_frame is not None

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        if self.latest_frame is None:
            return None
        h, w = self.latest_frame.shape[:2]
        return (w, h)

    def open(self, device_id: Optional[str] = None) -> bool:
        self.close()
        source = parse_device_id(device_id)
        print(f"[Camera] Opening {source!r}...")

        args = source if isinstance(source, tuple) else (source,)
        cap = cv2.VideoCapture(*args)
        if not cap.isOpened():
            time.sleep(1.0)
            cap.open(*args)
        if not cap.isOpened():
            print(f"[Camera] Failed to open {source!r}")
            cap.release()
            return False

        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.frame_size[0])
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.frame_size[1])
        self.cap = cap
        self.device_id = device_id or ""
        return True

    def read(self) -> Optional[np.ndarray]:
        if self.cap is None or not self.cap.isOpened():
            return None
        ok, frame = self.cap.read()
        if not ok:
            return None
        self.latest_frame = frame
        return frame

    def close(self) -> None:
        if self.cap is not None:
            self.cap.release()
            self.cap = None
        self.latest_frame = None
