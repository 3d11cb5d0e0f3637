# src/poselog/utils/camera_scan.py
# ---------------------------------------------------------------
# Lists capture devices OpenCV can actually read from, as
# (label, id) pairs for the camera dropdown. A failing scan is
# reported and yields an empty list; it never stops the app.
# ---------------------------------------------------------------

import traceback
from typing import List

import cv2

from ..data_models import CameraInfo


def enumerate_cameras(max_index: int = 10) -> List[CameraInfo]:
    cams: List[CameraInfo] = []
    try:
        for i in range(max_index + 1):
            cap = cv2.VideoCapture(i, cv2.CAP_ANY)
            ok_read = False
            if cap.isOpened():
                # an index can open yet deliver nothing; require one frame
                ok_read, _ = cap.read()
            cap.release()
            if ok_read:
                cams.append(CameraInfo(label=f"Camera {i}", id=str(i)))
    except Exception as e:
        print(f"[Camera] Camera enumeration failed: {e}")
        traceback.print_exc()
        return []

    print(f"[Camera] Found cameras: {[c.label for c in cams]}")
    return cams
