# src/poselog/backends/movenet_backend.py
import os
from typing import List, Optional

import cv2
import numpy as np
import tensorflow as tf

from ..config import MOVENET_LIGHTNING_PATH
from ..data_models import Pose
from ..errors import BackendLoadError
from ..keypoints import MOVENET
from .base import PoseBackend, make_pose


class MoveNetBackend(PoseBackend):
    """
    MoveNet singlepose TFLite wrapper.

    Usage:
        backend = MoveNetBackend(model_path=..., variant="lightning")
        poses = backend.estimate(frame_bgr)   # frame from OpenCV BGR
    Returns:
        [] or a single Pose of 17 COCO keypoints in frame pixel coordinates.
    """

    keypoint_catalog = MOVENET

    def __init__(self, model_path: Optional[str] = None, variant: str = "lightning"):
        self.variant = variant
        self.model_path = model_path or MOVENET_LIGHTNING_PATH
        if not os.path.exists(self.model_path):
            raise BackendLoadError(f"MoveNet model not found at {self.model_path}")
        self.interpreter = tf.lite.Interpreter(model_path=self.model_path)
        self.interpreter.allocate_tensors()
        self.inp = self.interpreter.get_input_details()[0]
        self.inp_index = self.inp["index"]
        self.inp_shape = self.inp["shape"]  # typically [1, H, W, 3]
        self.inp_dtype = self.inp["dtype"]
        self.out_details = self.interpreter.get_output_details()
        print(f"[PoseEngine] Loaded MoveNet {variant} from {self.model_path}")

    def name(self) -> str:
        return f"MoveNet-{self.variant.capitalize()}"

    def _preprocess(self, frame_bgr: np.ndarray) -> np.ndarray:
        _, target_h, target_w, _ = [int(x) for x in self.inp_shape]
        img = cv2.resize(frame_bgr, (target_w, target_h), interpolation=cv2.INTER_LINEAR)
        img = cv2.cvtColor(img, cv2.COLOR_BGR2RGB)  # MoveNet expects RGB

        if np.issubdtype(self.inp_dtype, np.floating):
            arr = img.astype(np.float32) / 255.0
        else:
            arr = img.astype(self.inp_dtype)
        return np.expand_dims(arr, axis=0)

    def estimate(self, frame_bgr: np.ndarray) -> List[Pose]:
        self.interpreter.set_tensor(self.inp_index, self._preprocess(frame_bgr))
        self.interpreter.invoke()

        out0 = self.interpreter.get_tensor(self.out_details[0]["index"])
        kp_array = out0.reshape(-1, 3)   # [1,1,17,3] -> (17,3) as (y, x, score), normalized
        if kp_array.shape[0] != len(MOVENET):
            return []

        h, w = frame_bgr.shape[:2]
        ys = np.clip(kp_array[:, 0], 0.0, 1.0) * float(h)
        xs = np.clip(kp_array[:, 1], 0.0, 1.0) * float(w)
        return [make_pose(MOVENET.names, xs, ys, kp_array[:, 2])]

    def close(self):
        self.interpreter = None
