# src/poselog/pose_engine.py

from __future__ import annotations
import asyncio
import base64
import os
import time
import traceback
from collections import deque
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

import cv2
import numpy as np

from .backends.base import PoseBackend
from .camera.video_source import VideoSource
from .config import (
    BACKEND_MEDIAPIPE, BACKEND_MOVENET, CSV_FILENAME, JOINT_TARGET_SIZE, JPEG_QUALITY,
    BackendChoice, EngineConfig,
)
from .data_models import (
    DisplayKeypoint, FramePayload, JointReadout, LoggingState, Point, Pose, StartCameraRequest,
)
from .errors import BackendLoadError, LoggingActiveError
from .geometry.aspect_fill import AspectFill
from .io.csv_writer import export_csv, write_csv
from .io.frame_logger import LoggedFrame, LoggingMode, LoggingSession
from .joints import Joint, JointTable, JointToggles, define_joints, resolve_joint_table
from .sampler import FrameSampler
from .ui.overlays import fill_display, render_overlay, skeleton_segments

BackendFactory = Callable[[BackendChoice], PoseBackend]


def load_backend(choice: BackendChoice) -> PoseBackend:
    # heavy imports (tensorflow / mediapipe) only for the backend actually used
    try:
        if choice.name == BACKEND_MEDIAPIPE:
            from .backends.mediapipe_backend import MediaPipeBackend
            return MediaPipeBackend()
        if choice.name == BACKEND_MOVENET:
            from .backends.movenet_backend import MoveNetBackend
            return MoveNetBackend(model_path=choice.model_path, variant=choice.variant)
    except BackendLoadError:
        raise
    except Exception as e:
        traceback.print_exc()
        raise BackendLoadError(f"Failed to load backend: {choice.name}") from e
    raise BackendLoadError(f"Unknown backend: {choice.name}")


def backend_choice_for(model_backend: str) -> BackendChoice:
    if model_backend == "MediaPipe":
        return BackendChoice(name=BACKEND_MEDIAPIPE)
    if model_backend == "MoveNet_Thunder":
        return BackendChoice(name=BACKEND_MOVENET, variant="thunder")
    return BackendChoice(name=BACKEND_MOVENET, variant="lightning")


class PoseEngine:
    """
    Owns all application state: camera, detector, sampler, enabled joints,
    logging session, display size. Everything here is touched from the
    event loop thread only; blocking calls go through executors.
    """

    def __init__(self, config: Optional[EngineConfig] = None,
                 session_root_override: Optional[str] = None,
                 backend_factory: BackendFactory = load_backend):
        self.config = config or EngineConfig()
        self.threshold = self.config.score_threshold
        self.video = VideoSource(self.config.frame_size)
        self.backend: Optional[PoseBackend] = None
        self.backend_choice: Optional[BackendChoice] = None
        self.sampler: Optional[FrameSampler] = None
        self.joint_table: Optional[JointTable] = None
        self.toggles = JointToggles()
        self.session = LoggingSession(threshold=self.threshold)
        self.logging_mode = LoggingMode.JOINT_ANGLES
        self.display_size: Tuple[int, int] = tuple(self.config.display_size)
        self._backend_factory = backend_factory

        self._start_time: float = time.time()
        self._frame_count: int = 0
        self._fps_history: deque[float] = deque(maxlen=30)
        self._prev_frame_time: float = time.time()
        self._session_path: str = ""
        self._session_root_base = (
            session_root_override
            if session_root_override
            else os.path.join(os.getcwd(), "sessions")
        )

    # ---------------------- Detector ---------------------- #
    def set_backend(self, backend: PoseBackend, choice: Optional[BackendChoice] = None) -> None:
        """Install a detector and resolve joint roles against its keypoint catalog."""
        if self.sampler:
            self.sampler.close()
        if self.backend and self.backend is not backend:
            self.backend.close()
        self.backend = backend
        self.backend_choice = choice
        self.joint_table = resolve_joint_table(backend.keypoint_catalog)
        self.sampler = FrameSampler(backend, self._sample_frame, self.config.update_rate)

    def _sample_frame(self) -> Optional[np.ndarray]:
        return self.video.latest_frame if self.video.ready else None

    @property
    def model_name(self) -> str:
        return self.backend.name() if self.backend else "Unknown"

    # ---------------------- Camera ---------------------- #
    def start_camera(self, req: StartCameraRequest) -> bool:
        """Blocking: load the detector if needed and open the capture device."""
        choice = backend_choice_for(req.model_backend)
        if self.backend is None or choice != self.backend_choice:
            if self.session.active and self.backend is not None:
                print("[PoseEngine] Refusing to switch detector while logging")
                return False
            print(f"[PoseEngine] Loading {choice.name} ({choice.variant})")
            self.set_backend(self._backend_factory(choice), choice)
        elif self.sampler:
            self.sampler.stop()

        self.video.frame_size = tuple(req.resolution)
        if not self.video.open(req.device_id):
            return False

        self._start_time = time.time()
        self._prev_frame_time = time.time()
        self._frame_count = 0
        self._fps_history.clear()
        return True

    def start_sampling(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if self.sampler:
            self.sampler.start(loop)

    def stop_camera(self) -> None:
        if self.sampler:
            self.sampler.stop()
        self.video.close()

    def shutdown(self) -> None:
        self.stop_camera()
        if self.sampler:
            self.sampler.close()
            self.sampler = None
        if self.backend:
            try:
                self.backend.close()
            except Exception:
                traceback.print_exc()
            self.backend = None

    @property
    def current_camera_id(self) -> Optional[str]:
        return self.video.device_id

    # ---------------------- Pose / Joints ---------------------- #
    @property
    def current_pose(self) -> Optional[Pose]:
        return self.sampler.pose if self.sampler else None

    def aspect_fill(self) -> Optional[AspectFill]:
        """Transform for the current video and display sizes; rebuilt on every call."""
        size = self.video.size
        if size is None:
            return None
        return AspectFill.between(size, self.display_size)

    def resize(self, width: int, height: int) -> None:
        if width <= 0 or height <= 0:
            raise ValueError(f"display size must be positive, got {width}x{height}")
        self.display_size = (int(width), int(height))

    def joints(self) -> Dict[str, Joint]:
        pose = self.current_pose
        if pose is None or self.joint_table is None:
            return {}
        return define_joints(pose, self.joint_table, self.toggles.snapshot(), self.threshold)

    def joint_screen_position(self, name: str) -> Optional[Tuple[float, float]]:
        """Display-space vertex of joint `name`, or None without pose or video."""
        if name not in self.toggles:
            raise KeyError(name)
        joint = self.joints().get(name)
        fill = self.aspect_fill()
        if joint is None or fill is None:
            return None
        return fill.to_display(joint.position)

    def hit_test(self, x: float, y: float) -> Optional[str]:
        """Name of the first joint whose click target contains display point (x, y)."""
        fill = self.aspect_fill()
        if fill is None:
            return None
        half_w, half_h = JOINT_TARGET_SIZE[0] / 2.0, JOINT_TARGET_SIZE[1] / 2.0
        for name, joint in self.joints().items():
            jx, jy = fill.to_display(joint.position)
            if abs(x - jx) <= half_w and abs(y - jy) <= half_h:
                return name
        return None

    def toggle_joint(self, name: str) -> bool:
        flipped = self.toggles.toggle(name, session_active=self.session.active)
        if not flipped:
            print(f"[PoseEngine] Ignoring toggle of {name} while logging")
        return flipped

    def click(self, x: float, y: float) -> Optional[str]:
        name = self.hit_test(x, y)
        if name is not None and self.toggle_joint(name):
            return name
        return None

    # ---------------------- Logging ---------------------- #
    def toggle_logging(self) -> bool:
        active = self.session.toggle()
        print(f"[PoseEngine] Logging {'started' if active else 'stopped'} ({len(self.session)} frames)")
        return active

    def set_logging_mode(self, mode: LoggingMode) -> bool:
        if self.session.active:
            print("[PoseEngine] Ignoring logging mode change while logging")
            return False
        self.logging_mode = LoggingMode(mode)
        return True

    def logging_state(self) -> LoggingState:
        return LoggingState(
            logging=self.session.active,
            mode=self.logging_mode,
            frames=len(self.session),
            can_download=self.session.can_export,
        )

    def record_frame(self, timestamp: Optional[str] = None) -> Optional[LoggedFrame]:
        return self.session.log_frame(self.current_pose, self.joints(), self.logging_mode, timestamp)

    def export_csv(self) -> bytes:
        if self.session.active:
            raise LoggingActiveError("Stop logging before exporting")
        return export_csv(self.session.frames)

    def save_session_data(self) -> Optional[str]:
        """Write data.csv into a fresh timestamped session folder."""
        if not self.session.can_export:
            return None
        timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")
        self._session_path = os.path.join(self._session_root_base, timestamp)
        os.makedirs(self._session_path, exist_ok=True)
        path = write_csv(os.path.join(self._session_path, CSV_FILENAME), self.session.frames)
        print(f"[PoseEngine] Saved {len(self.session)} frames to {path}")
        return path

    # ---------------------- Frame Processing ---------------------- #
    async def render_tick(self) -> Optional[FramePayload]:
        """Read the next camera frame off-loop, then draw, log and package it."""
        loop = asyncio.get_running_loop()
        frame = await loop.run_in_executor(None, self.video.read)
        if frame is None:
            return None
        return self.process_frame(frame)

    def process_frame(self, frame: np.ndarray) -> FramePayload:
        self._frame_count += 1
        current_time = time.time()
        dt = current_time - self._prev_frame_time
        self._prev_frame_time = current_time
        self._fps_history.append(1.0 / dt if dt > 0 else 0.0)
        fps_estimate = sum(self._fps_history) / len(self._fps_history)

        h, w = frame.shape[:2]
        fill = AspectFill.between((w, h), self.display_size)
        pose = self.current_pose
        joints = self.joints()

        try:
            canvas = render_overlay(frame, fill, self.display_size, pose,
                                    self.joint_table.catalog if self.joint_table else None,
                                    joints, self.threshold)
        except Exception:
            print("[PoseEngine] Exception while drawing overlays:")
            traceback.print_exc()
            canvas = fill_display(frame, fill, self.display_size)

        try:
            self.record_frame()
        except Exception:
            print("[PoseEngine] Exception while logging frame:")
            traceback.print_exc()

        _, buffer = cv2.imencode(".jpg", canvas, [cv2.IMWRITE_JPEG_QUALITY, JPEG_QUALITY])
        return FramePayload(
            timestamp=current_time - self._start_time,
            fps_estimate=fps_estimate,
            frame_base64=base64.b64encode(buffer).decode("utf-8"),
            display_size=self.display_size,
            keypoints=self._display_keypoints(pose, fill),
            skeleton=self._display_skeleton(pose, fill),
            joints=self._joint_readouts(joints, fill),
            logging=self.logging_state(),
            model_name=self.model_name,
        )

    # ---------------------- Helpers ---------------------- #
    def _display_keypoints(self, pose: Optional[Pose], fill: AspectFill) -> List[DisplayKeypoint]:
        if pose is None:
            return []
        out = []
        for kp in pose.keypoints:
            x, y = fill.to_display((kp.x, kp.y))
            out.append(DisplayKeypoint(name=kp.name, x=x, y=y, score=kp.score,
                                       visible=kp.score > self.threshold))
        return out

    def _display_skeleton(self, pose: Optional[Pose], fill: AspectFill):
        if pose is None or self.joint_table is None:
            return []
        return [(Point(x=a[0], y=a[1]), Point(x=b[0], y=b[1]))
                for a, b in skeleton_segments(pose, self.joint_table.catalog, fill, self.threshold)]

    def joint_readouts(self) -> List[JointReadout]:
        fill = self.aspect_fill()
        joints = self.joints()
        if joints:
            return self._joint_readouts(joints, fill)
        snap = self.toggles.snapshot()
        return [JointReadout(name=n, enabled=e, valid=False) for n, e in snap.items()]

    def _joint_readouts(self, joints: Dict[str, Joint], fill: Optional[AspectFill]) -> List[JointReadout]:
        # a zero-length bone leaves a valid joint without an angle; report it as not valid
        out = []
        for name, j in joints.items():
            pos = None
            if fill is not None:
                x, y = fill.to_display(j.position)
                pos = Point(x=x, y=y)
            out.append(JointReadout(name=name, enabled=j.enabled, valid=j.angle is not None,
                                    angle=j.angle, position=pos))
        return out
