# src/poselog/data_models.py

from __future__ import annotations
from typing import Any, Dict, List, Optional, Literal, Tuple
from pydantic import BaseModel, ConfigDict, Field, confloat, conint

from .io.frame_logger import LoggingMode

# --- Detector Output ---

class Keypoint(BaseModel):
    """One scored landmark in video pixel space."""
    model_config = ConfigDict(frozen=True)

    name: str = Field(description="Detector-defined keypoint name.")
    x: float = Field(description="Video-space X (pixels).")
    y: float = Field(description="Video-space Y (pixels).")
    score: confloat(ge=0.0, le=1.0) = Field(description="Confidence.")

class Pose(BaseModel):
    """One detected subject: keypoints in the detector's fixed order."""
    model_config = ConfigDict(frozen=True)

    keypoints: Tuple[Keypoint, ...]

    def __len__(self) -> int:
        return len(self.keypoints)

    def __getitem__(self, index: int) -> Keypoint:
        return self.keypoints[index]

# --- Display Payload ---

class Point(BaseModel):
    x: float
    y: float

class DisplayKeypoint(BaseModel):
    name: str
    x: float
    y: float
    score: float
    visible: bool

class JointReadout(BaseModel):
    name: str
    enabled: bool
    valid: bool
    angle: Optional[int] = None
    position: Optional[Point] = None   # display space; UI click targets bind here

class LoggingState(BaseModel):
    logging: bool
    mode: LoggingMode
    frames: int
    can_download: bool

class FramePayload(BaseModel):
    timestamp: float
    fps_estimate: float
    frame_base64: str
    display_size: Tuple[int, int]
    keypoints: List[DisplayKeypoint]
    skeleton: List[Tuple[Point, Point]]
    joints: List[JointReadout]
    logging: LoggingState
    model_name: str = "Unknown"

# --- API Requests ---

class CameraInfo(BaseModel):
    label: str
    id: str

class StartCameraRequest(BaseModel):
    device_id: Optional[str] = None        # empty/None -> default camera
    resolution: Tuple[int, int] = (640, 480)
    model_backend: Literal["MoveNet", "MoveNet_Lightning", "MoveNet_Thunder", "MediaPipe"] = "MoveNet_Lightning"
    target_fps: conint(ge=1, le=120) = 30

class DisplaySizeRequest(BaseModel):
    width: conint(gt=0)
    height: conint(gt=0)

class LoggingModeRequest(BaseModel):
    mode: LoggingMode

class HitTestRequest(BaseModel):
    x: float
    y: float

class StatusResponse(BaseModel):
    status: Literal["success", "error"]
    message: str
    details: Optional[Dict[str, Any]] = None
