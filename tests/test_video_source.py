import numpy as np

from poselog.camera.video_source import VideoSource, parse_device_id
from poselog.config import CAM_INDEX


def test_parse_device_id():
    assert parse_device_id(None) == CAM_INDEX
    assert parse_device_id("") == CAM_INDEX
    assert parse_device_id("  ") == CAM_INDEX
    assert parse_device_id("2") == 2
    assert parse_device_id("rtsp://cam.local/stream") == "rtsp://cam.local/stream"


def test_closed_source_is_not_ready():
    src = VideoSource()
    assert src.ready is False
    assert src.read() is None
    assert src.size is None


def test_size_follows_latest_frame():
    src = VideoSource()
    src.latest_frame = np.zeros((480, 640, 3), dtype=np.uint8)
    assert src.size == (640, 480)
    assert src.ready is False   # no capture open
    src.close()
    assert src.latest_frame is None
