import numpy as np
import pytest
from fastapi.testclient import TestClient

from conftest import FakeBackend, make_pose
from poselog.config import BackendChoice, EngineConfig
from poselog.pose_engine import PoseEngine

import app.main as main


@pytest.fixture
def engine(tmp_path, monkeypatch):
    eng = PoseEngine(EngineConfig(display_size=(800, 400)), session_root_override=str(tmp_path))
    eng.set_backend(FakeBackend(), BackendChoice())
    eng.sampler.poses = [make_pose()]
    eng.video.latest_frame = np.zeros((480, 640, 3), dtype=np.uint8)
    monkeypatch.setattr(main, "engine", eng)
    yield eng
    eng.shutdown()


@pytest.fixture
def client(engine):
    return TestClient(main.app)


def test_list_joints(client):
    r = client.get("/joints")
    assert r.status_code == 200
    joints = r.json()
    assert [j["name"] for j in joints][:3] == ["nose", "left_elbow", "right_elbow"]
    assert joints[0]["enabled"] is False
    assert joints[1]["angle"] == 180
    assert joints[1]["position"] == {"x": 87.5, "y": 75.0}


def test_toggle_joint(client, engine):
    r = client.post("/joints/left_knee/toggle")
    assert r.json()["status"] == "success"
    assert r.json()["details"] == {"enabled": False}
    assert engine.toggles.is_enabled("left_knee") is False


def test_toggle_unknown_joint(client):
    assert client.post("/joints/tail/toggle").status_code == 404


def test_hit_joint(client, engine):
    r = client.post("/joints/hit", json={"x": 87.5, "y": 75.0})
    assert r.json()["message"] == "left_elbow"
    r = client.post("/joints/hit", json={"x": 700.0, "y": 390.0})
    assert r.json()["status"] == "error"


def test_logging_cycle_and_download(client, engine):
    assert client.get("/data/download").status_code == 404

    r = client.post("/logging/toggle")
    assert r.json()["logging"] is True
    assert client.post("/joints/left_knee/toggle").json()["status"] == "error"
    assert client.post("/logging/mode", json={"mode": "both"}).json()["status"] == "error"

    engine.record_frame()
    engine.record_frame()
    assert client.get("/data/download").status_code == 409

    r = client.post("/logging/toggle")
    assert r.json() == {"logging": False, "mode": "angles", "frames": 2, "can_download": True}

    r = client.get("/data/download")
    assert r.status_code == 200
    assert "data.csv" in r.headers["content-disposition"]
    lines = r.text.splitlines()
    assert lines[0].startswith("time,left_elbow_angle,right_elbow_angle")
    assert len(lines) == 3


def test_logging_mode(client, engine):
    r = client.post("/logging/mode", json={"mode": "positions"})
    assert r.json() == {"status": "success", "message": "Record positions", "details": None}
    assert client.get("/logging/state").json()["mode"] == "positions"
    assert client.post("/logging/mode", json={"mode": "nonsense"}).status_code == 422


def test_resize(client, engine):
    assert client.post("/display/resize", json={"width": 1600, "height": 800}).status_code == 200
    assert engine.display_size == (1600, 800)
    assert client.post("/display/resize", json={"width": 0, "height": 800}).status_code == 422


def test_export_writes_session_folder(client, engine, tmp_path):
    assert client.post("/data/export").json()["status"] == "error"
    engine.toggle_logging()
    engine.record_frame()
    engine.toggle_logging()
    r = client.post("/data/export").json()
    assert r["status"] == "success"
    assert r["message"].startswith(str(tmp_path))


def test_cameras_enumeration_failure_is_empty(client, monkeypatch):
    def boom(*args, **kwargs):
        raise RuntimeError("no backend")
    monkeypatch.setattr("poselog.utils.camera_scan.cv2.VideoCapture", boom)
    r = client.get("/cameras")
    assert r.status_code == 200
    assert r.json() == []
