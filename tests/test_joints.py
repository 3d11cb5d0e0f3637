import pytest

from conftest import make_pose
from poselog.errors import UnknownKeypointError
from poselog.joints import (
    JOINT_SPECS, JointSpec, JointToggles, define_joints, resolve_joint_table,
)
from poselog.keypoints import BLAZEPOSE, MOVENET, catalog_for
from poselog.errors import UnknownModelError


@pytest.fixture
def table():
    return resolve_joint_table(MOVENET)


def test_joints_follow_role_table_order(table, pose):
    joints = define_joints(pose, table, JointToggles().snapshot(), threshold=0.3)
    assert list(joints) == [s.name for s in JOINT_SPECS]
    assert list(joints)[0] == "nose"


def test_nose_disabled_by_default_others_enabled(table, pose):
    joints = define_joints(pose, table, JointToggles().snapshot(), threshold=0.3)
    assert joints["nose"].enabled is False
    assert all(j.enabled for n, j in joints.items() if n != "nose")


def test_right_angle_elbow(table):
    pose = make_pose({
        "left_shoulder": (0.0, 0.0, 0.9),
        "left_elbow": (0.0, 10.0, 0.9),
        "left_wrist": (10.0, 10.0, 0.9),
    })
    j = define_joints(pose, table, {}, threshold=0.3)["left_elbow"]
    assert j.is_valid
    assert j.angle == 90
    assert j.position == (0.0, 10.0)


def test_low_wrist_score_invalidates_elbow(table):
    pose = make_pose({
        "left_shoulder": (0.0, 0.0, 0.9),
        "left_elbow": (0.0, 10.0, 0.9),
        "left_wrist": (10.0, 10.0, 0.2),
    })
    j = define_joints(pose, table, {}, threshold=0.3)["left_elbow"]
    assert j.is_valid is False
    assert j.angle is None


def test_score_equal_to_threshold_is_not_valid(table):
    pose = make_pose({"left_knee": (5.0, 5.0, 0.3)})
    j = define_joints(pose, table, {}, threshold=0.3)["left_knee"]
    assert not j.is_valid


def test_roles_resolved_by_name_for_blazepose():
    table = resolve_joint_table(BLAZEPOSE)
    entries = {spec.name: idx for spec, idx in table.entries}
    assert entries["left_elbow"] == (11, 13, 15)
    assert entries["nose"] == (2, 0, 5)
    pose = make_pose(catalog=BLAZEPOSE)
    joints = define_joints(pose, table, {}, threshold=0.3)
    assert joints["left_elbow"].keypoints[1].name == "left_elbow"


def test_unknown_role_raises():
    with pytest.raises(UnknownKeypointError):
        resolve_joint_table(MOVENET, [JointSpec("left_ankle", ("left_knee", "left_ankle", "left_heel"))])


def test_unknown_catalog_raises():
    with pytest.raises(UnknownModelError):
        catalog_for("OpenPose")


def test_toggle_flips_when_not_logging():
    toggles = JointToggles()
    assert toggles.toggle("left_knee", session_active=False) is True
    assert toggles.is_enabled("left_knee") is False
    assert toggles.toggle("nose", session_active=False) is True
    assert toggles.is_enabled("nose") is True


def test_toggle_rejected_while_logging():
    toggles = JointToggles()
    before = toggles.snapshot()
    assert toggles.toggle("left_knee", session_active=True) is False
    assert toggles.toggle("left_knee", session_active=True) is False
    assert toggles.snapshot() == before


def test_toggle_unknown_joint():
    with pytest.raises(KeyError):
        JointToggles().toggle("tail", session_active=False)
