import json

import numpy as np
import pytest

from app import cli as control_cli
from app.autopilot import DriveCommand
from app.event_logger import EventLogger
from app.inputs import ControlInputs
from app.main import run, wait_grace
from messaging import Envelope, NavigationResult, ObstacleBox, PedalCommand, SteeringCommand, UdpSession, encode
from vision.markers import cli as perception_cli
from vision.markers.service import MarkerService
from vision.markers.snapshot import SnapshotWriter


class FakeSession:
    """Records what gets sent; stops itself after `max_sends` messages."""

    def __init__(self, max_sends=None):
        self.sent = []
        self.triggers = {}
        self.max_sends = max_sends

    @property
    def is_running(self):
        return self.max_sends is None or len(self.sent) < self.max_sends

    def data_trigger(self, message_type, handler):
        self.triggers.setdefault(message_type, []).append(handler)

    def send(self, message, sender_stamp=0):
        self.sent.append(message)


# ---------- command lines ----------

def test_control_cli_defaults():
    cfg = control_cli.parse_config(["--cid", "111", "--freq", "10"])
    assert cfg.cid == 111
    assert cfg.freq == 10.0
    assert cfg.grace_sec == 12.0
    assert cfg.drive_log
    assert cfg.control.kp == 0.20


@pytest.mark.parametrize(
    "argv",
    [
        ["--cid", "111"],
        ["--freq", "10"],
        ["--cid", "0", "--freq", "10"],
        ["--cid", "111", "--freq", "0"],
        ["--cid", "111", "--freq", "10", "--grace", "-1"],
    ],
)
def test_control_cli_rejects(argv):
    with pytest.raises(SystemExit) as e:
        control_cli.parse_config(argv)
    assert e.value.code != 0


def test_perception_cli():
    cfg = perception_cli.parse_config(["--cid", "111", "--width", "320", "--height", "240", "--no-snapshots"])
    assert cfg.markers.frame_width == 320
    assert cfg.markers.frame_height == 240
    assert not cfg.snapshots
    assert cfg.source == "video"


@pytest.mark.parametrize(
    "argv",
    [
        ["--cid", "111", "--width", "320"],
        ["--cid", "111", "--width", "0", "--height", "240"],
        ["--cid", "300", "--width", "320", "--height", "240"],
    ],
)
def test_perception_cli_rejects(argv):
    with pytest.raises(SystemExit) as e:
        perception_cli.parse_config(argv)
    assert e.value.code != 0


# ---------- control process ----------

def test_inputs_follow_the_session():
    session = UdpSession(111)
    inputs = ControlInputs()
    inputs.attach(session)

    snap = inputs.snapshot()
    assert snap.navigation == NavigationResult()
    assert snap.navigation_age is None

    nav = NavigationResult(near_x=5, near_y=-30, far_x=5, far_y=-90)
    session.dispatch(encode(nav))
    session.dispatch(encode(ObstacleBox(x=1, y=2, w=3, h=4, image_width=640, image_height=480, count=1)))

    snap = inputs.snapshot()
    assert snap.navigation == nav
    assert snap.obstacle.count == 1
    assert snap.navigation_age is not None


def test_wait_grace_stops_with_session():
    assert not wait_grace(FakeSession(max_sends=0), 5.0)
    assert wait_grace(FakeSession(), 0.0)


def test_run_publishes_steering_and_pedal_each_tick():
    cfg = control_cli.parse_config(["--cid", "111", "--freq", "1000", "--grace", "0", "--no-drive-log"])
    session = FakeSession(max_sends=6)

    assert run(cfg, session, ControlInputs()) == 0

    assert [type(m) for m in session.sent] == [SteeringCommand, PedalCommand] * 3
    assert session.sent[0] == SteeringCommand(0.0)
    assert session.sent[1].position == pytest.approx(0.10)


def test_event_logger_writes_ticks(tmp_path):
    log = EventLogger(str(tmp_path), filename="drive.jsonl")
    inputs = ControlInputs()
    log.write("start", cid=111)
    log.tick(1, inputs.snapshot(), DriveCommand(steering=0.1, pedal=0.09, near=(3, -20), cross=0.2, dot=0.9))
    log.close()

    lines = (tmp_path / "drive.jsonl").read_text().splitlines()
    assert len(lines) == 2
    rec = json.loads(lines[1])
    assert rec["event"] == "tick"
    assert rec["n"] == 1
    assert rec["steering"] == 0.1
    assert rec["near"] == [3, -20]
    assert rec["nav"]["reach_cross_road"] is False


# ---------- perception process ----------

def perception_cfg(tmp_path, *extra):
    argv = ["--cid", "111", "--width", "320", "--height", "240", "--snapshot-dir", str(tmp_path)]
    return perception_cli.parse_config(argv + list(extra))


def blank():
    return np.zeros((240, 320, 4), dtype=np.uint8)


def test_service_publishes_one_result_per_frame(tmp_path):
    session = FakeSession()
    service = MarkerService(perception_cfg(tmp_path, "--no-snapshots"), session)

    service.step(blank())
    service.step(blank())

    assert session.sent == [NavigationResult(), NavigationResult()]


def test_service_uses_obstacles_from_configured_sender_only(tmp_path):
    session = FakeSession()
    service = MarkerService(perception_cfg(tmp_path, "--no-snapshots", "--obstacle-sender", "2"), session)
    (handler,) = session.triggers[ObstacleBox]

    handler(Envelope(ObstacleBox(count=1, w=10, h=10), sender_stamp=5))
    assert service.obstacle.get() == ObstacleBox()

    handler(Envelope(ObstacleBox(count=1, w=10, h=10), sender_stamp=2))
    assert service.obstacle.get().count == 1


def test_service_snapshots_only_on_crossing_change(tmp_path):
    service = MarkerService(perception_cfg(tmp_path), FakeSession())
    service.step(blank())
    service.step(blank())
    service.close()

    with open(service.snap.path) as f:
        lines = f.read().splitlines()
    assert len(lines) == 1
    rec = json.loads(lines[0])
    assert rec["event"] == "crossing_init"
    assert rec["state"]["reach_cross_road"] is False


def test_snapshot_writer_saves_overlay(tmp_path):
    snap = SnapshotWriter(str(tmp_path), filename="snap.jsonl")
    snap.write("crossing_change", NavigationResult(reach_cross_road=True), frame=7,
               overlay=np.zeros((20, 30, 3), dtype=np.uint8), stop_line=[(1, 2), (3, 4)])
    snap.close()

    rec = json.loads((tmp_path / "snap.jsonl").read_text())
    assert rec["frame"] == 7
    assert rec["extra"]["stop_line"] == [[1, 2], [3, 4]]
    assert (tmp_path / "images").is_dir()
    assert rec["image"].endswith(".jpg")
