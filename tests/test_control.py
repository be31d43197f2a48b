import pytest

from app.autopilot import Autopilot
from control.config import ControlConfig
from control.predictor import NearPointPredictor
from control.steering import SteeringLaw, heading
from control.throttle_controller import ThrottleController
from messaging.models import NavigationResult, ObstacleBox

CFG = ControlConfig()


def steer(near, far, prev_cross=0.0):
    return SteeringLaw(CFG).apply(near, far, heading(near, far, CFG), prev_cross)


# ---------- steering ----------

def test_heading_straight_ahead():
    h = heading((0, -50), (0, -50), CFG)
    assert h.cross == pytest.approx(0.0)
    assert h.dot == pytest.approx(1.0)


def test_centered_target_no_steering():
    assert steer((0, -50), (0, -50)) == 0.0


def test_target_left_steers_left():
    s = steer((50, -50), (50, -50))
    assert s > 0.0
    assert s == pytest.approx(0.20 * 0.7071 + 0.05 * 0.7071, abs=1e-3)


def test_target_right_steers_right():
    assert steer((-50, -50), (-50, -50)) < 0.0


def test_target_behind_turns_at_full_p_gain():
    s = steer((10, 50), (10, 50))
    h = heading((10, 50), (10, 50), CFG)
    assert h.dot < 0.0
    assert s == pytest.approx(0.20 + 0.05 * h.cross)


def test_derivative_term_uses_previous_cross():
    assert steer((50, -50), (50, -50), prev_cross=0.7071) == pytest.approx(0.20 * 0.7071, abs=1e-3)


def test_zero_length_heading_is_safe():
    h = heading((0, 0), (0, 0), CFG)
    assert h.cross == 0.0
    assert h.dot == 0.0


# ---------- prediction ----------

def test_prediction_moves_point_toward_vehicle():
    p = NearPointPredictor(CFG)
    assert p.predict((0, -100), 0.1, 0.0) == (0, -40)
    x, y = p.predict((0, -100), 0.1, 0.5)
    assert x < 0
    assert -100 < y < -40


def test_blend_weights_measurement():
    p = NearPointPredictor(CFG)
    assert p.blend((100, -100), (0, 0)) == (65, -65)
    assert p.update((0, 0), (0, 0), 0.0, 0.0) == (0, 0)


# ---------- throttle ----------

IMG = dict(image_width=640, image_height=480)


def test_base_pedal_slows_in_turns():
    t = ThrottleController(CFG)
    assert t.base(0.0) == pytest.approx(0.10)
    assert t.base(0.5) == pytest.approx(0.05)
    assert t.apply(0.0, 0.0, ObstacleBox(), False) == pytest.approx(0.10)


def test_obstacle_ahead_scales_pedal():
    t = ThrottleController(CFG)
    box = ObstacleBox(x=100, y=100, w=100, h=100, count=1, **IMG)
    expected = 0.20 * (1.0 - 10000.0 / (640 * 480 * 0.10))
    assert t.apply(0.0, 0.0, box, False) == pytest.approx(expected)

    # not heading at it
    assert t.apply(0.0, 0.5, box, False) == pytest.approx(0.10)


def test_small_obstacle_is_ignored():
    t = ThrottleController(CFG)
    box = ObstacleBox(x=100, y=100, w=10, h=10, count=1, **IMG)
    assert t.apply(0.0, 0.0, box, False) == pytest.approx(0.10)


def test_crossing_caps_pedal():
    t = ThrottleController(CFG)
    box = ObstacleBox(x=100, y=100, w=100, h=100, count=1, **IMG)
    assert t.apply(0.0, 0.0, box, True) == pytest.approx(0.04)


def test_big_obstacle_on_the_right_at_crossing_stops():
    t = ThrottleController(CFG)
    box = ObstacleBox(x=300, y=100, w=200, h=100, count=1, **IMG)
    assert t.apply(0.0, 0.0, box, True) == 0.0

    # touching the bottom edge: something we already passed
    low = ObstacleBox(x=300, y=479, w=200, h=100, count=1, **IMG)
    assert t.apply(0.0, 0.0, low, True) > 0.0


# ---------- autopilot ----------

def test_no_target_drives_straight_at_base_pedal():
    ap = Autopilot()
    for _ in range(5):
        cmd = ap.step(NavigationResult(), ObstacleBox())
        assert cmd.steering == 0.0
        assert cmd.pedal == pytest.approx(0.10)


def test_lost_target_returns_to_straight_ahead():
    ap = Autopilot()
    target = NavigationResult(near_x=80, near_y=-60, far_x=80, far_y=-150)
    for _ in range(3):
        assert ap.step(target, ObstacleBox()).steering != 0.0

    for _ in range(5):
        cmd = ap.step(NavigationResult(), ObstacleBox())
        assert cmd.steering == 0.0
        assert cmd.pedal == pytest.approx(0.10)


def test_autopilot_steers_toward_target_and_keeps_state():
    ap = Autopilot()
    cmd = ap.step(NavigationResult(near_x=60, near_y=-80, far_x=60, far_y=-200), ObstacleBox())
    assert cmd.steering > 0.0
    assert cmd.pedal < 0.10
    assert ap.state.steering == cmd.steering
    assert ap.state.cross == cmd.cross

    ap.reset()
    assert ap.state.near == (0, 0)
    assert ap.state.pedal == 0.0


def test_obstacle_without_image_size_is_ignored():
    t = ThrottleController(CFG)
    box = ObstacleBox(x=10, y=10, w=20, h=20, count=1)
    assert t.apply(0.0, 0.0, box, False) == pytest.approx(0.10)
    assert t.apply(0.0, 0.0, box, True) == pytest.approx(0.10)
