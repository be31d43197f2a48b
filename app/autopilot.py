from dataclasses import dataclass
from typing import Optional, Tuple

from control.config import ControlConfig
from control.predictor import NearPointPredictor
from control.steering import SteeringLaw, heading
from control.throttle_controller import ThrottleController
from messaging.models import NavigationResult, ObstacleBox


@dataclass
class ControlState:
    near: Tuple[int, int] = (0, 0)
    cross: float = 0.0
    steering: float = 0.0
    pedal: float = 0.0


@dataclass(frozen=True)
class DriveCommand:
    steering: float
    pedal: float

    # for logs
    near: Tuple[int, int] = (0, 0)
    cross: float = 0.0
    dot: float = 0.0


class Autopilot:
    """
    One control tick: navigation points + obstacle box -> steering and pedal.
    Owns the state carried between ticks; call step() from one thread only.
    """

    def __init__(self, cfg: Optional[ControlConfig] = None):
        self.cfg = cfg or ControlConfig()
        self.state = ControlState()

        self.predictor = NearPointPredictor(self.cfg)
        self.steering = SteeringLaw(self.cfg)
        self.throttle = ThrottleController(self.cfg)

    def reset(self) -> None:
        self.state = ControlState()

    def step(self, nav: NavigationResult, box: ObstacleBox) -> DriveCommand:
        st = self.state

        if not nav.has_target:
            # nothing to follow: straight ahead, and forget the old near point
            pedal = self.throttle.apply(0.0, 0.0, box, nav.reach_cross_road)
            self.state = ControlState(pedal=pedal)
            return DriveCommand(steering=0.0, pedal=pedal)

        near = self.predictor.update((nav.near_x, nav.near_y), st.near, st.pedal, st.steering)
        far = (nav.far_x, nav.far_y)

        h = heading(near, far, self.cfg)
        steer = self.steering.apply(near, far, h, st.cross)
        pedal = self.throttle.apply(steer, h.cross, box, nav.reach_cross_road)

        st.near = near
        st.cross = h.cross
        st.steering = steer
        st.pedal = pedal

        return DriveCommand(steering=steer, pedal=pedal, near=near, cross=h.cross, dot=h.dot)
