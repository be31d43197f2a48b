# control/steering.py

import math
from typing import NamedTuple, Tuple

from .config import ControlConfig


class Heading(NamedTuple):
    cross: float   # > 0: target to the left of the forward axis
    dot: float     # < 0: target behind


def heading(near: Tuple[int, int], far: Tuple[int, int], cfg: ControlConfig) -> Heading:
    # near point weighted twice
    dx = (far[0] + 2 * near[0]) / 2.0
    dy = (far[1] + 2 * near[1]) / 2.0

    length = math.hypot(dx, dy)
    if length < cfg.min_heading_length:
        length = 1.0
    dx /= length
    dy /= length

    fx, fy = cfg.forward_axis
    return Heading(cross=fx * dy - fy * dx, dot=fx * dx + fy * dy)


class SteeringLaw:
    def __init__(self, cfg: ControlConfig):
        self.cfg = cfg

    def apply(self, near: Tuple[int, int], far: Tuple[int, int], h: Heading, prev_cross: float) -> float:
        # no lateral offset at all: nothing to steer toward
        if near[0] == 0 and far[0] == 0:
            return 0.0

        d_term = self.cfg.kd * (h.cross - prev_cross)

        # target behind: turn as hard as the P term allows
        if h.dot < 0.0:
            return self.cfg.kp * (-1.0 if h.cross < 0.0 else 1.0) + d_term

        return self.cfg.kp * h.cross + d_term
