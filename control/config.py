from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ControlConfig:
    # steering PD on the heading cross product
    kp: float = 0.20
    kd: float = 0.05

    # vehicle forward axis in navigation coordinates (ahead is negative y)
    forward_axis: Tuple[float, float] = (0.0, -1.0)
    min_heading_length: float = 0.01

    # near point prediction from our own last commands
    ks: float = 600.0   # pedal -> displacement length (px per tick)
    ka: float = 1.0     # steering -> displacement angle (rad)
    blend: float = 0.65  # weight of the measured near point

    # throttle
    base_pedal: float = 0.10

    # obstacle ahead
    obstacle_min_area_ratio: float = 0.01    # ignore boxes below this share of the image
    obstacle_max_area_ratio: float = 0.10    # pedal reaches 0 at this share
    obstacle_max_cross: float = 0.15         # only when roughly heading at it
    obstacle_pedal: float = 0.20
    obstacle_stop_area_ratio: float = 0.05   # box blocking the crossing -> full stop

    crossing_pedal: float = 0.04
