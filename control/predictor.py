from __future__ import annotations

import math
from typing import Tuple

from .config import ControlConfig

NearPoint = Tuple[int, int]


class NearPointPredictor:
    """
    Blends the measured near point with where the previous one should be
    after the vehicle moved on its last pedal/steering commands.

    Moving forward brings the point closer (y toward 0); turning left moves it
    right in the vehicle frame (x decreases).
    """

    def __init__(self, cfg: ControlConfig):
        self.cfg = cfg

    def predict(self, previous: NearPoint, pedal: float, steering: float) -> NearPoint:
        length = self.cfg.ks * pedal
        angle = self.cfg.ka * steering
        px, py = previous
        return (
            px - int(length * math.sin(angle)),
            py + int(length * math.cos(angle)),
        )

    def blend(self, measured: NearPoint, predicted: NearPoint) -> NearPoint:
        g = self.cfg.blend
        return (
            int(g * measured[0] + (1.0 - g) * predicted[0]),
            int(g * measured[1] + (1.0 - g) * predicted[1]),
        )

    def update(self, measured: NearPoint, previous: NearPoint, pedal: float, steering: float) -> NearPoint:
        return self.blend(measured, self.predict(previous, pedal, steering))
