from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar


@dataclass(frozen=True)
class NavigationResult:
    """
    Near/far centerline points in vehicle-relative pixels.

    x: lateral offset, positive to the left of the vehicle axis
    y: forward offset, negative ahead of the vehicle
    All zero means "no target".
    """

    MESSAGE_ID: ClassVar[int] = 2001

    near_x: int = 0
    near_y: int = 0
    far_x: int = 0
    far_y: int = 0
    reach_cross_road: bool = False

    @property
    def has_target(self) -> bool:
        return not (self.near_x == 0 and self.near_y == 0 and self.far_x == 0 and self.far_y == 0)


@dataclass(frozen=True)
class ObstacleBox:
    """First detection of the obstacle detector; count == 0 means no obstacle."""

    MESSAGE_ID: ClassVar[int] = 2002

    x: int = 0
    y: int = 0
    w: int = 0
    h: int = 0
    image_width: int = 0
    image_height: int = 0
    count: int = 0

    @property
    def area(self) -> float:
        return float(self.w * self.h)

    @property
    def image_area(self) -> float:
        return float(self.image_width * self.image_height)


@dataclass(frozen=True)
class SteeringCommand:
    MESSAGE_ID: ClassVar[int] = 1090

    ground_steering: float = 0.0


@dataclass(frozen=True)
class PedalCommand:
    MESSAGE_ID: ClassVar[int] = 1086

    position: float = 0.0


MESSAGE_TYPES = {
    cls.MESSAGE_ID: cls
    for cls in (NavigationResult, ObstacleBox, SteeringCommand, PedalCommand)
}
