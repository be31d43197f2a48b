from __future__ import annotations

from typing import List, Optional, Tuple

from messaging.models import NavigationResult

from .blobs import Point
from .config import MarkerConfig
from .tracks import Track

Pairing = Tuple[Point, Point]   # (left, right)


def _mid(a: Point, b: Point) -> Point:
    return Point((a.x + b.x) // 2, (a.y + b.y) // 2)


def fill_missing_side(left: Track, right: Track, cfg: MarkerConfig) -> Tuple[Track, Track]:
    """
    When only one boundary is visible, assume the other one sits at a fixed
    spot near the ROI edge so a centerline point can still be produced.
    """
    if left and right:
        return left, right

    y = cfg.roi_height - 1 - cfg.default_side_offset
    if left and not right:
        right = (Point(cfg.frame_width - 1 - cfg.default_side_offset, y),)
    elif right and not left:
        left = (Point(cfg.default_side_offset, y),)
    return left, right


def pair_tracks(left: Track, right: Track, cfg: MarkerConfig) -> List[Pairing]:
    """
    Pair entries index-wise. Once the shorter track runs out, the rest of the
    longer track pairs with the shorter track's last entry.
    """
    left, right = fill_missing_side(left, right, cfg)
    if not left or not right:
        return []

    pairs = []
    for i in range(max(len(left), len(right))):
        lp = left[i] if i < len(left) else left[-1]
        rp = right[i] if i < len(right) else right[-1]
        pairs.append((lp, rp))
    return pairs


def build_centerline(pairs: List[Pairing], crossing_mid: Optional[Point]) -> List[Point]:
    points = [_mid(lp, rp) for lp, rp in pairs]
    if crossing_mid is not None:
        points.append(crossing_mid)
    return points


class NearPointStabilizer:
    """Averages the near point with the previous one when it jumps sideways."""

    def __init__(self, cfg: MarkerConfig):
        self.cfg = cfg
        self.previous = Point(cfg.center_x, cfg.bottom_y)

    def reset(self) -> None:
        self.previous = Point(self.cfg.center_x, self.cfg.bottom_y)

    def update(self, near: Point) -> Point:
        prev = self.previous
        if abs(near.x - prev.x) > self.cfg.jump_threshold:
            near = _mid(near, prev)
        self.previous = near
        return near


def to_vehicle(p: Point, cfg: MarkerConfig) -> Tuple[int, int]:
    """ROI pixel -> (lateral, forward) relative to the point straight below the camera."""
    return cfg.center_x - p.x, p.y - cfg.bottom_y


def navigation_result(near: Optional[Point], far: Optional[Point], reach_cross_road: bool,
                      cfg: MarkerConfig) -> NavigationResult:
    if near is None or far is None:
        return NavigationResult()

    nx, ny = to_vehicle(near, cfg)
    fx, fy = to_vehicle(far, cfg)
    return NavigationResult(
        near_x=nx,
        near_y=ny,
        far_x=fx,
        far_y=fy,
        reach_cross_road=reach_cross_road,
    )
