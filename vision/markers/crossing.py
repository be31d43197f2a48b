from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from .blobs import Point
from .config import MarkerConfig
from .tracks import Track, adjacent_pairs


@dataclass(frozen=True)
class Crossing:
    reach_cross_road: bool
    # midpoint of the two ends of a stop line straddling the vehicle axis
    midpoint: Optional[Point] = None
    ends: Optional[Tuple[Point, Point]] = None


def find_stop_line(stop_track: Track, cfg: MarkerConfig) -> Optional[Tuple[Point, Point]]:
    cx = cfg.center_x
    reach = cfg.frame_width // 6
    threshold = -(reach * reach)

    for a, b in adjacent_pairs(stop_track):
        straddle = (a.x - cx) * (b.x - cx)
        if straddle < threshold and abs(a.y - b.y) <= cfg.crossing_max_dy:
            return a, b
    return None


def detect_crossing(stop_track: Track, cfg: MarkerConfig) -> Crossing:
    """
    A crossing is ahead as soon as more than one stop marker survived filtering.
    The midpoint is only produced when two of them look like the ends of one line.
    """
    ends = find_stop_line(stop_track, cfg)
    mid = None
    if ends is not None:
        a, b = ends
        mid = Point((a.x + b.x) // 2, (a.y + b.y) // 2)

    return Crossing(reach_cross_road=len(stop_track) > 1, midpoint=mid, ends=ends)
