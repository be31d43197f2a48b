from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

import cv2
import numpy as np

from messaging.models import ObstacleBox

from .config import HsvRange, MarkerConfig
from .roi import crop_roi, fixed_exclusion_zones, obstacle_zone, zero_zones


class MarkerClass:
    LEFT = "left"     # yellow cones
    RIGHT = "right"   # blue cones
    STOP = "stop"     # red stop-line markers

    ALL = (LEFT, RIGHT, STOP)


@dataclass
class MarkerMasks:
    left: np.ndarray
    right: np.ndarray
    stop: np.ndarray

    # thresholds actually used on this frame (after lighting adaptation)
    ranges: Dict[str, HsvRange]

    def get(self, cls: str) -> np.ndarray:
        return getattr(self, cls)


def to_hsv(roi: np.ndarray) -> np.ndarray:
    if roi.ndim == 3 and roi.shape[2] == 4:
        roi = cv2.cvtColor(roi, cv2.COLOR_BGRA2BGR)
    return cv2.cvtColor(roi, cv2.COLOR_BGR2HSV)


def preprocess(frame: np.ndarray, cfg: MarkerConfig) -> np.ndarray:
    """Frame -> HSV region of interest (new array, the frame is left untouched)."""
    return to_hsv(crop_roi(frame, cfg))


def mean_saturation(hsv: np.ndarray, cfg: MarkerConfig) -> Tuple[float, float]:
    half = cfg.frame_width // 2
    left = hsv[:, :half, 1]
    right = hsv[:, half - 1:cfg.frame_width - 1, 1]
    ml = float(left.mean()) if left.size else 0.0
    mr = float(right.mean()) if right.size else 0.0
    return ml, mr


def _adapt(rng: HsvRange, mean_s: float, cfg: MarkerConfig) -> HsvRange:
    c = cfg.colors
    lo, hi = rng
    s = int(lo[1] + c.saturation_gain * (mean_s - c.saturation_reference))
    s = max(0, min(255, s))
    return (lo[0], s, lo[2]), hi


def adaptive_ranges(hsv: np.ndarray, cfg: MarkerConfig) -> Dict[str, HsvRange]:
    ml, mr = mean_saturation(hsv, cfg)
    c = cfg.colors
    return {
        MarkerClass.LEFT: _adapt(c.left_hsv, ml, cfg),
        MarkerClass.RIGHT: _adapt(c.right_hsv, mr, cfg),
        MarkerClass.STOP: c.stop_hsv,
    }


def segment(hsv: np.ndarray, cfg: MarkerConfig, obstacle: Optional[ObstacleBox] = None) -> MarkerMasks:
    """
    Threshold the HSV ROI into left / right / stop masks.

    Saturation is measured before the exclusion zones are blanked so the
    adaptation sees the real scene.
    """
    ranges = adaptive_ranges(hsv, cfg)

    work = hsv.copy()
    zones = fixed_exclusion_zones(cfg)
    oz = obstacle_zone(obstacle, cfg)
    if oz is not None:
        zones.append(oz)
    zero_zones(work, zones)

    masks = {}
    for cls in MarkerClass.ALL:
        lo, hi = ranges[cls]
        masks[cls] = cv2.inRange(work, np.array(lo, dtype=np.uint8), np.array(hi, dtype=np.uint8))

    return MarkerMasks(
        left=masks[MarkerClass.LEFT],
        right=masks[MarkerClass.RIGHT],
        stop=masks[MarkerClass.STOP],
        ranges=ranges,
    )
