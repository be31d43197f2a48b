from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from messaging.models import ObstacleBox

from .config import MarkerConfig


@dataclass(frozen=True)
class Roi:
    x0: int
    y0: int
    x1: int
    y1: int

    @property
    def w(self) -> int:
        return max(0, self.x1 - self.x0)

    @property
    def h(self) -> int:
        return max(0, self.y1 - self.y0)

    @property
    def empty(self) -> bool:
        return self.w == 0 or self.h == 0

    def clip(self, width: int, height: int) -> "Roi":
        return Roi(
            x0=clamp(self.x0, 0, width),
            y0=clamp(self.y0, 0, height),
            x1=clamp(self.x1, 0, width),
            y1=clamp(self.y1, 0, height),
        )


def clamp(v: int, lo: int, hi: int) -> int:
    return max(lo, min(hi, v))


def rect(x: int, y: int, w: int, h: int) -> Roi:
    return Roi(x0=x, y0=y, x1=x + w, y1=y + h)


def compute_roi(cfg: MarkerConfig) -> Roi:
    """
    Lower half of the frame, full width.
    Starts one row above the middle, like the camera mount was calibrated.
    """
    return rect(0, cfg.roi_y0, cfg.frame_width, cfg.roi_height)


def crop_roi(frame: np.ndarray, cfg: MarkerConfig) -> np.ndarray:
    r = compute_roi(cfg).clip(frame.shape[1], frame.shape[0])
    return frame[r.y0:r.y1, r.x0:r.x1]


def fixed_exclusion_zones(cfg: MarkerConfig) -> List[Roi]:
    """
    Zones (ROI coordinates) that never contain usable markers:
    - the band along the image seam at the top of the ROI
    - the patch straight above the vehicle
    """
    w = cfg.frame_width
    h = cfg.frame_height
    seam = rect(0, 0, w, cfg.seam_band_rows)
    vehicle = rect(w // 4 - 1, 3 * h // 8 - 1, w // 2, h // 8)
    return [seam, vehicle]


def obstacle_zone(box: Optional[ObstacleBox], cfg: MarkerConfig) -> Optional[Roi]:
    """
    Central part of the obstacle box moved into ROI coordinates.
    Returns None when nothing of the box lands inside the ROI.
    """
    if box is None or box.w <= 0 or box.h <= 0:
        return None

    offset = cfg.frame_height // 2
    top = max(box.y - offset, 0)
    bottom = max(box.y - offset + box.h, 0)
    height = bottom - top
    if height <= 0:
        return None

    zone = rect(
        int(box.x + cfg.obstacle_x_frac * box.w),
        top,
        int(cfg.obstacle_w_frac * box.w),
        int(cfg.obstacle_h_frac * height),
    ).clip(cfg.frame_width, cfg.roi_height)

    return None if zone.empty else zone


def zero_zones(img: np.ndarray, zones: List[Roi]) -> None:
    h, w = img.shape[:2]
    for z in zones:
        z = z.clip(w, h)
        if not z.empty:
            img[z.y0:z.y1, z.x0:z.x1] = 0
