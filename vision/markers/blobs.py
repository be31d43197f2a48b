from __future__ import annotations

from dataclasses import dataclass
from typing import List, NamedTuple, Optional, Tuple

import cv2
import numpy as np

from .config import MarkerConfig
from .segmenter import MarkerClass


class Point(NamedTuple):
    x: int
    y: int


@dataclass(frozen=True)
class MarkerBlob:
    cls: str
    outline: np.ndarray   # simplified polygon, (n, 1, 2)
    hull: np.ndarray      # convex hull of the outline, (m, 1, 2)
    bbox: Tuple[int, int, int, int]   # x, y, w, h of the hull

    left: Point
    right: Point
    top: Point
    bottom: Point

    @property
    def width(self) -> int:
        return self.right.x - self.left.x

    @property
    def height(self) -> int:
        return self.bottom.y - self.top.y

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def aspect(self) -> float:
        return self.width / self.height if self.height > 0 else 0.0

    @property
    def centroid(self) -> Point:
        return Point((self.left.x + self.right.x) // 2, (self.top.y + self.bottom.y) // 2)


def clean_mask(mask: np.ndarray, iterations: int) -> np.ndarray:
    """Close small gaps and drop speckles: dilate N times, then erode N times."""
    dilated = cv2.dilate(mask, None, iterations=iterations, borderType=cv2.BORDER_REPLICATE)
    return cv2.erode(dilated, None, iterations=iterations, borderType=cv2.BORDER_REPLICATE)


def find_outlines(mask: np.ndarray, cfg: MarkerConfig) -> List[np.ndarray]:
    edges = cv2.Canny(mask, cfg.canny_low, cfg.canny_high, apertureSize=3)
    contours, _ = cv2.findContours(edges, cv2.RETR_TREE, cv2.CHAIN_APPROX_SIMPLE)
    return [cv2.approxPolyDP(c, cfg.approx_tolerance, True) for c in contours]


def hull_extrema(hull: np.ndarray) -> Tuple[Point, Point, Point, Point]:
    """
    Leftmost / rightmost / top / bottom vertices of the hull.
    Ties resolve to the first vertex in hull order.
    """
    pts = hull.reshape(-1, 2)
    xs = pts[:, 0]
    ys = pts[:, 1]

    def at(i: int) -> Point:
        return Point(int(pts[i, 0]), int(pts[i, 1]))

    return at(int(np.argmin(xs))), at(int(np.argmax(xs))), at(int(np.argmin(ys))), at(int(np.argmax(ys)))


def measure(outline: np.ndarray, cls: str, cfg: MarkerConfig) -> Optional[MarkerBlob]:
    n = len(outline)
    if n < cfg.min_vertices or n > cfg.max_vertices:
        return None

    hull = cv2.convexHull(outline)
    left, right, top, bottom = hull_extrema(hull)
    x, y, w, h = cv2.boundingRect(hull)

    return MarkerBlob(
        cls=cls,
        outline=outline,
        hull=hull,
        bbox=(int(x), int(y), int(w), int(h)),
        left=left,
        right=right,
        top=top,
        bottom=bottom,
    )


def shape_ok(blob: MarkerBlob, cfg: MarkerConfig) -> bool:
    if blob.height <= 0:
        return False
    if not (cfg.min_aspect < blob.aspect < cfg.max_aspect):
        return False
    return cfg.min_area < blob.area < cfg.max_area


def position_ok(blob: MarkerBlob, cfg: MarkerConfig, stop_max_y: int = 0) -> bool:
    c = blob.centroid

    if blob.cls == MarkerClass.STOP:
        # both side vertices below the middle: standing on the ground, not a reflection
        return blob.right.y > c.y and blob.left.y > c.y

    half = cfg.frame_width // 2
    if blob.cls == MarkerClass.LEFT:
        on_side = c.x < half
    else:
        on_side = c.x > half

    # markers beyond the nearest stop marker belong to the next segment
    return (c.y < cfg.upper_band or on_side) and c.y > stop_max_y


def accept(blob: MarkerBlob, cfg: MarkerConfig, stop_max_y: int = 0) -> bool:
    return shape_ok(blob, cfg) and position_ok(blob, cfg, stop_max_y)


def extract_blobs(mask: np.ndarray, cls: str, cfg: MarkerConfig, stop_max_y: int = 0) -> List[MarkerBlob]:
    """Clean the mask, outline it and keep the blobs that look like markers of `cls`."""
    cleaned = clean_mask(mask, cfg.morph_iterations)

    blobs = []
    for outline in find_outlines(cleaned, cfg):
        blob = measure(outline, cls, cfg)
        if blob is not None and accept(blob, cfg, stop_max_y):
            blobs.append(blob)
    return blobs
