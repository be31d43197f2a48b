from __future__ import annotations

import cv2
import numpy as np

from .config import MarkerConfig
from .pipeline import FrameAnalysis
from .roi import crop_roi
from .segmenter import MarkerClass

# BGR
BLOB_COLORS = {
    MarkerClass.LEFT: (0, 255, 255),
    MarkerClass.RIGHT: (255, 0, 0),
    MarkerClass.STOP: (0, 0, 255),
}
TRACK_COLOR = (0, 255, 0)
PAIR_COLOR = (255, 255, 255)
CENTER_COLOR = (0, 0, 255)
DAMPED_COLOR = (0, 255, 255)
SEAM_COLOR = (255, 255, 0)


def render(frame: np.ndarray, analysis: FrameAnalysis, cfg: MarkerConfig) -> np.ndarray:
    """Debug view of one frame: ROI with blobs, tracks, pairing and the near point."""
    roi = crop_roi(frame, cfg)
    if roi.ndim == 3 and roi.shape[2] == 4:
        img = cv2.cvtColor(roi, cv2.COLOR_BGRA2BGR)
    else:
        img = roi.copy()

    w = img.shape[1]
    seam_y = max(0, cfg.seam_band_rows - 1)
    cv2.line(img, (0, seam_y), (w - 1, seam_y), SEAM_COLOR, 2, cv2.LINE_AA)

    for cls, blobs in analysis.blobs.items():
        color = BLOB_COLORS[cls]
        for b in blobs:
            x, y, bw, bh = b.bbox
            cv2.rectangle(img, (x, y), (x + bw, y + bh), color, 2)

    for cls in (MarkerClass.LEFT, MarkerClass.RIGHT):
        track = analysis.tracks.get(cls, ())
        for a, b in zip(track, track[1:]):
            cv2.line(img, a, b, TRACK_COLOR, 2, cv2.LINE_AA)

    for lp, rp in analysis.pairs:
        cv2.line(img, lp, rp, PAIR_COLOR, 4, cv2.LINE_AA)

    for p in analysis.centerline:
        cv2.circle(img, p, 5, CENTER_COLOR, cv2.FILLED, cv2.LINE_AA)

    crossing = analysis.crossing
    if crossing.ends is not None:
        a, b = crossing.ends
        cv2.line(img, a, b, PAIR_COLOR, 2, cv2.LINE_AA)
    if crossing.midpoint is not None:
        cv2.circle(img, crossing.midpoint, 3, CENTER_COLOR, cv2.FILLED, cv2.LINE_AA)

    if analysis.damped:
        cv2.circle(img, analysis.near, 5, DAMPED_COLOR, cv2.FILLED, cv2.LINE_AA)

    nav = analysis.navigation
    label = f"near=({nav.near_x},{nav.near_y}) far=({nav.far_x},{nav.far_y}) cross={int(nav.reach_cross_road)}"
    cv2.putText(img, label, (4, img.shape[0] - 6), cv2.FONT_HERSHEY_SIMPLEX, 0.4, PAIR_COLOR, 1, cv2.LINE_AA)

    return img
