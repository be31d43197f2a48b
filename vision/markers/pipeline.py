from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional

import numpy as np

from messaging.models import NavigationResult, ObstacleBox

from .blobs import MarkerBlob, Point, extract_blobs
from .centerline import NearPointStabilizer, Pairing, build_centerline, navigation_result, pair_tracks
from .config import MarkerConfig
from .crossing import Crossing, detect_crossing
from .segmenter import MarkerClass, MarkerMasks, preprocess, segment
from .tracks import Track, nearest_y, reduce_track


@dataclass
class FrameAnalysis:
    """Everything one frame produced; `navigation` is what gets published."""

    navigation: NavigationResult
    masks: MarkerMasks
    blobs: Dict[str, List[MarkerBlob]]
    tracks: Dict[str, Track]
    crossing: Crossing
    pairs: List[Pairing] = field(default_factory=list)
    centerline: List[Point] = field(default_factory=list)
    raw_near: Optional[Point] = None
    near: Optional[Point] = None
    far: Optional[Point] = None

    @property
    def damped(self) -> bool:
        return self.raw_near is not None and self.near != self.raw_near


class MarkerPipeline:
    """
    Frame -> NavigationResult.

    Keeps one piece of state between frames: the previous near point used by
    the stabilizer. Call process() once per frame, from one thread.
    """

    def __init__(self, cfg: Optional[MarkerConfig] = None):
        self.cfg = cfg or MarkerConfig()
        self.stabilizer = NearPointStabilizer(self.cfg)
        self.frames = 0

    def reset(self) -> None:
        self.stabilizer.reset()
        self.frames = 0

    def process(self, frame: np.ndarray, obstacle: Optional[ObstacleBox] = None) -> FrameAnalysis:
        cfg = self.cfg
        self.frames += 1

        hsv = preprocess(frame, cfg)
        masks = segment(hsv, cfg, obstacle)

        # stop track first: its nearest marker bounds the boundary markers
        blobs = {MarkerClass.STOP: extract_blobs(masks.stop, MarkerClass.STOP, cfg)}
        stop_track = reduce_track(blobs[MarkerClass.STOP], cfg.overlap_tolerance)
        stop_max_y = nearest_y(stop_track)

        for cls in (MarkerClass.LEFT, MarkerClass.RIGHT):
            blobs[cls] = extract_blobs(masks.get(cls), cls, cfg, stop_max_y)

        tracks = {
            MarkerClass.STOP: stop_track,
            MarkerClass.LEFT: reduce_track(blobs[MarkerClass.LEFT], cfg.overlap_tolerance),
            MarkerClass.RIGHT: reduce_track(blobs[MarkerClass.RIGHT], cfg.overlap_tolerance),
        }

        crossing = detect_crossing(stop_track, cfg)
        left, right = tracks[MarkerClass.LEFT], tracks[MarkerClass.RIGHT]
        pairs = pair_tracks(left, right, cfg)
        centerline = build_centerline(pairs, crossing.midpoint)

        analysis = FrameAnalysis(
            navigation=NavigationResult(),
            masks=masks,
            blobs=blobs,
            tracks=tracks,
            crossing=crossing,
            pairs=pairs,
            centerline=centerline,
        )

        if not centerline:
            return analysis

        analysis.raw_near = centerline[0]
        analysis.near = self.stabilizer.update(centerline[0])
        analysis.far = centerline[-1] if len(centerline) > 1 else analysis.near
        analysis.navigation = navigation_result(analysis.near, analysis.far, crossing.reach_cross_road, cfg)
        return analysis
