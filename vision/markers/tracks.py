from __future__ import annotations

from typing import Iterable, Sequence, Tuple

from .blobs import MarkerBlob, Point

Track = Tuple[Point, ...]


def sort_nearest_first(points: Iterable[Point]) -> Track:
    # larger y = lower in the image = closer to the vehicle
    return tuple(sorted(points, key=lambda p: -p.y))


def merge_overlapping(points: Sequence[Point], tolerance: int) -> Track:
    """Drop every point that sits within `tolerance` (both axes) of the last kept one."""
    kept = []
    for p in points:
        if kept:
            last = kept[-1]
            if abs(p.x - last.x) < tolerance and abs(p.y - last.y) < tolerance:
                continue
        kept.append(p)
    return tuple(kept)


def reduce_track(blobs: Iterable[MarkerBlob], tolerance: int) -> Track:
    """Accepted blobs -> ordered, de-duplicated centroid track."""
    return merge_overlapping(sort_nearest_first(b.centroid for b in blobs), tolerance)


def nearest_y(track: Track) -> int:
    return track[0].y if track else 0


def adjacent_pairs(track: Track):
    return zip(track, track[1:])
