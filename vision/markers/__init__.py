"""
Cone marker perception.

Turns one camera frame into the near/far centerline points the controller
steers toward:
- colour segmentation of yellow (left), blue (right) and red (stop) markers
- blob shape filtering and per-colour tracks
- left/right pairing into a centerline, crossing detection
- near point stabilisation and vehicle-relative coordinates
"""

from .config import ColorThresholds, MarkerConfig
from .pipeline import FrameAnalysis, MarkerPipeline
from .segmenter import MarkerClass

__all__ = [
    "ColorThresholds",
    "MarkerConfig",
    "FrameAnalysis",
    "MarkerPipeline",
    "MarkerClass",
]
