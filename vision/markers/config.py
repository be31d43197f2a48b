from __future__ import annotations

from dataclasses import dataclass, field
from typing import Tuple


HsvRange = Tuple[Tuple[int, int, int], Tuple[int, int, int]]


@dataclass(frozen=True)
class ColorThresholds:
    # left boundary (yellow); saturation low bound adapts to the left half
    left_hsv: HsvRange = ((10, 70, 100), (40, 255, 255))
    # right boundary (blue); saturation low bound adapts to the right half
    right_hsv: HsvRange = ((110, 101, 20), (130, 255, 150))
    # stop marker (red), fixed; hue wraps near 180
    stop_hsv: HsvRange = ((156, 120, 70), (180, 255, 255))

    # reference saturation of the scene the base offsets were tuned on
    saturation_reference: float = 45.0
    saturation_gain: float = 1.0


@dataclass(frozen=True)
class MarkerConfig:
    frame_width: int = 640
    frame_height: int = 480

    colors: ColorThresholds = field(default_factory=ColorThresholds)

    # exclusion zones (ROI coordinates)
    seam_band_rows: int = 40

    # part of the obstacle box that gets zeroed before thresholding
    obstacle_x_frac: float = 0.25
    obstacle_w_frac: float = 0.5
    obstacle_h_frac: float = 0.7

    # mask cleaning / outlines
    morph_iterations: int = 4
    canny_low: int = 30
    canny_high: int = 90
    approx_tolerance: float = 3.0
    min_vertices: int = 3
    max_vertices: int = 30

    # shape filter
    min_aspect: float = 0.15
    max_aspect: float = 0.8
    min_area: float = 200.0
    max_area_divisor: int = 20   # area must stay below frame_area / divisor

    # tracks
    overlap_tolerance: int = 25

    # crossing: stop markers within this many rows form one stop line
    crossing_max_dy: int = 70

    # stabilizer: near point jumps above width / divisor get averaged
    jump_divisor: int = 25

    # offset of the synthesized boundary point when one side is missing
    default_side_offset: int = 50

    @property
    def roi_y0(self) -> int:
        return self.frame_height // 2 - 1

    @property
    def roi_height(self) -> int:
        return self.frame_height // 2

    @property
    def center_x(self) -> int:
        return self.frame_width // 2 - 1

    @property
    def bottom_y(self) -> int:
        """Last ROI row; the vehicle sits just below it."""
        return self.frame_height // 2 - 1

    @property
    def max_area(self) -> float:
        return self.frame_width * self.frame_height / self.max_area_divisor

    @property
    def upper_band(self) -> int:
        # markers above this ROI row are accepted on either side
        return self.frame_height // 4

    @property
    def jump_threshold(self) -> int:
        return self.frame_width // self.jump_divisor
