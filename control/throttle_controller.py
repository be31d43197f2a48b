# control/throttle_controller.py

from messaging.models import ObstacleBox

from .config import ControlConfig


class ThrottleController:
    def __init__(self, cfg: ControlConfig):
        self.cfg = cfg

    def base(self, steering: float) -> float:
        # slow down in sharp turns
        return self.cfg.base_pedal * (1.0 - abs(steering))

    def apply(self, steering: float, cross: float, box: ObstacleBox, reach_cross_road: bool) -> float:
        cfg = self.cfg
        pedal = self.base(steering)

        # a box without its image size cannot be measured
        if box.count <= 0 or box.image_area <= 0:
            return pedal

        img_area = box.image_area
        area = box.area

        # follow an obstacle we are heading at, slower the bigger it looks
        if area > img_area * cfg.obstacle_min_area_ratio and abs(cross) < cfg.obstacle_max_cross:
            pedal = cfg.obstacle_pedal * (1.0 - area / (img_area * cfg.obstacle_max_area_ratio))

        if reach_cross_road and pedal > cfg.crossing_pedal:
            pedal = cfg.crossing_pedal

        # something big on the right at the crossing that is not just behind us
        not_at_bottom = box.y != box.image_height - 1
        on_right = box.x + box.w > box.image_width // 2 - 1
        if not_at_bottom and reach_cross_road and on_right and area > img_area * cfg.obstacle_stop_area_ratio:
            pedal = 0.0

        return pedal
