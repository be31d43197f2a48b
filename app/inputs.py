from dataclasses import dataclass
from typing import Optional

from messaging import Envelope, LatestValue, NavigationResult, ObstacleBox, UdpSession


@dataclass(frozen=True)
class InputSnapshot:
    navigation: NavigationResult
    obstacle: ObstacleBox
    navigation_age: Optional[float] = None   # seconds, None if never received
    obstacle_age: Optional[float] = None


class ControlInputs:
    """
    Latest navigation points and obstacle box as seen by the control process.
    The session listener writes, the control tick takes a snapshot.
    """

    def __init__(self):
        self.navigation = LatestValue(NavigationResult())
        self.obstacle = LatestValue(ObstacleBox())

    def attach(self, session: UdpSession) -> None:
        session.data_trigger(NavigationResult, self._on_navigation)
        session.data_trigger(ObstacleBox, self._on_obstacle)

    def _on_navigation(self, env: Envelope) -> None:
        self.navigation.set(env.message)

    def _on_obstacle(self, env: Envelope) -> None:
        self.obstacle.set(env.message)

    def snapshot(self) -> InputSnapshot:
        nav, nav_age = self.navigation.get_with_age()
        box, box_age = self.obstacle.get_with_age()
        return InputSnapshot(navigation=nav, obstacle=box, navigation_age=nav_age, obstacle_age=box_age)
