from __future__ import annotations

import sys
import time
from typing import Optional

import cv2
import numpy as np

from messaging import Envelope, LatestValue, NavigationResult, ObstacleBox, UdpSession

from .camera import FrameSource, open_source
from .cli import PerceptionAppConfig, parse_config
from .overlay import render
from .pipeline import FrameAnalysis, MarkerPipeline
from .snapshot import SnapshotWriter


class MarkerService:
    """
    Perception process around MarkerPipeline:
    - keeps the latest obstacle box from the session
    - runs the pipeline once per frame and publishes the result
    - writes a snapshot whenever the crossing flag changes
    """

    def __init__(self, cfg: PerceptionAppConfig, session: UdpSession, source: Optional[FrameSource] = None):
        self.cfg = cfg
        self.session = session
        self.source = source
        self.pipeline = MarkerPipeline(cfg.markers)

        self.obstacle = LatestValue(ObstacleBox())
        session.data_trigger(ObstacleBox, self._on_obstacle)

        self.snap = SnapshotWriter(cfg.snapshot_dir) if cfg.snapshots else None
        self._last_cross: Optional[bool] = None
        self._t0 = time.time()

    def _on_obstacle(self, env: Envelope) -> None:
        if env.sender_stamp == self.cfg.obstacle_sender:
            self.obstacle.set(env.message)

    def step(self, frame: np.ndarray) -> FrameAnalysis:
        analysis = self.pipeline.process(frame, self.obstacle.get())
        self.session.send(analysis.navigation)

        if self.snap is not None:
            self.maybe_snapshot_on_change(frame, analysis)

        n = self.pipeline.frames
        if self.cfg.verbose:
            cv2.imshow("Cone detection", render(frame, analysis, self.cfg.markers))
            cv2.waitKey(1)
            print(f"[PERCEPTION] f={n} {_fmt(analysis.navigation)}")
        elif n % self.cfg.print_every == 0:
            elapsed = time.time() - self._t0
            fps = n / elapsed if elapsed > 0 else 0.0
            print(f"[PERCEPTION] f={n} fps={fps:4.1f} {_fmt(analysis.navigation)}")

        return analysis

    def maybe_snapshot_on_change(self, frame: np.ndarray, analysis: FrameAnalysis) -> Optional[bool]:
        """
        If the crossing flag changed, write a snapshot and return the new value.
        Otherwise return None.
        """
        cross = analysis.navigation.reach_cross_road
        if cross == self._last_cross:
            return None

        event = "crossing_init" if self._last_cross is None else "crossing_change"
        self._last_cross = cross
        self.snap.write(
            event,
            analysis.navigation,
            frame=self.pipeline.frames,
            overlay=render(frame, analysis, self.cfg.markers),
            stop_line=list(analysis.crossing.ends or ()),
        )
        return cross

    def run(self) -> None:
        assert self.source is not None

        while self.session.is_running:
            frame = self.source.wait_frame()
            if frame is None:
                print("[PERCEPTION] End of frame stream")
                break
            self.step(frame)

    def close(self) -> None:
        if self.snap:
            self.snap.close()
        if self.cfg.verbose:
            cv2.destroyAllWindows()


def _fmt(nav: NavigationResult) -> str:
    return (
        f"near=({nav.near_x:+d},{nav.near_y:+d}) "
        f"far=({nav.far_x:+d},{nav.far_y:+d}) "
        f"cross={nav.reach_cross_road}"
    )


def main(argv=None) -> int:
    cfg = parse_config(argv)
    m = cfg.markers

    try:
        source = open_source(cfg.source, cfg.device, m.frame_width, m.frame_height, realtime=cfg.realtime)
    except RuntimeError as e:
        print("[ERROR]", e)
        return 1

    session = UdpSession(cfg.cid, cfg.port)
    service = None
    try:
        session.start()
        service = MarkerService(cfg, session, source)
        print("[PERCEPTION] Frame loop started")
        service.run()
    except KeyboardInterrupt:
        print("[PERCEPTION] Keyboard interrupt")
    finally:
        print("[PERCEPTION] Shutting down")
        if service:
            service.close()
        source.close()
        session.stop()
    return 0


if __name__ == "__main__":
    sys.exit(main())
