from __future__ import annotations

import time
from typing import Optional, Union

import cv2
import numpy as np


def _frozen_bgra(frame: np.ndarray, width: int, height: int) -> np.ndarray:
    """Private, read-only BGRA copy at the configured size."""
    if frame.shape[1] != width or frame.shape[0] != height:
        frame = cv2.resize(frame, (width, height), interpolation=cv2.INTER_AREA)
    if frame.ndim == 2:
        frame = cv2.cvtColor(frame, cv2.COLOR_GRAY2BGRA)
    elif frame.shape[2] == 3:
        frame = cv2.cvtColor(frame, cv2.COLOR_BGR2BGRA)
    else:
        frame = frame.copy()
    frame.flags.writeable = False
    return frame


class FrameSource:
    """
    open() once, then wait_frame() per tick; None means the stream ended.
    Frames handed out are never touched again by the source.
    """

    width: int
    height: int

    def open(self) -> None:
        raise NotImplementedError

    def wait_frame(self) -> Optional[np.ndarray]:
        raise NotImplementedError

    def close(self) -> None:
        pass

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, *exc):
        self.close()
        return False


class VideoFrameSource(FrameSource):
    """
    Recorded video file or USB camera through OpenCV.
    device: file path, or an integer index ("0" works too).
    realtime: pace file playback at the file's fps instead of as fast as possible.
    """

    def __init__(self, device: Union[str, int], width: int, height: int, realtime: bool = False):
        self.device = int(device) if isinstance(device, str) and device.isdigit() else device
        self.width = int(width)
        self.height = int(height)
        self.realtime = realtime

        self._cap: Optional[cv2.VideoCapture] = None
        self._period = 0.0
        self._last = 0.0

    def open(self) -> None:
        cap = cv2.VideoCapture(self.device)
        if not cap.isOpened():
            raise RuntimeError(f"Could not open video source: {self.device}")

        if isinstance(self.device, int):
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        elif self.realtime:
            fps = cap.get(cv2.CAP_PROP_FPS)
            self._period = 1.0 / fps if fps and fps > 0 else 0.0

        self._cap = cap
        print(f"[CAMERA] Opened {self.device} ({self.width}x{self.height})")

    def wait_frame(self) -> Optional[np.ndarray]:
        if self._cap is None:
            raise RuntimeError("Frame source is not open")

        if self._period > 0:
            dt = self._period - (time.time() - self._last)
            if dt > 0:
                time.sleep(dt)
            self._last = time.time()

        ok, frame = self._cap.read()
        if not ok or frame is None:
            return None
        return _frozen_bgra(frame, self.width, self.height)

    def close(self) -> None:
        if self._cap is not None:
            self._cap.release()
            self._cap = None


class PiCameraFrameSource(FrameSource):
    """CSI camera on the Raspberry Pi (picamera2), 4-channel main stream."""

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self._picam2 = None

    def open(self) -> None:
        # only installed on the Pi
        from picamera2 import Picamera2

        self._picam2 = Picamera2()
        cfg = self._picam2.create_preview_configuration(
            main={"size": (self.width, self.height), "format": "XBGR8888"},
            buffer_count=4,
        )
        self._picam2.configure(cfg)
        self._picam2.start()
        print(f"[CAMERA] Picamera2 started ({self.width}x{self.height})")

    def wait_frame(self) -> Optional[np.ndarray]:
        if self._picam2 is None:
            raise RuntimeError("Frame source is not open")
        # blocks until the next request completes
        frame = self._picam2.capture_array("main")
        if frame is None:
            return None
        return _frozen_bgra(frame, self.width, self.height)

    def close(self) -> None:
        if self._picam2 is not None:
            try:
                self._picam2.stop()
            finally:
                self._picam2 = None


def open_source(kind: str, device: str, width: int, height: int, realtime: bool = False) -> FrameSource:
    if kind == "picamera":
        src = PiCameraFrameSource(width, height)
    elif kind == "video":
        src = VideoFrameSource(device, width, height, realtime=realtime)
    else:
        raise ValueError(f"Unknown frame source: {kind}")
    src.open()
    return src
