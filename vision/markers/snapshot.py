import json
import os
import time
from dataclasses import asdict, is_dataclass
from typing import Any, Optional

import numpy as np
from PIL import Image


def _safe(obj: Any) -> Any:
    """
    Convert dataclasses / tuples to JSON-serializable structures.
    """
    if obj is None:
        return None
    if is_dataclass(obj):
        return asdict(obj)
    if isinstance(obj, (list, dict, str, int, float, bool)):
        return obj
    if isinstance(obj, tuple):
        return list(obj)
    return str(obj)


def to_pil(bgr: np.ndarray) -> Image.Image:
    return Image.fromarray(np.ascontiguousarray(bgr[:, :, ::-1]))


class SnapshotWriter:
    """
    Perception snapshots: one JSON line per event, plus a JPEG of the
    debug overlay when one is given.
    """

    def __init__(self, out_dir: str = "logs/vision", filename: Optional[str] = None):
        os.makedirs(out_dir, exist_ok=True)
        self._img_dir = os.path.join(out_dir, "images")
        os.makedirs(self._img_dir, exist_ok=True)
        if filename is None:
            filename = time.strftime("markers_%Y%m%d_%H%M%S.jsonl")
        self.path = os.path.join(out_dir, filename)
        self._f = open(self.path, "a", buffering=1)
        print(f"[SNAP] Marker snapshots: {self.path}")

    def close(self) -> None:
        self._f.close()

    def write(self, event: str, state: Any, frame: int, overlay: Optional[np.ndarray] = None, **extra: Any) -> None:
        rec = {
            "ts": time.time(),
            "event": event,
            "frame": frame,
            "state": _safe(state),
        }
        if extra:
            rec["extra"] = {k: _safe(v) for k, v in extra.items()}

        if overlay is not None:
            fname = f"{event}_{time.strftime('%Y%m%d_%H%M%S')}_f{frame}.jpg"
            img_path = os.path.join(self._img_dir, fname)
            try:
                to_pil(overlay).save(img_path, format="JPEG", quality=85)
                rec["image"] = img_path
            except OSError as e:
                print("[SNAP] Image save failed:", e)

        self._f.write(json.dumps(rec, ensure_ascii=False) + "\n")
