from dataclasses import dataclass
import argparse

import config

from .config import MarkerConfig


@dataclass(frozen=True)
class PerceptionAppConfig:
    cid: int
    port: int
    source: str
    device: str
    realtime: bool
    verbose: bool
    print_every: int
    snapshot_dir: str
    snapshots: bool
    obstacle_sender: int

    markers: MarkerConfig


def _positive_int(text: str) -> int:
    v = int(text)
    if v <= 0:
        raise argparse.ArgumentTypeError(f"must be > 0, got {v}")
    return v


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Cone marker detection: frames -> near/far navigation points")

    p.add_argument("--cid", type=int, required=True, help="Session id (multicast group 225.0.0.<cid>).")
    p.add_argument("--width", type=_positive_int, required=True, help="Frame width in pixels.")
    p.add_argument("--height", type=_positive_int, required=True, help="Frame height in pixels.")
    p.add_argument("--port", type=int, default=config.SESSION_PORT)

    p.add_argument("--source", choices=["video", "picamera"], default=config.FRAME_SOURCE)
    p.add_argument("--device", default=config.VIDEO_DEVICE, help="Video file or camera index for --source video.")
    p.add_argument("--realtime", action="store_true", help="Play video files at their own fps.")

    p.add_argument("--verbose", action="store_true", help="Show the debug window and per-frame results.")
    p.add_argument("--print-every", type=int, default=30)

    p.add_argument("--snapshot-dir", default=config.SNAPSHOT_DIR)
    p.add_argument("--no-snapshots", action="store_true", help="Do not write crossing snapshots.")
    p.add_argument("--obstacle-sender", type=int, default=config.OBSTACLE_SENDER_STAMP)

    # tuning
    p.add_argument("--overlap-tolerance", type=int, default=25)
    p.add_argument("--morph-iterations", type=int, default=4)

    return p


def parse_config(argv=None) -> PerceptionAppConfig:
    p = build_arg_parser()
    args = p.parse_args(argv)

    if not 1 <= args.cid <= 254:
        p.error("--cid must be in 1..254")

    markers = MarkerConfig(
        frame_width=args.width,
        frame_height=args.height,
        overlap_tolerance=args.overlap_tolerance,
        morph_iterations=args.morph_iterations,
    )

    return PerceptionAppConfig(
        cid=args.cid,
        port=args.port,
        source=args.source,
        device=args.device,
        realtime=args.realtime,
        verbose=args.verbose,
        print_every=max(1, args.print_every),
        snapshot_dir=args.snapshot_dir,
        snapshots=not args.no_snapshots,
        obstacle_sender=args.obstacle_sender,
        markers=markers,
    )
