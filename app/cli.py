from dataclasses import dataclass
import argparse

import config

from control.config import ControlConfig


@dataclass(frozen=True)
class ControlAppConfig:
    cid: int
    port: int
    freq: float
    grace_sec: float
    verbose: bool
    log_dir: str
    drive_log: bool

    control: ControlConfig


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(description="Cone track controller: near/far points -> steering + pedal")

    p.add_argument("--cid", type=int, required=True, help="Session id (multicast group 225.0.0.<cid>).")
    p.add_argument("--freq", type=float, required=True, help="Control ticks per second.")
    p.add_argument("--port", type=int, default=config.SESSION_PORT)

    p.add_argument("--grace", type=float, default=config.STARTUP_GRACE_SEC,
                   help="Seconds to wait for the other processes before driving.")
    p.add_argument("--verbose", action="store_true")

    p.add_argument("--log-dir", default=config.DRIVE_LOG_DIR)
    p.add_argument("--no-drive-log", action="store_true")

    # tuning
    p.add_argument("--kp", type=float, default=0.20)
    p.add_argument("--kd", type=float, default=0.05)
    p.add_argument("--base-pedal", type=float, default=0.10)

    return p


def parse_config(argv=None) -> ControlAppConfig:
    p = build_arg_parser()
    args = p.parse_args(argv)

    if not 1 <= args.cid <= 254:
        p.error("--cid must be in 1..254")
    if args.freq <= 0:
        p.error("--freq must be > 0")
    if args.grace < 0:
        p.error("--grace must be >= 0")

    control = ControlConfig(kp=args.kp, kd=args.kd, base_pedal=args.base_pedal)

    return ControlAppConfig(
        cid=args.cid,
        port=args.port,
        freq=args.freq,
        grace_sec=args.grace,
        verbose=args.verbose,
        log_dir=args.log_dir,
        drive_log=not args.no_drive_log,
        control=control,
    )
