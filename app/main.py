# app/main.py

import sys
import time

from app.autopilot import Autopilot, DriveCommand
from app.cli import ControlAppConfig, parse_config
from app.event_logger import EventLogger
from app.inputs import ControlInputs
from messaging import PedalCommand, SteeringCommand, UdpSession


# =========================================================
# Helpers
# =========================================================

def wait_grace(session: UdpSession, seconds: float) -> bool:
    """Give the other processes time to start. False if the session stopped meanwhile."""
    deadline = time.time() + seconds
    while time.time() < deadline:
        if not session.is_running:
            return False
        time.sleep(min(0.1, max(0.0, deadline - time.time())))
    return session.is_running


def publish(session: UdpSession, cmd: DriveCommand) -> None:
    session.send(SteeringCommand(ground_steering=cmd.steering))
    session.send(PedalCommand(position=cmd.pedal))


class TickTimer:
    """Fixed-rate schedule; a slow tick does not shift the following ones."""

    def __init__(self, freq: float):
        self.period = 1.0 / freq
        self._next = time.time()

    def wait(self) -> None:
        self._next += self.period
        dt = self._next - time.time()
        if dt > 0:
            time.sleep(dt)
        else:
            # fell behind: restart the schedule from now
            self._next = time.time()


# =========================================================
# Main
# =========================================================

def run(cfg: ControlAppConfig, session: UdpSession, inputs: ControlInputs, log: EventLogger | None = None) -> int:
    autopilot = Autopilot(cfg.control)

    print(f"[SYSTEM] Waiting {cfg.grace_sec:.1f}s for the other processes")
    if not wait_grace(session, cfg.grace_sec):
        return 0

    print(f"[SYSTEM] Control loop started ({cfg.freq:g} Hz)")
    timer = TickTimer(cfg.freq)
    ticks = 0
    last_log = 0.0

    while session.is_running:
        timer.wait()
        ticks += 1

        snap = inputs.snapshot()
        cmd = autopilot.step(snap.navigation, snap.obstacle)
        publish(session, cmd)

        if log:
            log.tick(ticks, snap, cmd)

        now = time.time()
        if cfg.verbose or now - last_log > 0.5:
            if snap.navigation_age is None:
                print("[WARN] No navigation points received yet")
            nav = snap.navigation
            print(
                f"[CONTROL] steer={cmd.steering:+.3f} "
                f"pedal={cmd.pedal:+.3f} "
                f"near=({nav.near_x:+d},{nav.near_y:+d}) "
                f"cross={nav.reach_cross_road} "
                f"obstacles={snap.obstacle.count}"
            )
            last_log = now

    return 0


def main(argv=None) -> int:
    cfg = parse_config(argv)

    session = UdpSession(cfg.cid, cfg.port)
    inputs = ControlInputs()
    inputs.attach(session)

    log = EventLogger(cfg.log_dir) if cfg.drive_log else None
    code = 0

    try:
        session.start()
        if log:
            log.write("start", cid=cfg.cid, freq=cfg.freq, grace=cfg.grace_sec)
        code = run(cfg, session, inputs, log)

    except KeyboardInterrupt:
        print("[SYSTEM] Keyboard interrupt")

    finally:
        print("[SYSTEM] Shutting down safely")

        if session.is_running:
            publish(session, DriveCommand(steering=0.0, pedal=0.0))
        session.stop()

        if log:
            log.write("stop")
            log.close()

    return code


if __name__ == "__main__":
    sys.exit(main())
