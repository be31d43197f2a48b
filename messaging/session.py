from __future__ import annotations

import socket
import struct
import threading
from typing import Callable, Dict, List, Optional

from .codec import CodecError, Envelope, decode, encode

Handler = Callable[[Envelope], None]

DEFAULT_PORT = 12175


def group_for(cid: int) -> str:
    if not 1 <= int(cid) <= 254:
        raise ValueError(f"Session id must be in 1..254, got {cid}")
    return f"225.0.0.{int(cid)}"


class UdpSession:
    """
    Fire-and-forget multicast session.

    send() publishes one datagram; a background thread receives datagrams and
    hands them to the handlers registered with data_trigger(). No queueing:
    consumers keep whatever arrived last (see LatestValue).
    """

    def __init__(self, cid: int, port: int = DEFAULT_PORT, *, loopback: bool = True, recv_timeout: float = 0.2):
        self.cid = int(cid)
        self.group = group_for(cid)
        self.port = int(port)
        self.loopback = loopback
        self.recv_timeout = float(recv_timeout)

        self._handlers: Dict[int, List[Handler]] = {}
        self._handlers_lock = threading.Lock()

        self._tx: Optional[socket.socket] = None
        self._rx: Optional[socket.socket] = None
        self._th: Optional[threading.Thread] = None
        self._stop_evt = threading.Event()
        self._running = False

        self.dropped = 0

    # ---------- lifecycle ----------

    def start(self) -> None:
        if self._running:
            return

        tx = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        tx.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_TTL, 1)
        tx.setsockopt(socket.IPPROTO_IP, socket.IP_MULTICAST_LOOP, 1 if self.loopback else 0)

        rx = socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)
        rx.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        if hasattr(socket, "SO_REUSEPORT"):
            rx.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
        rx.bind(("", self.port))
        mreq = struct.pack("4sl", socket.inet_aton(self.group), socket.INADDR_ANY)
        rx.setsockopt(socket.IPPROTO_IP, socket.IP_ADD_MEMBERSHIP, mreq)
        rx.settimeout(self.recv_timeout)

        self._tx, self._rx = tx, rx
        self._stop_evt.clear()
        self._running = True

        self._th = threading.Thread(target=self._run, name=f"UdpSession-{self.cid}", daemon=True)
        self._th.start()
        print(f"[SESSION] Joined {self.group}:{self.port}")

    def stop(self) -> None:
        self._running = False
        self._stop_evt.set()
        th = self._th
        self._th = None
        if th:
            th.join(timeout=2.0)

        for s in (self._tx, self._rx):
            if s is not None:
                s.close()
        self._tx = self._rx = None

    @property
    def is_running(self) -> bool:
        return self._running

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *exc):
        self.stop()
        return False

    # ---------- pub / sub ----------

    def data_trigger(self, message_type, handler: Handler) -> None:
        with self._handlers_lock:
            self._handlers.setdefault(message_type.MESSAGE_ID, []).append(handler)

    def send(self, message, sender_stamp: int = 0) -> None:
        if self._tx is None:
            raise RuntimeError("Session is not started")
        self._tx.sendto(encode(message, sender_stamp), (self.group, self.port))

    # ---------- receive ----------

    def dispatch(self, data: bytes) -> bool:
        """Decode one datagram and run its handlers. False if it was dropped."""
        try:
            env = decode(data)
        except CodecError as e:
            self.dropped += 1
            print("[SESSION] Dropped datagram:", e)
            return False

        with self._handlers_lock:
            handlers = list(self._handlers.get(env.message_id, ()))

        for h in handlers:
            h(env)
        return True

    def _run(self) -> None:
        assert self._rx is not None

        while not self._stop_evt.is_set():
            try:
                data, _ = self._rx.recvfrom(65535)
            except socket.timeout:
                continue
            except OSError as e:
                if not self._stop_evt.is_set():
                    print("[SESSION] Receive failed:", e)
                    self._running = False
                return

            # a failing handler must not end the listener
            try:
                self.dispatch(data)
            except Exception as e:
                print("[SESSION] Handler failed:", e)
