from __future__ import annotations

import math
import time
from dataclasses import asdict, dataclass, fields
from typing import Any, Optional

import msgpack

from .models import MESSAGE_TYPES

# payload field annotations -> accepted wire types
_ACCEPTED = {"int": (int,), "float": (int, float), "bool": (bool, int)}
_CONVERT = {"int": int, "float": float, "bool": bool}


class CodecError(ValueError):
    """Datagram that does not decode into a known message."""


@dataclass(frozen=True)
class Envelope:
    message: Any
    sender_stamp: int = 0
    sent: float = 0.0

    @property
    def message_id(self) -> int:
        return type(self.message).MESSAGE_ID


def encode(message: Any, sender_stamp: int = 0, sent: Optional[float] = None) -> bytes:
    msg_id = getattr(type(message), "MESSAGE_ID", None)
    if msg_id not in MESSAGE_TYPES:
        raise CodecError(f"Not a known message type: {type(message).__name__}")

    return msgpack.packb(
        {
            "id": msg_id,
            "sender": int(sender_stamp),
            "sent": time.time() if sent is None else float(sent),
            "payload": asdict(message),
        },
        use_bin_type=True,
    )


def _coerce(value: Any, kind: str, what: str):
    """Wire value -> int / float / bool; anything else is a CodecError."""
    if isinstance(value, (str, bytes)) or not isinstance(value, _ACCEPTED[kind]):
        raise CodecError(f"{what}: expected {kind}, got {type(value).__name__}")
    if kind == "float" and not math.isfinite(value):
        raise CodecError(f"{what}: not a finite number")
    return _CONVERT[kind](value)


def _message(cls, payload: dict):
    kinds = {f.name: f.type for f in fields(cls)}
    values = {}
    for name, value in payload.items():
        if name not in kinds:
            raise CodecError(f"Bad {cls.__name__} payload: unknown field {name!r}")
        values[name] = _coerce(value, kinds[name], f"{cls.__name__}.{name}")
    return cls(**values)


def decode(data: bytes) -> Envelope:
    try:
        rec = msgpack.unpackb(data, raw=False)
    except (msgpack.ExtraData, msgpack.FormatError, msgpack.StackError, ValueError) as e:
        raise CodecError(f"Malformed datagram: {e}") from e

    if not isinstance(rec, dict):
        raise CodecError("Envelope is not a map")

    msg_id = rec.get("id")
    cls = MESSAGE_TYPES.get(msg_id) if isinstance(msg_id, int) else None
    if cls is None:
        raise CodecError(f"Unknown message id: {msg_id!r}")

    payload = rec.get("payload")
    if not isinstance(payload, dict):
        raise CodecError("Payload is not a map")

    return Envelope(
        message=_message(cls, payload),
        sender_stamp=_coerce(rec.get("sender", 0), "int", "sender"),
        sent=_coerce(rec.get("sent", 0.0), "float", "sent"),
    )
