"""
Messages exchanged between the perception and control processes,
their wire codec and the multicast session that carries them.
"""

from .codec import CodecError, Envelope, decode, encode
from .latest import LatestValue
from .models import NavigationResult, ObstacleBox, PedalCommand, SteeringCommand
from .session import UdpSession

__all__ = [
    "CodecError",
    "Envelope",
    "decode",
    "encode",
    "LatestValue",
    "NavigationResult",
    "ObstacleBox",
    "PedalCommand",
    "SteeringCommand",
    "UdpSession",
]
