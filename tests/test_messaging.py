import socket

import msgpack
import pytest

from messaging import (
    CodecError,
    LatestValue,
    NavigationResult,
    ObstacleBox,
    PedalCommand,
    SteeringCommand,
    UdpSession,
    decode,
    encode,
)
from messaging.session import group_for


# ---------- codec ----------

def test_encode_decode_keeps_sender_and_time():
    nav = NavigationResult(near_x=12, near_y=-40, far_x=3, far_y=-120, reach_cross_road=True)
    env = decode(encode(nav, sender_stamp=3, sent=1234.5))
    assert env.message == nav
    assert env.sender_stamp == 3
    assert env.sent == 1234.5
    assert env.message_id == 2001


def test_message_ids():
    assert NavigationResult.MESSAGE_ID == 2001
    assert ObstacleBox.MESSAGE_ID == 2002
    assert SteeringCommand.MESSAGE_ID == 1090
    assert PedalCommand.MESSAGE_ID == 1086


def test_encode_rejects_unknown_types():
    with pytest.raises(CodecError):
        encode(object())


@pytest.mark.parametrize(
    "data",
    [
        b"\xc1",
        msgpack.packb([1, 2, 3]),
        msgpack.packb({"id": 9999, "payload": {}}),
        msgpack.packb({"id": 1090, "payload": [0.1]}),
        msgpack.packb({"id": 1090, "payload": {"angle": 0.1}}),
        msgpack.packb({"id": 2001, "sender": "x", "sent": 0.0, "payload": {}}),
        msgpack.packb({"id": 2001, "sender": 0, "sent": [1], "payload": {}}),
        msgpack.packb({"id": 2001, "payload": {"near_x": "left"}}),
        msgpack.packb({"id": 1090, "payload": {"ground_steering": float("nan")}}),
        msgpack.packb({"id": 1086, "payload": {"position": None}}),
    ],
)
def test_decode_rejects_bad_datagrams(data):
    with pytest.raises(CodecError):
        decode(data)


def test_has_target():
    assert not NavigationResult().has_target
    assert NavigationResult(near_y=-5).has_target


# ---------- latest value ----------

def test_latest_value_keeps_last():
    v = LatestValue(PedalCommand())
    assert v.get() == PedalCommand()
    assert v.get_with_age()[1] is None

    v.set(PedalCommand(0.1))
    v.set(PedalCommand(0.2))
    value, age = v.get_with_age()
    assert value == PedalCommand(0.2)
    assert age is not None and age >= 0.0
    assert v.updates == 2


# ---------- session ----------

def test_group_for_cid():
    assert group_for(111) == "225.0.0.111"
    with pytest.raises(ValueError):
        group_for(0)
    with pytest.raises(ValueError):
        group_for(255)


def test_dispatch_runs_handlers_for_their_type():
    s = UdpSession(111)
    got = []
    s.data_trigger(SteeringCommand, got.append)

    assert s.dispatch(encode(SteeringCommand(0.3), sender_stamp=7))
    assert s.dispatch(encode(PedalCommand(0.1)))

    assert len(got) == 1
    assert got[0].message == SteeringCommand(0.3)
    assert got[0].sender_stamp == 7


def test_dispatch_drops_garbage():
    s = UdpSession(111)
    assert not s.dispatch(b"\xc1")
    assert s.dropped == 1


def test_send_requires_started_session():
    s = UdpSession(111)
    assert not s.is_running
    with pytest.raises(RuntimeError):
        s.send(PedalCommand(0.0))


def test_decoded_fields_have_their_declared_types():
    env = decode(msgpack.packb({"id": 1090, "sender": 2, "sent": 5, "payload": {"ground_steering": 1}}))
    assert env.message == SteeringCommand(1.0)
    assert isinstance(env.message.ground_steering, float)
    assert isinstance(env.sent, float)


def test_malformed_envelope_is_dropped_not_raised():
    s = UdpSession(111)
    got = []
    s.data_trigger(NavigationResult, got.append)

    assert not s.dispatch(msgpack.packb({"id": 2001, "sender": "x", "sent": 0.0, "payload": {}}))
    assert not s.dispatch(msgpack.packb({"id": 2001, "payload": {"near_x": "left"}}))
    assert s.dropped == 2
    assert got == []


class ScriptedSocket:
    """Hands out queued datagrams, then stops the session."""

    def __init__(self, session, datagrams):
        self.session = session
        self.datagrams = list(datagrams)

    def recvfrom(self, size):
        if not self.datagrams:
            self.session._stop_evt.set()
            raise socket.timeout()
        return self.datagrams.pop(0), ("127.0.0.1", 12175)


def test_listener_survives_failing_handler():
    s = UdpSession(111)
    got = []

    def handler(env):
        if env.message.position < 0:
            raise RuntimeError("boom")
        got.append(env.message)

    s.data_trigger(PedalCommand, handler)
    s._rx = ScriptedSocket(s, [encode(PedalCommand(-1.0)), b"\xc1", encode(PedalCommand(0.1))])
    s._run()

    assert got == [PedalCommand(0.1)]
    assert s.dropped == 1
