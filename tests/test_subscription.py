import pytest

from msproto.codec import DecodeError, Encoder
from msproto.common import Framer, FrameType, ReasonCode
from msproto.setting import Setting
from msproto.subscription import Action, SubackPacket, SubPacket


def _body(packet, version=4):
    encoder = Encoder()
    packet.encode(encoder, version)
    return encoder.getvalue()


def test_sub_wire_bytes():
    packet = SubPacket(sub_no="s", channel_id="c", channel_type=2, param="")
    assert _body(packet) == b"\x00\x00\x01s\x00\x01c\x02\x00\x00\x00"


def test_sub_round_trip():
    packet = SubPacket(
        setting=Setting.TOPIC,
        sub_no="sub-1",
        channel_id="room",
        channel_type=2,
        action=Action.UNSUBSCRIBE,
        param="extra",
    )
    framer = Framer(frame_type=FrameType.SUB, remaining_length=7)
    decoded = SubPacket.decode(framer, _body(packet), 4)
    assert decoded.setting == Setting.TOPIC
    assert decoded.sub_no == "sub-1"
    assert decoded.channel_id == "room"
    assert decoded.channel_type == 2
    assert decoded.action is Action.UNSUBSCRIBE
    assert decoded.param == "extra"
    assert decoded.remaining_length == 7
    assert decoded.frame_type is FrameType.SUB


def test_sub_size_matches_body():
    packet = SubPacket(sub_no="abc", channel_id="\u4e2d", param="p")
    assert packet.encoded_size(4) == len(_body(packet))


def test_sub_truncated_raises():
    packet = SubPacket(sub_no="abc", channel_id="room", param="p")
    with pytest.raises(DecodeError):
        SubPacket.decode(Framer(), _body(packet)[:-2], 4)


def test_sub_unknown_action_kept_as_int():
    packet = SubPacket(sub_no="a", channel_id="b", action=5)
    decoded = SubPacket.decode(Framer(), _body(packet), 4)
    assert decoded.action == 5


def test_suback_round_trip():
    packet = SubackPacket(
        sub_no="n",
        channel_id="chan",
        channel_type=1,
        action=Action.SUBSCRIBE,
        reason_code=ReasonCode.SUCCESS,
    )
    body = _body(packet)
    assert packet.encoded_size(4) == len(body)
    decoded = SubackPacket.decode(Framer(frame_type=FrameType.SUBACK), body, 4)
    assert decoded.sub_no == "n"
    assert decoded.channel_id == "chan"
    assert decoded.channel_type == 1
    assert decoded.action is Action.SUBSCRIBE
    assert decoded.reason_code is ReasonCode.SUCCESS


def test_suback_missing_reason_raises():
    packet = SubackPacket(sub_no="n", channel_id="chan")
    with pytest.raises(DecodeError):
        SubackPacket.decode(Framer(), _body(packet)[:-1], 4)