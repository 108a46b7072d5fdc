import io

import pytest

from msproto.codec import DecodeError
from msproto.common import DeviceFlag, FrameType, ProtocolError, ReasonCode
from msproto.connection import ConnackPacket, ConnectPacket, PingPacket, PongPacket
from msproto.messages import RecvPacket, SendackPacket, SendPacket
from msproto.protocol import (
    MAX_REMAINING_LENGTH,
    PAYLOAD_MAX_SIZE,
    MSProto,
    decode_length,
    encode_variable,
)
from msproto.setting import Setting
from msproto.subscription import Action, SubPacket


@pytest.fixture
def proto():
    return MSProto()


def test_ping_wire_byte(proto):
    assert proto.encode_frame(PingPacket(), 4) == b"\x70"


def test_encode_variable_two_digits():
    assert encode_variable(128) == b"\x80\x01"


@pytest.mark.parametrize("size", [1, 127, 128, 16383, 16384, MAX_REMAINING_LENGTH])
def test_length_round_trip(size):
    encoded = encode_variable(size)
    assert decode_length(encoded + b"\xff") == (size, len(encoded))


def test_encode_variable_zero_is_empty():
    assert encode_variable(0) == b""


@pytest.mark.parametrize("data", [b"", b"\x80", b"\xff\xff"])
def test_decode_length_incomplete(data):
    with pytest.raises(DecodeError):
        decode_length(data)


def test_ping_pong_decode(proto):
    frame, used = proto.decode_frame(proto.encode_frame(PingPacket(), 4), 4)
    assert isinstance(frame, PingPacket) and used == 1
    frame, used = proto.decode_frame(proto.encode_frame(PongPacket(), 4) + b"xx", 4)
    assert isinstance(frame, PongPacket) and used == 1


def test_connect_round_trip(proto):
    packet = ConnectPacket(
        version=4,
        client_key="key",
        device_id="device",
        device_flag=DeviceFlag.WEB,
        client_timestamp=1234567890123,
        uid="user",
        token="token",
    )
    data = proto.encode_frame(packet, 4)
    frame, used = proto.decode_frame(data, 4)
    assert used == len(data)
    assert isinstance(frame, ConnectPacket)
    assert frame.uid == "user"
    assert frame.token == "token"
    assert frame.device_flag is DeviceFlag.WEB
    assert frame.client_timestamp == 1234567890123
    assert frame.remaining_length == packet.encoded_size(4)


def test_connack_server_version_flag(proto):
    packet = ConnackPacket(
        has_server_version=True,
        server_version=4,
        time_diff=-5,
        reason_code=ReasonCode.SUCCESS,
        server_key="pub",
        salt="salt",
        node_id=9,
    )
    frame, _ = proto.decode_frame(proto.encode_frame(packet, 4), 4)
    assert frame.has_server_version is True
    assert frame.server_version == 4
    assert frame.time_diff == -5
    assert frame.node_id == 9
    assert frame.reason_code is ReasonCode.SUCCESS


def test_send_with_flags_round_trip(proto):
    packet = SendPacket(
        red_dot=True,
        no_persist=True,
        setting=Setting.TOPIC | Setting.STREAM,
        client_seq=3,
        client_msg_no="m1",
        stream_no="st",
        channel_id="room",
        channel_type=2,
        expire=60,
        msg_key="k",
        topic="t",
        payload=b"hello",
    )
    frame, _ = proto.decode_frame(proto.encode_frame(packet, 4), 4)
    assert frame.red_dot is True and frame.no_persist is True
    assert frame.stream_no == "st"
    assert frame.topic == "t"
    assert frame.expire == 60
    assert frame.payload == b"hello"


def test_incomplete_returns_none(proto):
    data = proto.encode_frame(RecvPacket(channel_id="c", payload=b"abc"), 4)
    assert proto.decode_frame(data[:-1], 4) == (None, 0)
    assert proto.decode_frame(data[:1], 4) == (None, 0)
    assert proto.decode_frame(b"", 4) == (None, 0)


def test_two_frames_back_to_back(proto):
    first = proto.encode_frame(SendackPacket(message_id=1, message_seq=2), 4)
    second = proto.encode_frame(SubPacket(sub_no="s", action=Action.UNSUBSCRIBE), 4)
    data = first + second
    frame, used = proto.decode_frame(data, 4)
    assert isinstance(frame, SendackPacket) and used == len(first)
    frame, used = proto.decode_frame(data[used:], 4)
    assert isinstance(frame, SubPacket) and used == len(second)
    assert frame.action is Action.UNSUBSCRIBE


def test_remaining_length_too_large(proto):
    data = bytes([FrameType.SEND << 4]) + encode_variable(MAX_REMAINING_LENGTH + 1)
    with pytest.raises(ProtocolError):
        proto.decode_frame(data, 4)


def test_unsupported_frame_type(proto):
    with pytest.raises(ProtocolError):
        proto.decode_frame(bytes([0xC0, 0x01, 0x00]), 4)


def test_corrupt_body_raises(proto):
    data = bytes([FrameType.SENDACK << 4, 0x02, 0x00, 0x00])
    with pytest.raises(DecodeError):
        proto.decode_frame(data, 4)


def test_payload_too_large(proto):
    packet = SendPacket(payload=b"x" * (PAYLOAD_MAX_SIZE + 1))
    with pytest.raises(ProtocolError):
        proto.encode_frame(packet, 4)


def test_write_frame_matches_encode(proto):
    packet = SubPacket(sub_no="n", channel_id="c", param="p")
    stream = io.BytesIO()
    proto.write_frame(stream, packet, 4)
    assert stream.getvalue() == proto.encode_frame(packet, 4)


def test_decode_from_stream(proto):
    packet = RecvPacket(message_id=77, from_uid="u", channel_id="c", payload=b"body")
    stream = io.BytesIO(proto.encode_frame(packet, 4) + proto.encode_frame(PingPacket(), 4))
    frame = proto.decode_packet_with_conn(stream, 4)
    assert isinstance(frame, RecvPacket)
    assert frame.message_id == 77
    assert frame.payload == b"body"
    assert isinstance(proto.decode_packet_with_conn(stream, 4), PingPacket)


def test_stream_eof(proto):
    with pytest.raises(EOFError):
        proto.decode_packet_with_conn(io.BytesIO(b""), 4)
    data = proto.encode_frame(SendackPacket(message_id=1), 4)
    with pytest.raises(EOFError):
        proto.decode_packet_with_conn(io.BytesIO(data[:-2]), 4)