import pytest

from msproto.common import (
    Channel,
    ChannelType,
    DeviceFlag,
    DeviceLevel,
    Framer,
    FrameType,
    ProtocolError,
    ReasonCode,
    framer_from_uint8,
    to_fix_header_uint8,
)


@pytest.mark.parametrize("frame_type", [t for t in FrameType if t is not FrameType.CONNACK])
def test_header_round_trip_with_all_flags(frame_type):
    framer = Framer(frame_type, no_persist=True, red_dot=True, sync_once=True, dup=True)
    decoded = framer_from_uint8(to_fix_header_uint8(framer))
    assert decoded.frame_type == frame_type
    assert decoded.no_persist and decoded.red_dot and decoded.sync_once and decoded.dup
    assert decoded.has_server_version is False


@pytest.mark.parametrize(
    "flags",
    [
        dict(no_persist=True),
        dict(red_dot=True),
        dict(sync_once=True),
        dict(dup=True),
        dict(red_dot=True, dup=True),
    ],
)
def test_header_round_trip_individual_flags(flags):
    framer = Framer(FrameType.RECV, **flags)
    decoded = framer_from_uint8(to_fix_header_uint8(framer))
    assert decoded == framer


def test_header_high_nibble_is_frame_type():
    byte = to_fix_header_uint8(Framer(FrameType.PING))
    assert byte == FrameType.PING << 4


def test_connack_header_carries_only_server_version():
    framer = Framer(FrameType.CONNACK, has_server_version=True, dup=True, red_dot=True)
    byte = to_fix_header_uint8(framer)
    assert byte == (FrameType.CONNACK << 4) | 1
    decoded = framer_from_uint8(byte)
    assert decoded.frame_type is FrameType.CONNACK
    assert decoded.has_server_version is True
    assert decoded.dup is False and decoded.red_dot is False


def test_connack_without_server_version():
    byte = to_fix_header_uint8(Framer(FrameType.CONNACK))
    assert framer_from_uint8(byte).has_server_version is False


def test_unknown_frame_type_value_is_kept():
    raw = int(FrameType.SUBACK) + 1
    framer = framer_from_uint8(raw << 4)
    assert framer.frame_type == raw
    assert str(framer).startswith(f"packetType: UNKNOWN[{raw}] ")


def test_header_byte_out_of_range():
    with pytest.raises(ValueError):
        framer_from_uint8(256)


def test_framer_string():
    framer = Framer(FrameType.SEND, remaining_length=5, red_dot=True)
    assert str(framer) == (
        "packetType: SEND remainingLength:5 NoPersist:false redDot:true syncOnce:false DUP:false"
    )


def test_frame_type_strings():
    assert str(framer_from_uint8(0x10).frame_type) == "CONNECT"
    assert str(framer_from_uint8(0xB0).frame_type) == "SUBACK"
    assert str(framer_from_uint8(0x00).frame_type) == "UNKNOWN[0]"


@pytest.mark.parametrize(
    "code, text",
    [
        (ReasonCode.UNKNOWN, "ReasonUnknown"),
        (ReasonCode.SUCCESS, "ReasonSuccess"),
        (ReasonCode.AUTH_FAIL, "ReasonAuthFail"),
        (ReasonCode.NOT_ALLOW_SEND, "ReasonNotAllowSend"),
        (ReasonCode.CHANNEL_ID_ERROR, "ReasonChannelIDError"),
        (ReasonCode.RATE_LIMIT, "ReasonRateLimit"),
        (ReasonCode.DISBAND, "ReasonDisband"),
    ],
)
def test_reason_code_strings(code, text):
    assert str(code) == text


@pytest.mark.parametrize(
    "code",
    [
        ReasonCode.NODE_MATCH_ERROR,
        ReasonCode.NODE_NOT_MATCH,
        ReasonCode.BAN,
        ReasonCode.NOT_SUPPORT_HEADER,
        ReasonCode.NOT_SUPPORT_CHANNEL_TYPE,
    ],
)
def test_reason_codes_without_label(code):
    assert str(code) == f"UNKNOWN[{int(code)}]"


def test_reason_codes_are_consecutive():
    assert [ReasonCode(i) for i in range(len(ReasonCode))] == list(ReasonCode)
    assert ReasonCode(1) is ReasonCode.SUCCESS
    assert ReasonCode(24) is ReasonCode.DISBAND


def test_device_flag_strings_and_values():
    assert str(DeviceFlag(0)) == "APP"
    assert str(DeviceFlag(1)) == "WEB"
    assert str(DeviceFlag(99)) == "SYSTEM"
    assert str(DeviceFlag(2)) == "2"
    assert DeviceFlag(99) is DeviceFlag.SYSTEM


def test_device_level_strings():
    assert str(DeviceLevel(1)) == "Master"
    assert str(DeviceLevel(0)) == "Slave"


def test_channel_types_are_numbered_from_one():
    assert [ChannelType(i) for i in range(1, 13)] == list(ChannelType)
    assert ChannelType(1) is ChannelType.PERSON
    assert ChannelType(12) is ChannelType.AGENT_GROUP


def test_channel_equality():
    assert Channel("user-a", ChannelType.PERSON) == Channel("user-a", ChannelType.PERSON)
    assert Channel("user-a", ChannelType.PERSON) != Channel("user-a", ChannelType.GROUP)


def test_protocol_error_carries_message():
    error = ProtocolError("bad frame")
    assert str(error) == "bad frame"
    assert issubclass(ProtocolError, Exception)