"""Frame header, shared enumerations and field sizes of the wire protocol."""

from __future__ import annotations

import enum
from dataclasses import dataclass


class ProtocolError(Exception):
    """Raised when a frame cannot be encoded or decoded."""


class FrameType(enum.IntEnum):
    """Kind of packet, stored in the high nibble of the fixed header."""

    UNKNOWN = 0
    CONNECT = 1
    CONNACK = 2
    SEND = 3
    SENDACK = 4
    RECV = 5
    RECVACK = 6
    PING = 7
    PONG = 8
    DISCONNECT = 9
    SUB = 10
    SUBACK = 11

    def __str__(self) -> str:
        if self is FrameType.UNKNOWN:
            return f"UNKNOWN[{self.value}]"
        return self.name


def _frame_type_text(value: int) -> str:
    try:
        return str(FrameType(value))
    except ValueError:
        return f"UNKNOWN[{int(value)}]"


class ReasonCode(enum.IntEnum):
    """Outcome carried by acknowledgement and disconnect packets."""

    UNKNOWN = 0
    SUCCESS = 1
    AUTH_FAIL = 2
    SUBSCRIBER_NOT_EXIST = 3
    IN_BLACKLIST = 4
    CHANNEL_NOT_EXIST = 5
    USER_NOT_ON_NODE = 6
    SENDER_OFFLINE = 7
    MSG_KEY_ERROR = 8
    PAYLOAD_DECODE_ERROR = 9
    FORWARD_SEND_PACKET_ERROR = 10
    NOT_ALLOW_SEND = 11
    CONNECT_KICK = 12
    NOT_IN_WHITELIST = 13
    QUERY_TOKEN_ERROR = 14
    SYSTEM_ERROR = 15
    CHANNEL_ID_ERROR = 16
    NODE_MATCH_ERROR = 17
    NODE_NOT_MATCH = 18
    BAN = 19
    NOT_SUPPORT_HEADER = 20
    CLIENT_KEY_IS_EMPTY = 21
    RATE_LIMIT = 22
    NOT_SUPPORT_CHANNEL_TYPE = 23
    DISBAND = 24

    def __str__(self) -> str:
        label = _REASON_LABELS.get(self)
        if label is None:
            return f"UNKNOWN[{self.value}]"
        return label


_REASON_LABELS = {
    ReasonCode.UNKNOWN: "ReasonUnknown",
    ReasonCode.SUCCESS: "ReasonSuccess",
    ReasonCode.AUTH_FAIL: "ReasonAuthFail",
    ReasonCode.SUBSCRIBER_NOT_EXIST: "ReasonSubscriberNotExist",
    ReasonCode.NOT_ALLOW_SEND: "ReasonNotAllowSend",
    ReasonCode.IN_BLACKLIST: "ReasonInBlacklist",
    ReasonCode.CHANNEL_NOT_EXIST: "ReasonChannelNotExist",
    ReasonCode.USER_NOT_ON_NODE: "ReasonUserNotOnNode",
    ReasonCode.SENDER_OFFLINE: "ReasonSenderOffline",
    ReasonCode.MSG_KEY_ERROR: "ReasonMsgKeyError",
    ReasonCode.PAYLOAD_DECODE_ERROR: "ReasonPayloadDecodeError",
    ReasonCode.FORWARD_SEND_PACKET_ERROR: "ReasonForwardSendPacketError",
    ReasonCode.CONNECT_KICK: "ReasonConnectKick",
    ReasonCode.NOT_IN_WHITELIST: "ReasonNotInWhitelist",
    ReasonCode.QUERY_TOKEN_ERROR: "ReasonQueryTokenError",
    ReasonCode.SYSTEM_ERROR: "ReasonSystemError",
    ReasonCode.CHANNEL_ID_ERROR: "ReasonChannelIDError",
    ReasonCode.CLIENT_KEY_IS_EMPTY: "ReasonClientKeyIsEmpty",
    ReasonCode.RATE_LIMIT: "ReasonRateLimit",
    ReasonCode.DISBAND: "ReasonDisband",
}


class DeviceFlag(enum.IntEnum):
    """Kind of client device; one login per flag and account."""

    APP = 0
    WEB = 1
    PC = 2
    SYSTEM = 99

    def __str__(self) -> str:
        if self is DeviceFlag.PC:
            return str(self.value)
        return self.name


class DeviceLevel(enum.IntEnum):
    """Whether a device is the master or a slave device of an account."""

    SLAVE = 0
    MASTER = 1

    def __str__(self) -> str:
        return "Master" if self is DeviceLevel.MASTER else "Slave"


class ChannelType(enum.IntEnum):
    """Kinds of channel a message can be addressed to."""

    PERSON = 1
    GROUP = 2
    CUSTOMER_SERVICE = 3
    COMMUNITY = 4
    COMMUNITY_TOPIC = 5
    INFO = 6
    DATA = 7
    TEMP = 8
    LIVE = 9
    VISITORS = 10
    AGENT = 11
    AGENT_GROUP = 12


@dataclass(frozen=True)
class Channel:
    """A channel identified by its id and type."""

    channel_id: str
    channel_type: int


def _go_bool(flag: bool) -> str:
    return "true" if flag else "false"


@dataclass
class Framer:
    """Fixed header shared by every packet."""

    frame_type: FrameType | int = FrameType.UNKNOWN
    remaining_length: int = 0
    no_persist: bool = False
    red_dot: bool = False
    sync_once: bool = False
    dup: bool = False
    has_server_version: bool = False
    frame_size: int = 0

    def __str__(self) -> str:
        return (
            f"packetType: {_frame_type_text(self.frame_type)} "
            f"remainingLength:{self.remaining_length} "
            f"NoPersist:{_go_bool(self.no_persist)} "
            f"redDot:{_go_bool(self.red_dot)} "
            f"syncOnce:{_go_bool(self.sync_once)} "
            f"DUP:{_go_bool(self.dup)}"
        )


def to_fix_header_uint8(frame) -> int:
    """Pack a frame's type and flags into the first header byte."""
    frame_type = int(frame.frame_type)
    if frame_type == FrameType.CONNACK:
        flags = int(bool(frame.has_server_version))
    else:
        flags = (
            int(bool(frame.dup)) << 3
            | int(bool(frame.sync_once)) << 2
            | int(bool(frame.red_dot)) << 1
            | int(bool(frame.no_persist))
        )
    return ((frame_type << 4) | flags) & 0xFF


def framer_from_uint8(value: int) -> Framer:
    """Unpack the first header byte into a Framer."""
    if not 0 <= value <= 0xFF:
        raise ValueError(f"header byte out of range: {value}")
    raw_type = value >> 4
    try:
        frame_type: FrameType | int = FrameType(raw_type)
    except ValueError:
        frame_type = raw_type
    framer = Framer(
        frame_type=frame_type,
        no_persist=bool(value & 0x01),
        red_dot=bool(value >> 1 & 0x01),
        sync_once=bool(value >> 2 & 0x01),
        dup=bool(value >> 3 & 0x01),
    )
    if frame_type == FrameType.CONNACK:
        framer.has_server_version = bool(value & 0x01)
    return framer


SETTING_BYTE_SIZE = 1
STRING_FIX_LEN_BYTE_SIZE = 2
CLIENT_SEQ_BYTE_SIZE = 4
CHANNEL_TYPE_BYTE_SIZE = 1
VERSION_BYTE_SIZE = 1
DEVICE_FLAG_BYTE_SIZE = 1
CLIENT_TIMESTAMP_BYTE_SIZE = 8
TIME_DIFF_BYTE_SIZE = 8
REASON_CODE_BYTE_SIZE = 1
MESSAGE_ID_BYTE_SIZE = 8
MESSAGE_SEQ_BYTE_SIZE = 4
TIMESTAMP_BYTE_SIZE = 4
ACTION_BYTE_SIZE = 1
STREAM_ID_BYTE_SIZE = 8
STREAM_FLAG_BYTE_SIZE = 1
EXPIRE_BYTE_SIZE = 4
NODE_ID_BYTE_SIZE = 8