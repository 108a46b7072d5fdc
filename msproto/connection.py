"""Connection-level packets: connect, connack, disconnect, ping and pong."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, TypeVar

from .codec import DecodeError, Decoder, Encoder
from .common import (
    CLIENT_TIMESTAMP_BYTE_SIZE,
    DEVICE_FLAG_BYTE_SIZE,
    NODE_ID_BYTE_SIZE,
    REASON_CODE_BYTE_SIZE,
    STRING_FIX_LEN_BYTE_SIZE,
    TIME_DIFF_BYTE_SIZE,
    VERSION_BYTE_SIZE,
    DeviceFlag,
    Framer,
    FrameType,
    ReasonCode,
)

_T = TypeVar("_T")

_HEADER_FIELDS = (
    "remaining_length",
    "no_persist",
    "red_dot",
    "sync_once",
    "dup",
    "has_server_version",
    "frame_size",
)


def _header_fields(framer: Framer) -> dict:
    return {name: getattr(framer, name) for name in _HEADER_FIELDS}


def _as_enum(enum_cls, value: int):
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _reason_text(code) -> str:
    if isinstance(code, ReasonCode):
        return str(code)
    return f"UNKNOWN[{int(code)}]"


def _string_size(text: str) -> int:
    return len(text.encode("utf-8", "surrogateescape")) + STRING_FIX_LEN_BYTE_SIZE


def _read(name: str, reader: Callable[[], _T]) -> _T:
    try:
        return reader()
    except DecodeError as exc:
        raise DecodeError(f"failed to decode {name}: {exc}") from exc


@dataclass
class ConnectPacket(Framer):
    """Client request to open a session."""

    frame_type: FrameType = field(default=FrameType.CONNECT, init=False)
    version: int = 0
    client_key: str = ""
    device_id: str = ""
    device_flag: DeviceFlag | int = DeviceFlag.APP
    client_timestamp: int = 0
    uid: str = ""
    token: str = ""

    def __str__(self) -> str:
        return (
            f" UID:{self.uid} DeviceFlag:{int(self.device_flag)} "
            f"DeviceId:{self.device_id} ClientTimestamp:{self.client_timestamp}  "
            f"Token:{self.token} Version:{self.version}"
        )

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        encoder.write_uint8(self.version)
        encoder.write_uint8(int(self.device_flag))
        encoder.write_string(self.device_id)
        encoder.write_string(self.uid)
        encoder.write_string(self.token)
        encoder.write_int64(self.client_timestamp)
        encoder.write_string(self.client_key)

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        return (
            VERSION_BYTE_SIZE
            + DEVICE_FLAG_BYTE_SIZE
            + _string_size(self.device_id)
            + _string_size(self.uid)
            + _string_size(self.token)
            + CLIENT_TIMESTAMP_BYTE_SIZE
            + _string_size(self.client_key)
        )

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> ConnectPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        proto_version = _read("version", dec.uint8)
        device_flag = _as_enum(DeviceFlag, _read("device flag", dec.uint8))
        device_id = _read("device id", dec.string)
        uid = _read("uid", dec.string)
        token = _read("token", dec.string)
        client_timestamp = _read("client timestamp", dec.int64)
        client_key = _read("client key", dec.string)
        return cls(
            **_header_fields(framer),
            version=proto_version,
            client_key=client_key,
            device_id=device_id,
            device_flag=device_flag,
            client_timestamp=client_timestamp,
            uid=uid,
            token=token,
        )


@dataclass
class ConnackPacket(Framer):
    """Server answer to a connect request."""

    frame_type: FrameType = field(default=FrameType.CONNACK, init=False)
    server_version: int = 0
    server_key: str = ""
    salt: str = ""
    time_diff: int = 0
    reason_code: ReasonCode | int = ReasonCode.UNKNOWN
    node_id: int = 0

    def __str__(self) -> str:
        return f"TimeDiff: {self.time_diff} ReasonCode:{_reason_text(self.reason_code)}"

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        if self.has_server_version:
            encoder.write_uint8(self.server_version)
        encoder.write_int64(self.time_diff)
        encoder.write_uint8(int(self.reason_code))
        encoder.write_string(self.server_key)
        encoder.write_string(self.salt)
        if version >= 4:
            encoder.write_uint64(self.node_id)

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        size = VERSION_BYTE_SIZE if self.has_server_version else 0
        size += TIME_DIFF_BYTE_SIZE + REASON_CODE_BYTE_SIZE
        size += _string_size(self.server_key) + _string_size(self.salt)
        if version >= 4:
            size += NODE_ID_BYTE_SIZE
        return size

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> ConnackPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        server_version = 0
        if framer.has_server_version:
            server_version = _read("version", dec.uint8)
        time_diff = _read("time diff", dec.int64)
        reason_code = _as_enum(ReasonCode, _read("reason code", dec.uint8))
        server_key = _read("server key", dec.string)
        salt = _read("salt", dec.string)
        node_id = 0
        if version >= 4:
            node_id = _read("node id", dec.uint64)
        return cls(
            **_header_fields(framer),
            server_version=server_version,
            server_key=server_key,
            salt=salt,
            time_diff=time_diff,
            reason_code=reason_code,
            node_id=node_id,
        )


@dataclass
class DisconnectPacket(Framer):
    """Request to close a session, with the reason."""

    frame_type: FrameType = field(default=FrameType.DISCONNECT, init=False)
    reason_code: ReasonCode | int = ReasonCode.UNKNOWN
    reason: str = ""

    def __str__(self) -> str:
        return f"ReasonCode:{int(self.reason_code)} Reason:{self.reason}"

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        encoder.write_uint8(int(self.reason_code))
        encoder.write_string(self.reason)

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        return REASON_CODE_BYTE_SIZE + _string_size(self.reason)

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> DisconnectPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        reason_code = _as_enum(ReasonCode, _read("reason code", dec.uint8))
        reason = _read("reason", dec.string)
        return cls(**_header_fields(framer), reason_code=reason_code, reason=reason)


@dataclass
class PingPacket(Framer):
    """Keep-alive request; it has no body."""

    frame_type: FrameType = field(default=FrameType.PING, init=False)


@dataclass
class PongPacket(Framer):
    """Answer to a ping; it has no body."""

    frame_type: FrameType = field(default=FrameType.PONG, init=False)