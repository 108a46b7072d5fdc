"""Subscription packets: sub and suback."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from .codec import DecodeError, Decoder, Encoder
from .common import (
    ACTION_BYTE_SIZE,
    CHANNEL_TYPE_BYTE_SIZE,
    REASON_CODE_BYTE_SIZE,
    SETTING_BYTE_SIZE,
    STRING_FIX_LEN_BYTE_SIZE,
    Framer,
    FrameType,
    ReasonCode,
)
from .setting import Setting

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


class Action(enum.IntEnum):
    """What a subscription request asks for."""

    SUBSCRIBE = 0
    UNSUBSCRIBE = 1


def _header_fields(framer: Framer) -> dict:
    return {name: getattr(framer, name) for name in _HEADER_FIELDS}


def _as_enum(enum_cls, value: int):
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _string_size(text: str) -> int:
    return len(text.encode("utf-8", "surrogateescape")) + STRING_FIX_LEN_BYTE_SIZE


def _read(name: str, reader: Callable[[], _T]) -> _T:
    try:
        return reader()
    except DecodeError as exc:
        raise DecodeError(f"failed to decode {name}: {exc}") from exc


@dataclass
class SubPacket(Framer):
    """Request to subscribe to or unsubscribe from a channel."""

    frame_type: FrameType = field(default=FrameType.SUB, init=False)
    setting: Setting | int = Setting.UNKNOWN
    sub_no: str = ""
    channel_id: str = ""
    channel_type: int = 0
    action: Action | int = Action.SUBSCRIBE
    param: str = ""

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        encoder.write_uint8(int(self.setting))
        encoder.write_string(self.sub_no)
        encoder.write_string(self.channel_id)
        encoder.write_uint8(self.channel_type)
        encoder.write_uint8(int(self.action))
        encoder.write_string(self.param)

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        return (
            SETTING_BYTE_SIZE
            + _string_size(self.sub_no)
            + _string_size(self.channel_id)
            + CHANNEL_TYPE_BYTE_SIZE
            + ACTION_BYTE_SIZE
            + _string_size(self.param)
        )

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> SubPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        setting = Setting(_read("setting", dec.uint8))
        sub_no = _read("sub no", dec.string)
        channel_id = _read("channel id", dec.string)
        channel_type = _read("channel type", dec.uint8)
        action = _as_enum(Action, _read("action", dec.uint8))
        param = _read("param", dec.string)
        return cls(
            **_header_fields(framer),
            setting=setting,
            sub_no=sub_no,
            channel_id=channel_id,
            channel_type=channel_type,
            action=action,
            param=param,
        )


@dataclass
class SubackPacket(Framer):
    """Server answer to a subscription request."""

    frame_type: FrameType = field(default=FrameType.SUBACK, init=False)
    sub_no: str = ""
    channel_id: str = ""
    channel_type: int = 0
    action: Action | int = Action.SUBSCRIBE
    reason_code: ReasonCode | int = ReasonCode.UNKNOWN

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        encoder.write_string(self.sub_no)
        encoder.write_string(self.channel_id)
        encoder.write_uint8(self.channel_type)
        encoder.write_uint8(int(self.action))
        encoder.write_uint8(int(self.reason_code))

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        return (
            _string_size(self.sub_no)
            + _string_size(self.channel_id)
            + CHANNEL_TYPE_BYTE_SIZE
            + ACTION_BYTE_SIZE
            + REASON_CODE_BYTE_SIZE
        )

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> SubackPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        sub_no = _read("sub no", dec.string)
        channel_id = _read("channel id", dec.string)
        channel_type = _read("channel type", dec.uint8)
        action = _as_enum(Action, _read("action", dec.uint8))
        reason_code = _as_enum(ReasonCode, _read("reason code", dec.uint8))
        return cls(
            **_header_fields(framer),
            sub_no=sub_no,
            channel_id=channel_id,
            channel_type=channel_type,
            action=action,
            reason_code=reason_code,
        )