"""Message packets: send, sendack, recv and recvack."""

from __future__ import annotations

import enum
from dataclasses import MISSING, dataclass, field, fields
from typing import Callable, TypeVar

from .codec import DecodeError, Decoder, Encoder
from .common import (
    CHANNEL_TYPE_BYTE_SIZE,
    CLIENT_SEQ_BYTE_SIZE,
    EXPIRE_BYTE_SIZE,
    MESSAGE_ID_BYTE_SIZE,
    MESSAGE_SEQ_BYTE_SIZE,
    REASON_CODE_BYTE_SIZE,
    SETTING_BYTE_SIZE,
    STREAM_FLAG_BYTE_SIZE,
    STREAM_ID_BYTE_SIZE,
    STRING_FIX_LEN_BYTE_SIZE,
    TIMESTAMP_BYTE_SIZE,
    Framer,
    FrameType,
    ReasonCode,
)
from .setting import Setting

_T = TypeVar("_T")

_LATEST_VERSION = 4

_HEADER_FIELDS = (
    "remaining_length",
    "no_persist",
    "red_dot",
    "sync_once",
    "dup",
    "has_server_version",
    "frame_size",
)


class StreamFlag(enum.IntEnum):
    """Position of a message within a stream."""

    START = 0
    ING = 1
    END = 2


def _header_fields(framer: Framer) -> dict:
    return {name: getattr(framer, name) for name in _HEADER_FIELDS}


def _as_enum(enum_cls, value: int):
    try:
        return enum_cls(value)
    except ValueError:
        return value


def _text_bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _string_size(text: str) -> int:
    return len(_text_bytes(text)) + STRING_FIX_LEN_BYTE_SIZE


def _payload_text(payload: bytes) -> str:
    return bytes(payload).decode("utf-8", "surrogateescape")


def _reason_text(code) -> str:
    if isinstance(code, ReasonCode):
        return str(code)
    return f"UNKNOWN[{int(code)}]"


def _has(setting, flag: Setting) -> bool:
    return int(setting) & int(flag) != 0


def _read(name: str, reader: Callable[[], _T]) -> _T:
    try:
        return reader()
    except DecodeError as exc:
        raise DecodeError(f"failed to decode {name}: {exc}") from exc


@dataclass
class SendPacket(Framer):
    """Message sent by a client to a channel."""

    frame_type: FrameType = field(default=FrameType.SEND, init=False)
    setting: Setting | int = Setting.UNKNOWN
    msg_key: str = ""
    expire: int = 0
    client_seq: int = 0
    client_msg_no: str = ""
    stream_no: str = ""
    channel_id: str = ""
    channel_type: int = 0
    topic: str = ""
    payload: bytes = b""

    def __str__(self) -> str:
        return (
            f"Setting:{int(self.setting)} MsgKey:{self.msg_key} Expire: {self.expire} "
            f"ClientSeq:{self.client_seq} ClientMsgNo:{self.client_msg_no} "
            f"ChannelId:{self.channel_id} ChannelType:{self.channel_type} "
            f"Topic:{self.topic} Payload:{_payload_text(self.payload)}"
        )

    def unique_key(self) -> str:
        """Key that identifies this message from this client."""
        return f"{self.channel_id}-{self.channel_type}-{self.client_msg_no}-{self.client_seq}"

    def verity_string(self) -> str:
        """Text that the message key is computed over."""
        return (
            f"{self.client_seq}{self.client_msg_no}{self.channel_id}"
            f"{self.channel_type}{_payload_text(self.payload)}"
        )

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        encoder.write_uint8(int(self.setting))
        encoder.write_uint32(self.client_seq)
        encoder.write_string(self.client_msg_no)
        if version >= 2 and _has(self.setting, Setting.STREAM):
            encoder.write_string(self.stream_no)
        encoder.write_string(self.channel_id)
        encoder.write_uint8(self.channel_type)
        if version >= 3:
            encoder.write_uint32(self.expire)
        encoder.write_string(self.msg_key)
        if _has(self.setting, Setting.TOPIC):
            encoder.write_string(self.topic)
        encoder.write_bytes(self.payload)

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        size = SETTING_BYTE_SIZE + CLIENT_SEQ_BYTE_SIZE
        size += _string_size(self.client_msg_no)
        if version >= 2 and _has(self.setting, Setting.STREAM):
            size += _string_size(self.stream_no)
        size += _string_size(self.channel_id) + CHANNEL_TYPE_BYTE_SIZE
        if version >= 3:
            size += EXPIRE_BYTE_SIZE
        size += _string_size(self.msg_key)
        if _has(self.setting, Setting.TOPIC):
            size += _string_size(self.topic)
        return size + len(self.payload)

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> SendPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        setting = Setting(_read("setting", dec.uint8))
        client_seq = _read("client seq", dec.uint32)
        client_msg_no = _read("client msg no", dec.string)
        stream_no = ""
        if version >= 2 and setting.is_set(Setting.STREAM):
            stream_no = _read("stream no", dec.string)
        channel_id = _read("channel id", dec.string)
        channel_type = _read("channel type", dec.uint8)
        expire = 0
        if version >= 3:
            expire = _read("expire", dec.uint32)
        msg_key = _read("msg key", dec.string)
        topic = ""
        if setting.is_set(Setting.TOPIC):
            topic = _read("topic", dec.string)
        payload = _read("payload", dec.binary_all)
        return cls(
            **_header_fields(framer),
            setting=setting,
            msg_key=msg_key,
            expire=expire,
            client_seq=client_seq,
            client_msg_no=client_msg_no,
            stream_no=stream_no,
            channel_id=channel_id,
            channel_type=channel_type,
            topic=topic,
            payload=payload,
        )


@dataclass
class SendackPacket(Framer):
    """Server acknowledgement of a sent message."""

    frame_type: FrameType = field(default=FrameType.SENDACK, init=False)
    message_id: int = 0
    message_seq: int = 0
    client_seq: int = 0
    client_msg_no: str = ""
    reason_code: ReasonCode | int = ReasonCode.UNKNOWN

    def __str__(self) -> str:
        return (
            f"MessageSeq:{self.message_seq} MessageId:{self.message_id} "
            f"ReasonCode:{_reason_text(self.reason_code)}"
        )

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        encoder.write_int64(self.message_id)
        encoder.write_uint32(self.client_seq)
        encoder.write_uint32(self.message_seq)
        encoder.write_uint8(int(self.reason_code))

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        return (
            MESSAGE_ID_BYTE_SIZE
            + CLIENT_SEQ_BYTE_SIZE
            + MESSAGE_SEQ_BYTE_SIZE
            + REASON_CODE_BYTE_SIZE
        )

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> SendackPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        message_id = _read("message id", dec.int64)
        client_seq = _read("client seq", dec.uint32)
        message_seq = _read("message seq", dec.uint32)
        reason_code = _as_enum(ReasonCode, _read("reason code", dec.uint8))
        return cls(
            **_header_fields(framer),
            message_id=message_id,
            message_seq=message_seq,
            client_seq=client_seq,
            reason_code=reason_code,
        )


@dataclass
class RecvPacket(Framer):
    """Message delivered by the server to a client."""

    frame_type: FrameType = field(default=FrameType.RECV, init=False)
    setting: Setting | int = Setting.UNKNOWN
    msg_key: str = ""
    expire: int = 0
    message_id: int = 0
    message_seq: int = 0
    client_msg_no: str = ""
    stream_no: str = ""
    stream_id: int = 0
    stream_flag: StreamFlag | int = StreamFlag.START
    timestamp: int = 0
    channel_id: str = ""
    channel_type: int = 0
    topic: str = ""
    from_uid: str = ""
    payload: bytes = b""
    # Not part of the wire format.
    client_seq: int = 0

    def __str__(self) -> str:
        return (
            f"recv Header:{Framer.__str__(self)} Setting:{int(self.setting)} "
            f"MessageID:{self.message_id} MessageSeq:{self.message_seq} "
            f"Timestamp:{self.timestamp} Expire:{self.expire} "
            f"FromUid:{self.from_uid} ChannelID:{self.channel_id} "
            f"ChannelType:{self.channel_type} Topic:{self.topic} "
            f"Payload:{_payload_text(self.payload)}"
        )

    def reset(self) -> None:
        """Return every field to its default value."""
        for item in fields(self):
            if item.default is not MISSING:
                setattr(self, item.name, item.default)
            elif item.default_factory is not MISSING:
                setattr(self, item.name, item.default_factory())

    def size(self) -> int:
        """Body size at the latest protocol version."""
        return self.size_with_proto_version(_LATEST_VERSION)

    def size_with_proto_version(self, version: int) -> int:
        """Body size at the given protocol version."""
        return self.encoded_size(version)

    def verity_bytes(self) -> bytes:
        """Bytes that the message key is computed over."""
        return b"".join(
            (
                str(self.message_id).encode(),
                str(self.message_seq).encode(),
                _text_bytes(self.client_msg_no),
                str(self.timestamp).encode(),
                _text_bytes(self.from_uid),
                _text_bytes(self.channel_id),
                str(self.channel_type).encode(),
                bytes(self.payload),
            )
        )

    def verity_string(self) -> str:
        """Text form of :meth:`verity_bytes`."""
        return self.verity_bytes().decode("utf-8", "surrogateescape")

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        encoder.write_uint8(int(self.setting))
        encoder.write_string(self.msg_key)
        encoder.write_string(self.from_uid)
        encoder.write_string(self.channel_id)
        encoder.write_uint8(self.channel_type)
        if version >= 3:
            encoder.write_uint32(self.expire)
        encoder.write_string(self.client_msg_no)
        if version >= 2 and _has(self.setting, Setting.STREAM):
            encoder.write_uint8(int(self.stream_flag))
            encoder.write_string(self.stream_no)
            encoder.write_uint64(self.stream_id)
        encoder.write_int64(self.message_id)
        encoder.write_uint32(self.message_seq)
        encoder.write_int32(self.timestamp)
        if _has(self.setting, Setting.TOPIC):
            encoder.write_string(self.topic)
        encoder.write_bytes(self.payload)

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        size = SETTING_BYTE_SIZE
        size += _string_size(self.msg_key)
        size += _string_size(self.from_uid)
        size += _string_size(self.channel_id)
        size += CHANNEL_TYPE_BYTE_SIZE
        if version >= 3:
            size += EXPIRE_BYTE_SIZE
        size += _string_size(self.client_msg_no)
        if version >= 2 and _has(self.setting, Setting.STREAM):
            size += STREAM_FLAG_BYTE_SIZE
            size += _string_size(self.stream_no)
            size += STREAM_ID_BYTE_SIZE
        size += MESSAGE_ID_BYTE_SIZE + MESSAGE_SEQ_BYTE_SIZE + TIMESTAMP_BYTE_SIZE
        if _has(self.setting, Setting.TOPIC):
            size += _string_size(self.topic)
        return size + len(self.payload)

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> RecvPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        setting = Setting(_read("setting", dec.uint8))
        msg_key = _read("msg key", dec.string)
        from_uid = _read("from uid", dec.string)
        channel_id = _read("channel id", dec.string)
        channel_type = _read("channel type", dec.uint8)
        expire = 0
        if version >= 3:
            expire = _read("expire", dec.uint32)
        client_msg_no = _read("client msg no", dec.string)
        stream_flag: StreamFlag | int = StreamFlag.START
        stream_no = ""
        stream_id = 0
        if version >= 2 and setting.is_set(Setting.STREAM):
            stream_flag = _as_enum(StreamFlag, _read("stream flag", dec.uint8))
            stream_no = _read("stream no", dec.string)
            stream_id = _read("stream id", dec.uint64)
        message_id = _read("message id", dec.int64)
        message_seq = _read("message seq", dec.uint32)
        timestamp = _read("timestamp", dec.int32)
        topic = ""
        if setting.is_set(Setting.TOPIC):
            topic = _read("topic", dec.string)
        payload = _read("payload", dec.binary_all)
        return cls(
            **_header_fields(framer),
            setting=setting,
            msg_key=msg_key,
            expire=expire,
            message_id=message_id,
            message_seq=message_seq,
            client_msg_no=client_msg_no,
            stream_no=stream_no,
            stream_id=stream_id,
            stream_flag=stream_flag,
            timestamp=timestamp,
            channel_id=channel_id,
            channel_type=channel_type,
            topic=topic,
            from_uid=from_uid,
            payload=payload,
        )


@dataclass
class RecvackPacket(Framer):
    """Client acknowledgement of a received message."""

    frame_type: FrameType = field(default=FrameType.RECVACK, init=False)
    message_id: int = 0
    message_seq: int = 0

    def __str__(self) -> str:
        return (
            f"Framer:{Framer.__str__(self)} MessageId:{self.message_id} "
            f"MessageSeq:{self.message_seq}"
        )

    def encode(self, encoder: Encoder, version: int) -> None:
        """Write the packet body."""
        encoder.write_int64(self.message_id)
        encoder.write_uint32(self.message_seq)

    def encoded_size(self, version: int) -> int:
        """Size in bytes of the packet body."""
        return MESSAGE_ID_BYTE_SIZE + MESSAGE_SEQ_BYTE_SIZE

    @classmethod
    def decode(cls, framer: Framer, data: bytes, version: int) -> RecvackPacket:
        """Build a packet from its header and body bytes."""
        dec = Decoder(data)
        message_id = _read("message id", dec.int64)
        message_seq = _read("message seq", dec.uint32)
        return cls(
            **_header_fields(framer), message_id=message_id, message_seq=message_seq
        )