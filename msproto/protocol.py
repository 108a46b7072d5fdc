"""Framing of packets: fixed header, remaining length and body dispatch."""

from __future__ import annotations

import io
from typing import BinaryIO

from .codec import DecodeError, Encoder
from .common import (
    Framer,
    FrameType,
    ProtocolError,
    framer_from_uint8,
    to_fix_header_uint8,
)
from .connection import (
    ConnackPacket,
    ConnectPacket,
    DisconnectPacket,
    PingPacket,
    PongPacket,
)
from .messages import RecvackPacket, RecvPacket, SendackPacket, SendPacket
from .subscription import SubackPacket, SubPacket

LATEST_VERSION = 4
MAX_REMAINING_LENGTH = 1024 * 1024
PAYLOAD_MAX_SIZE = 0x7FFF

_HEADER_FIELDS = (
    "remaining_length",
    "no_persist",
    "red_dot",
    "sync_once",
    "dup",
    "has_server_version",
    "frame_size",
)

_PACKETS = {
    FrameType.CONNECT: ConnectPacket,
    FrameType.CONNACK: ConnackPacket,
    FrameType.SEND: SendPacket,
    FrameType.SENDACK: SendackPacket,
    FrameType.RECV: RecvPacket,
    FrameType.RECVACK: RecvackPacket,
    FrameType.DISCONNECT: DisconnectPacket,
    FrameType.SUB: SubPacket,
    FrameType.SUBACK: SubackPacket,
}

_BODYLESS = (FrameType.PING, FrameType.PONG)


class _IncompleteLength(DecodeError):
    """The buffer ends inside the remaining-length field."""


def _type_text(frame_type) -> str:
    if isinstance(frame_type, FrameType):
        return str(frame_type)
    return f"UNKNOWN[{int(frame_type)}]"


def _header_fields(framer: Framer) -> dict:
    return {name: getattr(framer, name) for name in _HEADER_FIELDS}


def encode_variable(size: int) -> bytes:
    """Encode a remaining length as base-128 digits; zero gives no bytes."""
    out = bytearray()
    while size > 0:
        digit = size % 0x80
        size //= 0x80
        if size > 0:
            digit |= 0x80
        out.append(digit)
    return bytes(out)


def decode_length(data: bytes) -> tuple[int, int]:
    """Decode a remaining length; return it and the number of bytes it took."""
    length = 0
    shift = 0
    offset = 0
    while shift < 27:
        if offset >= len(data):
            raise _IncompleteLength("decode length error")
        digit = data[offset]
        length |= (digit & 0x7F) << shift
        if digit & 0x80 == 0:
            break
        shift += 7
        offset += 1
    return length, offset + 1


def _read_exact(stream: BinaryIO, count: int) -> bytes:
    chunks = bytearray()
    while len(chunks) < count:
        chunk = stream.read(count - len(chunks))
        if not chunk:
            raise EOFError(f"stream ended after {len(chunks)} of {count} bytes")
        chunks.extend(chunk)
    return bytes(chunks)


def _read_length(stream: BinaryIO) -> int:
    length = 0
    shift = 0
    while shift < 27:
        chunk = stream.read(1)
        digit = chunk[0] if chunk else 0
        length |= (digit & 0x7F) << shift
        if digit & 0x80 == 0:
            break
        shift += 7
    return length


def _decode_body(framer: Framer, body: bytes, version: int):
    frame_type = framer.frame_type
    packet_cls = _PACKETS.get(frame_type)
    if packet_cls is None:
        raise ProtocolError(f"decoding {_type_text(frame_type)} packets is not supported")
    try:
        return packet_cls.decode(framer, body, version)
    except DecodeError as exc:
        raise DecodeError(f"failed to decode {_type_text(frame_type)} packet: {exc}") from exc


class MSProto:
    """Encodes packets to bytes and decodes them back."""

    def decode_frame(self, data: bytes, version: int):
        """Decode one frame from the front of ``data``.

        Return the frame and the number of bytes it took, or ``(None, 0)``
        when ``data`` does not yet hold a whole frame.
        """
        data = bytes(data)
        if not data:
            return None, 0
        framer = framer_from_uint8(data[0])
        length_size = 0
        if framer.frame_type not in _BODYLESS:
            try:
                framer.remaining_length, length_size = decode_length(data[1:])
            except _IncompleteLength:
                return None, 0
        framer.frame_size = len(data)
        frame_type = framer.frame_type
        if frame_type == FrameType.UNKNOWN:
            return None, 0
        if frame_type == FrameType.PING:
            return PingPacket(**_header_fields(framer)), 1
        if frame_type == FrameType.PONG:
            return PongPacket(**_header_fields(framer)), 1
        if framer.remaining_length > MAX_REMAINING_LENGTH:
            raise ProtocolError(f"message exceeds the maximum size [{MAX_REMAINING_LENGTH}]")
        frame_len = 1 + length_size + framer.remaining_length
        if len(data) < frame_len:
            return None, 0
        body = data[1 + length_size:frame_len]
        return _decode_body(framer, body, version), frame_len

    def encode_frame(self, frame, version: int) -> bytes:
        """Encode a packet to bytes."""
        buffer = io.BytesIO()
        self.write_frame(buffer, frame, version)
        return buffer.getvalue()

    def write_frame(self, stream: BinaryIO, frame, version: int) -> None:
        """Encode a packet and write it to ``stream``."""
        frame_type = frame.frame_type
        encoder = Encoder(stream)
        if frame_type in _BODYLESS:
            encoder.write_uint8(int(frame_type) << 4)
            return
        packet_cls = _PACKETS.get(frame_type)
        if packet_cls is None or not isinstance(frame, packet_cls):
            raise ProtocolError(f"cannot encode a {_type_text(frame_type)} packet")
        if frame_type == FrameType.SEND and len(frame.payload) > PAYLOAD_MAX_SIZE:
            raise ProtocolError(f"payload exceeds the maximum size [{PAYLOAD_MAX_SIZE}]")
        encoder.write_uint8(to_fix_header_uint8(frame))
        encoder.write_bytes(encode_variable(frame.encoded_size(version)))
        frame.encode(encoder, version)

    def decode_packet_with_conn(self, stream: BinaryIO, version: int):
        """Read and decode one whole packet from a blocking stream."""
        framer = framer_from_uint8(_read_exact(stream, 1)[0])
        if framer.frame_type not in _BODYLESS:
            framer.remaining_length = _read_length(stream)
        if framer.frame_type == FrameType.PING:
            return PingPacket()
        if framer.frame_type == FrameType.PONG:
            return PongPacket()
        if framer.remaining_length > MAX_REMAINING_LENGTH:
            raise ProtocolError(f"message exceeds the maximum size [{MAX_REMAINING_LENGTH}]")
        body = _read_exact(stream, framer.remaining_length)
        return _decode_body(framer, body, version)