"""Big-endian primitives and length-prefixed strings used by packet bodies."""

from __future__ import annotations

import io
from typing import BinaryIO

from .common import ProtocolError

MAX_BINARY_LENGTH = 0x7FFF


class DecodeError(ProtocolError):
    """Raised when a buffer does not hold the value that was asked for."""


def _text_bytes(text: str) -> bytes:
    return text.encode("utf-8", "surrogateescape")


def _bytes_text(data: bytes) -> str:
    return data.decode("utf-8", "surrogateescape")


class Decoder:
    """Reads big-endian values from a byte buffer, front to back."""

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self._data = bytes(data)
        self._offset = 0

    def __len__(self) -> int:
        """Number of bytes not read yet."""
        return len(self._data) - self._offset

    def _take(self, count: int) -> bytes:
        end = self._offset + count
        if end > len(self._data):
            raise DecodeError(
                f"Decoder couldn't read expect bytes {end} of {len(self._data)}"
            )
        chunk = self._data[self._offset:end]
        self._offset = end
        return chunk

    def _integer(self, size: int, signed: bool) -> int:
        return int.from_bytes(self._take(size), "big", signed=signed)

    def uint8(self) -> int:
        return self._integer(1, False)

    def int16(self) -> int:
        return self._integer(2, True)

    def uint16(self) -> int:
        return self._integer(2, False)

    def int32(self) -> int:
        return self._integer(4, True)

    def uint32(self) -> int:
        return self._integer(4, False)

    def int64(self) -> int:
        return self._integer(8, True)

    def uint64(self) -> int:
        return self._integer(8, False)

    def read_bytes(self, count: int) -> bytes:
        """Read exactly ``count`` raw bytes."""
        if count < 0:
            raise ValueError(f"byte count must not be negative: {count}")
        return self._take(count)

    def binary(self) -> bytes:
        """Read bytes prefixed by a signed 16-bit length."""
        size = self.int16()
        if size < 0:
            raise DecodeError(f"size is less than 0, size: {size}")
        return self._take(size)

    def binary_all(self) -> bytes:
        """Read every remaining byte."""
        return self._take(len(self))

    def string(self) -> str:
        """Read a length-prefixed UTF-8 string."""
        return _bytes_text(self.binary())

    def string_all(self) -> str:
        """Read the rest of the buffer as a UTF-8 string."""
        return _bytes_text(self.binary_all())

    def variable(self) -> int:
        """Read a base-128 variable-length integer."""
        size = 0
        multiplier = 1
        while True:
            digit = self.uint8()
            size += (digit & 0x7F) * multiplier
            multiplier *= 0x80
            if digit & 0x80 == 0:
                return size


class Encoder:
    """Writes big-endian values to a binary stream (a fresh BytesIO by default)."""

    def __init__(self, stream: BinaryIO | None = None) -> None:
        self._stream = io.BytesIO() if stream is None else stream
        self._written = 0

    def __len__(self) -> int:
        """Number of bytes written through this encoder."""
        return self._written

    def getvalue(self) -> bytes:
        """Contents of the underlying stream; it must offer ``getvalue``."""
        return self._stream.getvalue()

    def _write(self, data: bytes) -> None:
        self._stream.write(data)
        self._written += len(data)

    def _integer(self, value: int, size: int) -> None:
        mask = (1 << (size * 8)) - 1
        self._write((int(value) & mask).to_bytes(size, "big"))

    def write_uint8(self, value: int) -> None:
        self._integer(value, 1)

    def write_int16(self, value: int) -> None:
        self._integer(value, 2)

    def write_uint16(self, value: int) -> None:
        self._integer(value, 2)

    def write_int32(self, value: int) -> None:
        self._integer(value, 4)

    def write_uint32(self, value: int) -> None:
        self._integer(value, 4)

    def write_int64(self, value: int) -> None:
        self._integer(value, 8)

    def write_uint64(self, value: int) -> None:
        self._integer(value, 8)

    def write_binary(self, data: bytes) -> None:
        """Write bytes prefixed by their 16-bit length."""
        if len(data) > MAX_BINARY_LENGTH:
            raise ValueError(
                f"binary data longer than {MAX_BINARY_LENGTH} bytes: {len(data)}"
            )
        self.write_int16(len(data))
        if data:
            self._write(bytes(data))

    def write_string(self, text: str) -> None:
        """Write a length-prefixed UTF-8 string."""
        self.write_binary(_text_bytes(text))

    def write_string_all(self, text: str) -> None:
        """Write a UTF-8 string without a length prefix."""
        self.write_bytes(_text_bytes(text))

    def write_bytes(self, data: bytes) -> None:
        """Write raw bytes without a length prefix."""
        self._write(bytes(data))

    def write_variable(self, value: int) -> None:
        """Write a base-128 variable-length integer; zero writes nothing."""
        out = bytearray()
        while value > 0:
            digit = value % 0x80
            value //= 0x80
            if value > 0:
                digit |= 0x80
            out.append(digit)
        self._write(bytes(out))


def write_uint32(value: int, stream: BinaryIO) -> None:
    """Write a big-endian unsigned 32-bit integer to ``stream``."""
    stream.write((int(value) & 0xFFFFFFFF).to_bytes(4, "big"))


def write_int16(value: int, stream: BinaryIO) -> None:
    """Write a big-endian 16-bit integer to ``stream``."""
    stream.write((int(value) & 0xFFFF).to_bytes(2, "big"))


def write_binary(data: bytes, stream: BinaryIO) -> None:
    """Write ``data`` prefixed by its 16-bit length to ``stream``."""
    write_int16(len(data), stream)
    if data:
        stream.write(bytes(data))