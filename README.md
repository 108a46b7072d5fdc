# msproto

A pure-Python codec for a compact binary instant-messaging protocol. It turns
packet objects into bytes ready for a socket and turns incoming bytes back
into packet objects.

The package has no runtime dependencies and supports Python 3.10 and later.

## Wire format

Every packet starts with a one-byte fixed header: the frame type in the high
four bits and flags in the low four (no-persist, red dot, sync-once,
duplicate; for `CONNACK` the lowest bit instead says whether a server version
byte follows). `PING` and `PONG` are that single byte and nothing else. Every
other packet continues with a base-128 "remaining length" and then the body.
Integers are big-endian and strings carry a 16-bit length prefix.

| Frame type   | Packet class       | Module                   |
|--------------|--------------------|--------------------------|
| `CONNECT`    | `ConnectPacket`    | `msproto.connection`     |
| `CONNACK`    | `ConnackPacket`    | `msproto.connection`     |
| `DISCONNECT` | `DisconnectPacket` | `msproto.connection`     |
| `PING`       | `PingPacket`       | `msproto.connection`     |
| `PONG`       | `PongPacket`       | `msproto.connection`     |
| `SEND`       | `SendPacket`       | `msproto.messages`       |
| `SENDACK`    | `SendackPacket`    | `msproto.messages`       |
| `RECV`       | `RecvPacket`       | `msproto.messages`       |
| `RECVACK`    | `RecvackPacket`    | `msproto.messages`       |
| `SUB`        | `SubPacket`        | `msproto.subscription`   |
| `SUBACK`     | `SubackPacket`     | `msproto.subscription`   |

Some fields only appear on the wire from a given protocol version onwards
(stream data in `SEND`/`RECV` from version 2, message expiry from version 3,
the node id in `CONNACK` from version 4), so every encode and decode call
takes the protocol version. `msproto.protocol.LATEST_VERSION` is 4.

Fields guarded by a setting flag (`Setting.TOPIC` for the topic,
`Setting.STREAM` for stream data) are written and read only when that flag is
set in the packet's `setting`.

## Usage

```python
from msproto.common import ChannelType
from msproto.messages import SendPacket
from msproto.protocol import LATEST_VERSION, MSProto
from msproto.setting import Setting

proto = MSProto()

packet = SendPacket(
    setting=Setting.TOPIC,
    client_seq=1,
    client_msg_no="msg-1",
    channel_id="alice",
    channel_type=ChannelType.PERSON,
    topic="news",
    payload=b"hello",
)
data = proto.encode_frame(packet, LATEST_VERSION)

frame, consumed = proto.decode_frame(data, LATEST_VERSION)
assert consumed == len(data)
assert frame.payload == b"hello" and frame.topic == "news"
```

`MSProto.decode_frame(data, version)` reads one frame from the front of a
buffer and returns the frame with the number of bytes it used. When the
buffer is empty, ends inside the header, does not yet hold the whole body, or
starts with an `UNKNOWN` frame type, it returns `(None, 0)`, so a caller can
keep appending received data and try again.

`MSProto.write_frame(stream, frame, version)` encodes a frame straight into a
writable binary stream, and `MSProto.decode_packet_with_conn(stream, version)`
reads exactly one frame from a readable binary stream such as a socket file.
`PING` and `PONG` read this way come back as plain `PingPacket()` and
`PongPacket()`.

Every packet class also offers `encode(encoder, version)`,
`encoded_size(version)` and the class method `decode(framer, data, version)`
for working with bodies directly. `SendPacket` has `unique_key()` and
`verity_string()`; `RecvPacket` has `verity_bytes()`, `verity_string()`,
`size()`, `size_with_proto_version(version)` and `reset()`.

## Errors

- `msproto.common.ProtocolError` is raised for frames larger than
  `MAX_REMAINING_LENGTH` (1 MiB), `SEND` payloads larger than
  `PAYLOAD_MAX_SIZE` (32767 bytes), and frame types that cannot be encoded
  or decoded.
- `msproto.codec.DecodeError`, a subclass of `ProtocolError`, is raised when
  a body runs out of bytes while a field is being read, or a string length
  prefix is negative.
- `decode_packet_with_conn` raises `EOFError` when the stream ends before
  the frame does.
- `Encoder.write_binary` and `Encoder.write_string` raise `ValueError` for
  data longer than 32767 bytes.

## Lower-level pieces

- `msproto.codec.Encoder` and `msproto.codec.Decoder` write and read the
  big-endian integers, length-prefixed strings and base-128 variable-length
  integers the protocol is built from. An `Encoder` writes to a fresh
  in-memory buffer unless given a stream. The module also has the free
  functions `write_uint32`, `write_int16` and `write_binary` for any
  writable binary stream.
- `msproto.protocol.encode_variable(size)` and
  `msproto.protocol.decode_length(data)` handle the remaining-length field.
- `msproto.setting.Setting` is an integer flag for the per-message settings
  (receipt, signal, no-encrypt, topic, stream), with `is_set`, `with_flag`
  and `without_flag`.
- `msproto.common` holds `FrameType`, `ReasonCode`, `DeviceFlag`,
  `DeviceLevel`, `ChannelType`, `Channel`, the `Framer` header, and
  `to_fix_header_uint8` / `framer_from_uint8` for the first header byte.

## What it does not do

This package only converts between packets and bytes. It opens no
connections, runs no client or server, performs no authentication or
encryption, and stores nothing; those belong to the application that uses it.

## Running the tests

```
pip install -e ".[test]"
pytest
```