from __future__ import annotations

import struct

from .constants import MAX_ARTIFACT_SIZE, NAME_LEN_FORMAT, PAYLOAD_LEN_FORMAT
from .errors import ProtocolViolation

NAME_LEN = struct.Struct(NAME_LEN_FORMAT)
PAYLOAD_LEN = struct.Struct(PAYLOAD_LEN_FORMAT)


def encode_name(name: str) -> bytes:
    raw = name.encode("utf-8")
    if len(raw) > 0xFFFFFFFF:
        raise ValueError(f"file name too long: {len(raw)} bytes")
    return NAME_LEN.pack(len(raw)) + raw


def encode_length(size: int) -> bytes:
    if size < 0:
        raise ValueError(f"negative payload size: {size}")
    return PAYLOAD_LEN.pack(size)


def decode_length(raw: bytes, limit: int = MAX_ARTIFACT_SIZE) -> int:
    if len(raw) != PAYLOAD_LEN.size:
        raise ProtocolViolation(f"length prefix must be {PAYLOAD_LEN.size} bytes, got {len(raw)}")
    (size,) = PAYLOAD_LEN.unpack(raw)
    if size > limit:
        raise ProtocolViolation(f"malformed length prefix: {size} exceeds limit {limit}")
    return size
