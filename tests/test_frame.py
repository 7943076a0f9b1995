from __future__ import annotations

import struct

import pytest

from imgxfer.errors import ProtocolViolation
from imgxfer.frame import PAYLOAD_LEN, decode_length, encode_length, encode_name


def test_name_is_length_prefixed_utf8():
    raw = encode_name("café.png")
    (n,) = struct.unpack("!I", raw[:4])
    assert n == len("café.png".encode("utf-8"))
    assert raw[4:].decode("utf-8") == "café.png"


def test_length_prefix_is_eight_bytes_big_endian():
    assert encode_length(1) == b"\x00" * 7 + b"\x01"
    assert decode_length(encode_length(123456)) == 123456


def test_zero_length_is_valid():
    assert decode_length(encode_length(0)) == 0


def test_negative_length_rejected():
    with pytest.raises(ValueError):
        encode_length(-1)


def test_oversized_length_is_protocol_violation():
    with pytest.raises(ProtocolViolation):
        decode_length(PAYLOAD_LEN.pack(1025), limit=1024)


def test_short_prefix_is_protocol_violation():
    with pytest.raises(ProtocolViolation):
        decode_length(b"\x00\x01")
