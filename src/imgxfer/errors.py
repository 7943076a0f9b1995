"""Failure taxonomy for transfer sessions.

Everything raised inside a session derives from ``TransferError`` so the
retry policy can classify an attempt with a single ``classify`` call.
"""
from __future__ import annotations

import enum


class FailureKind(enum.Enum):
    TRANSIENT = "transient"
    PROTOCOL = "protocol_violation"
    LOCAL_IO = "local_io"
    UNEXPECTED = "unexpected"

    @property
    def retryable(self) -> bool:
        return self is FailureKind.TRANSIENT


class TransferError(Exception):
    pass


class TransientError(TransferError):
    """Connect/read/write failed or timed out; the attempt may be retried."""


class ConnectionClosed(TransientError):
    """Peer closed the stream before any byte of the awaited frame arrived."""

    def __init__(self, expected: int):
        super().__init__(f"connection closed by peer (expected {expected} bytes)")
        self.expected = expected


class ProtocolViolation(TransferError):
    """Unexpected or malformed wire data. Never retried."""


class TruncatedFrame(ProtocolViolation):
    def __init__(self, expected: int, received: int):
        super().__init__(f"truncated frame: got {received} of {expected} bytes")
        self.expected = expected
        self.received = received


class LocalIOError(TransferError):
    """Source file unreadable or output path unwritable."""


class DiscoveryError(Exception):
    """The source directory could not be enumerated; nothing runs."""


class DecodeError(Exception):
    pass


def classify(exc: BaseException) -> FailureKind:
    if isinstance(exc, TransientError):
        return FailureKind.TRANSIENT
    if isinstance(exc, ProtocolViolation):
        return FailureKind.PROTOCOL
    if isinstance(exc, LocalIOError):
        return FailureKind.LOCAL_IO
    return FailureKind.UNEXPECTED
