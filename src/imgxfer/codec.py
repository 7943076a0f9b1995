"""Wire exchange for one transfer session.

    client -> server   4-byte length + file name (UTF-8)
    server -> client   b"ACK"
    client -> server   8-byte length + file bytes
    server -> client   8-byte length + transformed bytes
"""
from __future__ import annotations

import logging
import os
from pathlib import Path

from .constants import ACK, SNIFF_LEN
from .errors import ConnectionClosed, LocalIOError, ProtocolViolation, TruncatedFrame
from .frame import PAYLOAD_LEN, decode_length, encode_length, encode_name
from .model import ImageFile, ServerEndpoint, output_path
from .net import StreamConnection

log = logging.getLogger(__name__)


def name_frame(image: ImageFile) -> bytes:
    try:
        return encode_name(image.name)
    except (UnicodeEncodeError, ValueError) as e:
        raise LocalIOError(f"cannot announce source {image.path!r}: {e}") from e


async def announce(conn: StreamConnection, frame: bytes) -> None:
    await conn.send(frame)


async def expect_ack(conn: StreamConnection) -> None:
    try:
        reply = await conn.recv_exactly(len(ACK))
    except TruncatedFrame as e:
        raise ProtocolViolation(f"short acknowledgment: {e}") from e
    if reply != ACK:
        raise ProtocolViolation(f"bad acknowledgment from {conn.peer}: {reply!r}")


async def upload(conn: StreamConnection, image: ImageFile, chunk_size: int) -> int:
    try:
        f = open(image.path, "rb")
    except OSError as e:
        raise LocalIOError(f"cannot read source {image.path}: {e}") from e
    with f:
        try:
            size = os.fstat(f.fileno()).st_size
        except OSError as e:
            raise LocalIOError(f"cannot stat source {image.path}: {e}") from e
        await conn.send(encode_length(size))
        sent = 0
        while sent < size:
            try:
                chunk = f.read(min(chunk_size, size - sent))
            except OSError as e:
                raise LocalIOError(f"cannot read source {image.path}: {e}") from e
            if not chunk:
                raise LocalIOError(f"source {image.path} shrank during upload ({sent} of {size} bytes)")
            await conn.send(chunk)
            sent += len(chunk)
    return size


async def download(
    conn: StreamConnection,
    image: ImageFile,
    server: ServerEndpoint,
    output_dir: Path,
    chunk_size: int,
) -> Path:
    """Stream the length-prefixed artifact to its output path and return the path."""
    try:
        size = decode_length(await conn.recv_exactly(PAYLOAD_LEN.size))
    except TruncatedFrame as e:
        raise ProtocolViolation(f"truncated length prefix: {e}") from e

    received = 0

    async def next_chunk(limit: int) -> bytes:
        try:
            return await conn.recv_exactly(min(limit, size - received))
        except ConnectionClosed as e:
            raise TruncatedFrame(size, received) from e
        except TruncatedFrame as e:
            raise TruncatedFrame(size, received + e.received) from e

    # Signature bytes first, independent of chunk_size.
    head = await next_chunk(SNIFF_LEN) if size else b""
    received = len(head)
    path = output_path(output_dir, image, server, head)
    try:
        out = open(path, "wb")
    except OSError as e:
        raise LocalIOError(f"cannot create {path}: {e}") from e
    try:
        with out:
            chunk = head
            while True:
                try:
                    out.write(chunk)
                except OSError as e:
                    raise LocalIOError(f"cannot write {path}: {e}") from e
                if received >= size:
                    break
                chunk = await next_chunk(chunk_size)
                received += len(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return path


async def exchange(
    image: ImageFile,
    server: ServerEndpoint,
    output_dir: Path,
    *,
    timeout_s: float,
    chunk_size: int,
) -> Path:
    """Run one full attempt: connect, handshake, upload, download, close."""
    if not os.access(image.path, os.R_OK):
        raise LocalIOError(f"source {image.path} is not readable")
    announcement = name_frame(image)
    conn = await StreamConnection.open(server, timeout_s)
    try:
        await announce(conn, announcement)
        await expect_ack(conn)
        log.debug("ACK from %s for %s", server, image.name)
        sent = await upload(conn, image, chunk_size)
        log.debug("sent %d bytes of %s to %s", sent, image.name, server)
        path = await download(conn, image, server, output_dir, chunk_size)
        log.debug("saved artifact from %s as %s", server, path)
    finally:
        await conn.close()
    return path
