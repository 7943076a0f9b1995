from __future__ import annotations

import asyncio
import logging

from .errors import ConnectionClosed, TransientError, TruncatedFrame
from .model import ServerEndpoint

log = logging.getLogger(__name__)

_NET_ERRORS = (OSError, asyncio.TimeoutError, TimeoutError)


class StreamConnection:
    """One TCP stream where every connect, read and write is bounded by ``timeout_s``."""

    def __init__(
        self,
        reader: asyncio.StreamReader,
        writer: asyncio.StreamWriter,
        timeout_s: float,
        peer: str = "",
    ):
        self.reader = reader
        self.writer = writer
        self.timeout_s = timeout_s
        self.peer = peer

    @classmethod
    async def open(cls, endpoint: ServerEndpoint, timeout_s: float) -> "StreamConnection":
        try:
            reader, writer = await asyncio.wait_for(
                asyncio.open_connection(endpoint.host, endpoint.port),
                timeout=timeout_s,
            )
        except _NET_ERRORS as e:
            raise TransientError(f"connect to {endpoint} failed: {e!r}") from e
        log.debug("connected to %s", endpoint)
        return cls(reader, writer, timeout_s, peer=endpoint.address)

    async def send(self, data: bytes) -> None:
        try:
            self.writer.write(data)
            await asyncio.wait_for(self.writer.drain(), timeout=self.timeout_s)
        except _NET_ERRORS as e:
            raise TransientError(f"write to {self.peer} failed: {e!r}") from e

    async def recv_exactly(self, n: int) -> bytes:
        """Read exactly ``n`` bytes.

        A clean close before the first byte is ``ConnectionClosed`` (transient);
        a close part way through is ``TruncatedFrame`` (protocol violation).
        """
        if n == 0:
            return b""
        try:
            return await asyncio.wait_for(self.reader.readexactly(n), timeout=self.timeout_s)
        except asyncio.IncompleteReadError as e:
            if e.partial:
                raise TruncatedFrame(n, len(e.partial)) from e
            raise ConnectionClosed(n) from e
        except _NET_ERRORS as e:
            raise TransientError(f"read from {self.peer} failed: {e!r}") from e

    async def close(self) -> None:
        self.writer.close()
        try:
            await asyncio.wait_for(self.writer.wait_closed(), timeout=self.timeout_s)
        except _NET_ERRORS as e:
            log.debug("close of %s did not complete cleanly: %r", self.peer, e)
