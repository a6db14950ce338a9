"""TCP syslog listener.

Accepts RFC6587 transport (octet-counted or newline-delimited frames), parses each
frame as syslog and queues decoded RawMessageRecords for the pipeline.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from .errors import RecordDecodeError
from .models import RawMessageRecord
from .syslog import SyslogParser

LOGGER = logging.getLogger(__name__)

MAX_FRAME_BYTES = 64 * 1024


class FramingError(ValueError):
    """The peer sent a frame that cannot be delimited."""


async def read_frames(reader: asyncio.StreamReader) -> AsyncIterator[bytes]:
    """Yield raw syslog frames until EOF.

    A frame starting with a digit is octet-counted (``"<len> <msg>"``); anything else
    runs up to the next LF.
    """
    while True:
        first = await reader.read(1)
        if not first:
            return
        if first in b"\r\n":
            continue

        if first.isdigit():
            try:
                prefix = first + await reader.readuntil(b" ")
            except asyncio.IncompleteReadError:
                return
            except asyncio.LimitOverrunError as e:
                raise FramingError("octet count prefix too long") from e
            length = int(prefix[:-1]) if prefix[:-1].isdigit() else -1
            if length < 0 or length > MAX_FRAME_BYTES:
                raise FramingError(f"invalid octet count {prefix[:-1]!r}")
            try:
                yield await reader.readexactly(length)
            except asyncio.IncompleteReadError:
                return
            continue

        try:
            rest = await reader.readuntil(b"\n")
        except asyncio.IncompleteReadError as e:
            rest = e.partial
        except asyncio.LimitOverrunError as e:
            raise FramingError("frame exceeds the maximum line length") from e
        yield first + rest


def decode_frame(frame: bytes, parser: SyslogParser) -> RawMessageRecord:
    """Turn one frame into a RawMessageRecord or raise RecordDecodeError."""
    line = frame.decode("utf-8", errors="replace").rstrip("\r\n")
    parts = parser.parse(line)
    if parts is None:
        raise RecordDecodeError(f"not a syslog message: {line[:120]!r}")
    return RawMessageRecord.from_parts(parts)


class SyslogListener:
    """Bind a TCP server and feed decoded records into an unbounded queue."""

    def __init__(
        self,
        host: str,
        port: int,
        *,
        queue: asyncio.Queue[RawMessageRecord] | None = None,
        parser: SyslogParser | None = None,
    ) -> None:
        self.host = host
        self.port = port
        self.queue: asyncio.Queue[RawMessageRecord] = queue if queue is not None else asyncio.Queue()
        self.parser = parser or SyslogParser()
        self._server: asyncio.Server | None = None
        self._clients: dict[asyncio.Task[None], asyncio.StreamWriter] = {}

    @property
    def bound_port(self) -> int:
        if self._server is None or not self._server.sockets:
            raise RuntimeError("listener is not bound")
        return self._server.sockets[0].getsockname()[1]

    async def start(self) -> None:
        """Bind the listening socket. OSError here is a startup failure."""
        self._server = await asyncio.start_server(
            self._handle_client, host=self.host, port=self.port, limit=MAX_FRAME_BYTES
        )
        LOGGER.info("syslog listener on %s:%d", self.host, self.bound_port)

    async def serve_forever(self) -> None:
        if self._server is None:
            await self.start()
        assert self._server is not None
        try:
            await self._server.serve_forever()
        finally:
            await self.close()

    async def close(self) -> None:
        """Stop accepting, drop connected peers and wait for the server to close.

        Routers keep their connection open indefinitely, and Server.wait_closed()
        only returns once every client connection is gone.
        """
        if self._server is None:
            return
        self._server.close()
        clients = list(self._clients.items())
        for task, writer in clients:
            writer.close()
            task.cancel()
        await asyncio.gather(*(task for task, _ in clients), return_exceptions=True)
        await self._server.wait_closed()

    async def _handle_client(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        peer = writer.get_extra_info("peername")
        task = asyncio.current_task()
        if task is not None:
            self._clients[task] = writer
        LOGGER.debug("syslog connection from %s", peer)
        try:
            async for frame in read_frames(reader):
                try:
                    record = decode_frame(frame, self.parser)
                except RecordDecodeError as e:
                    LOGGER.warning("Skipping frame from %s: %s", peer, e)
                    continue
                self.queue.put_nowait(record)
        except FramingError as e:
            LOGGER.warning("Closing syslog connection from %s: %s", peer, e)
        except ConnectionError as e:
            LOGGER.debug("syslog connection from %s lost: %s", peer, e)
        finally:
            self._clients.pop(task, None)
            writer.close()
            try:
                await writer.wait_closed()
            except ConnectionError:
                pass
