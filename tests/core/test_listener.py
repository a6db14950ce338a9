from __future__ import annotations

import asyncio
import logging

import pytest

from router_conn_metrics.core.listener import FramingError, SyslogListener, read_frames

LOGIN = b"<134>Oct 19 12:00:00 10.11.12.13 ovpn,info alice logged in, pw1 from 81.2.69.142"
LOGOUT = b"<134>Oct 19 12:05:00 10.11.12.13 ovpn,info alice logged out, 300 1 2 3 4 from 81.2.69.142"


def _reader(data: bytes) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return reader


@pytest.mark.asyncio
async def test_read_frames_newline_delimited() -> None:
    frames = [f async for f in read_frames(_reader(LOGIN + b"\n\n" + LOGOUT))]
    assert frames == [LOGIN + b"\n", LOGOUT]


@pytest.mark.asyncio
async def test_read_frames_octet_counted() -> None:
    data = b"%d %s%d %s" % (len(LOGIN), LOGIN, len(LOGOUT), LOGOUT)
    frames = [f async for f in read_frames(_reader(data))]
    assert frames == [LOGIN, LOGOUT]


@pytest.mark.asyncio
async def test_read_frames_rejects_bad_octet_count() -> None:
    with pytest.raises(FramingError):
        _ = [f async for f in read_frames(_reader(b"12x <134>oops"))]


@pytest.mark.asyncio
async def test_listener_queues_decoded_records(caplog) -> None:
    listener = SyslogListener("127.0.0.1", 0)
    await listener.start()
    serve = asyncio.create_task(listener.serve_forever())
    try:
        _, writer = await asyncio.open_connection("127.0.0.1", listener.bound_port)
        with caplog.at_level(logging.WARNING, logger="router_conn_metrics"):
            writer.write(LOGIN + b"\nnot syslog at all\n" + b"%d %s" % (len(LOGOUT), LOGOUT))
            await writer.drain()
            first = await asyncio.wait_for(listener.queue.get(), timeout=2)
            second = await asyncio.wait_for(listener.queue.get(), timeout=2)
        writer.close()
        await writer.wait_closed()
    finally:
        serve.cancel()
        await asyncio.gather(serve, return_exceptions=True)
        await listener.close()

    assert first.host_identifier == "10.11.12.13"
    assert first.application_tag == "ovpn,info"
    assert first.message_text == "alice logged in, pw1 from 81.2.69.142"
    assert second.message_text.startswith("alice logged out, 300")
    assert listener.queue.empty()
    assert "not a syslog message" in caplog.text


@pytest.mark.asyncio
async def test_bind_failure_raises_os_error() -> None:
    first = SyslogListener("127.0.0.1", 0)
    await first.start()
    try:
        second = SyslogListener("127.0.0.1", first.bound_port)
        with pytest.raises(OSError):
            await second.start()
    finally:
        await first.close()


@pytest.mark.asyncio
async def test_close_drops_connected_clients() -> None:
    listener = SyslogListener("127.0.0.1", 0)
    await listener.start()
    reader, writer = await asyncio.open_connection("127.0.0.1", listener.bound_port)
    try:
        writer.write(LOGIN + b"\n")
        await writer.drain()
        await asyncio.wait_for(listener.queue.get(), timeout=2)

        await asyncio.wait_for(listener.close(), timeout=5)
        assert await asyncio.wait_for(reader.read(), timeout=2) == b""
    finally:
        writer.close()
        await asyncio.gather(writer.wait_closed(), return_exceptions=True)
