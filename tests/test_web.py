"""Tests for the FastAPI integration."""

import asyncio
import contextlib
from datetime import datetime, timezone

import httpx
import pytest

from rangeserve.config import Settings
from rangeserve.core.model import ResolvedRange
from rangeserve.stream import stream_range
from rangeserve.web import RangeResponse, create_app

EXPIRES = "Fri, 01 Mar 2024 12:30:05 GMT"


def fixed_clock():
    return datetime(2024, 3, 1, 12, 30, 5, tzinfo=timezone.utc)


def pattern(size: int) -> bytes:
    return bytes(i % 251 for i in range(size))


class RecordingSource:
    """Async source over bytes that can fail after a number of reads."""

    def __init__(self, data: bytes, fail_after: int | None = None):
        self.data = data
        self.size = len(data)
        self.name = "recording"
        self.fail_after = fail_after
        self.pos = 0
        self.reads = 0
        self.closed = False

    async def seek(self, offset):
        self.pos = offset

    async def read(self, length):
        if self.fail_after is not None and self.reads >= self.fail_after:
            raise OSError("device vanished")
        self.reads += 1
        chunk = self.data[self.pos:self.pos + length]
        self.pos += len(chunk)
        return chunk

    async def close(self):
        self.closed = True


@pytest.fixture
def media_file(tmp_path):
    path = tmp_path / "clip.mp4"
    path.write_bytes(pattern(50000))
    return path


def make_client(**settings):
    app = create_app(Settings(**settings), clock=fixed_clock)
    return httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://test")


class TestRangeRoute:
    """Test the range route end to end."""

    @pytest.mark.asyncio
    async def test_partial_content(self, media_file):
        async with make_client(media_path=media_file) as client:
            response = await client.get("/getvideo", headers={"Range": "bytes=500-999"})

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 500-999/50000"
        assert response.headers["content-length"] == "500"
        assert response.headers["accept-ranges"] == "bytes"
        assert response.headers["content-type"] == "video/mp4"
        assert response.content == pattern(50000)[500:1000]

    @pytest.mark.asyncio
    async def test_whole_resource(self, media_file):
        async with make_client(media_path=media_file, server_name="test-server") as client:
            response = await client.get("/getvideo")

        assert response.status_code == 200
        assert response.headers["content-length"] == "50000"
        assert response.headers["content-range"] == "bytes 0-49999/50000"
        assert response.headers["server"] == "test-server"
        assert response.headers["expires"] == EXPIRES
        assert response.content == pattern(50000)

    @pytest.mark.asyncio
    async def test_suffix_range(self, media_file):
        async with make_client(media_path=media_file) as client:
            response = await client.get("/getvideo", headers={"Range": "bytes=-100"})

        assert response.status_code == 206
        assert response.headers["content-range"] == "bytes 49900-49999/50000"
        assert response.content == pattern(50000)[-100:]

    @pytest.mark.asyncio
    async def test_custom_route_and_type(self, media_file):
        async with make_client(media_path=media_file, route="/audio", media_type="audio/mpeg") as client:
            response = await client.get("/audio", headers={"Range": "bytes=0-0"})

        assert response.status_code == 206
        assert response.headers["content-type"] == "audio/mpeg"
        assert response.content == b"\x00"

    @pytest.mark.asyncio
    async def test_not_satisfiable(self, tmp_path):
        path = tmp_path / "small.bin"
        path.write_bytes(pattern(100))
        async with make_client(media_path=path) as client:
            response = await client.get("/getvideo", headers={"Range": "bytes=200-300"})

        assert response.status_code == 416
        assert response.headers["content-range"] == "bytes */100"
        assert response.json()["kind"] == "range_not_satisfiable"

    @pytest.mark.asyncio
    async def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.bin"
        path.write_bytes(b"")
        async with make_client(media_path=path) as client:
            response = await client.get("/getvideo")

        assert response.status_code == 416
        assert response.headers["content-range"] == "bytes */0"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["bytes=abc-", "items=0-1", "bytes=0-1,4-5"])
    async def test_malformed_header(self, media_file, header):
        async with make_client(media_path=media_file) as client:
            response = await client.get("/getvideo", headers={"Range": header})

        assert response.status_code == 400
        assert response.json()["kind"] == "malformed_header"

    @pytest.mark.asyncio
    async def test_missing_media(self, tmp_path):
        async with make_client(media_path=tmp_path / "gone.mp4") as client:
            response = await client.get("/getvideo")

        assert response.status_code == 404
        assert response.json()["kind"] == "resource_not_found"
        assert response.headers["server"] == "rangeserve"


class TestStaticFiles:
    """Test the static directory mount."""

    @pytest.mark.asyncio
    async def test_static_file_gets_ambient_headers(self, tmp_path, media_file):
        static = tmp_path / "public"
        static.mkdir()
        (static / "index.txt").write_text("hello")

        async with make_client(media_path=media_file, static_dir=static) as client:
            response = await client.get("/index.txt")
            video = await client.get("/getvideo", headers={"Range": "bytes=0-9"})

        assert response.status_code == 200
        assert response.text == "hello"
        assert response.headers["server"] == "rangeserve"
        assert response.headers["expires"] == EXPIRES
        assert video.status_code == 206


class TestRangeResponse:
    """Test stream ownership inside the ASGI response."""

    scope = {
        "type": "http",
        "asgi": {"version": "3.0", "spec_version": "2.4"},
        "http_version": "1.1",
        "method": "GET",
        "path": "/getvideo",
        "headers": [],
    }

    @pytest.mark.asyncio
    async def test_disconnect_releases_source(self):
        """Client goes away after the first chunk: no more reads, source closed."""
        source = RecordingSource(pattern(50000))
        meta, stream = await stream_range(source, ResolvedRange(0, 49999, 50000, partial=False), "video/mp4")
        response = RangeResponse(meta, stream)
        disconnected = asyncio.Event()

        async def receive():
            await disconnected.wait()
            return {"type": "http.disconnect"}

        async def send(message):
            if message["type"] == "http.response.body":
                disconnected.set()
                raise OSError("client went away")

        with contextlib.suppress(Exception):
            await asyncio.wait_for(response(self.scope, receive, send), timeout=5)

        assert source.closed
        assert source.reads == 1

    @pytest.mark.asyncio
    async def test_io_failure_aborts_body(self):
        """A read failure after headers must not end the body as if it were complete."""
        source = RecordingSource(pattern(50000), fail_after=1)
        meta, stream = await stream_range(source, ResolvedRange(0, 49999, 50000, partial=False), "video/mp4")
        response = RangeResponse(meta, stream)
        sent = []

        async def receive():
            await asyncio.Event().wait()

        async def send(message):
            sent.append(message)

        with pytest.raises(Exception):
            await response(self.scope, receive, send)

        assert source.closed
        assert sent[0]["type"] == "http.response.start"
        assert sent[0]["status"] == 200
        final = [m for m in sent if m["type"] == "http.response.body" and not m.get("more_body", False)]
        assert final == []
