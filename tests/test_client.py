import asyncio
import pathlib
import sys

import aiohttp
import pytest
from aiohttp import web
from aiohttp import test_utils

SYS_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = SYS_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from scan_checkin.client import RecordingServiceClient
from scan_checkin.core.checkin import CheckInPipeline
from scan_checkin.core.errors import ServiceError, SubmissionTimeout, TransportError
from scan_checkin.core.queue import MemoryStorage, PendingQueue
from scan_checkin.core.records import CheckInRecord
from scan_checkin.core.reporter import Severity
from scan_checkin.utils.notifier import RecordingNotifier


async def _serve(handler):
    app = web.Application()
    app.router.add_route("*", "/exec", handler)
    server = test_utils.TestServer(app)
    await server.start_server()
    return server


@pytest.mark.asyncio
async def test_post_record_sends_json_body_and_query_params():
    seen = {}

    async def handler(request):
        seen["method"] = request.method
        seen["content_type"] = request.content_type
        seen["query"] = dict(request.query)
        seen["body"] = await request.text()
        return web.json_response({"ok": True, "message": "Checked out"})

    server = await _serve(handler)
    try:
        async with RecordingServiceClient(str(server.make_url("/exec"))) as client:
            reply = await client.post_record(CheckInRecord(name="Ada Lovelace", id="17"), {"action": "uncheck"})
    finally:
        await server.close()

    assert reply == {"ok": True, "message": "Checked out"}
    assert seen["method"] == "POST"
    assert seen["content_type"] == "text/plain"
    assert seen["query"] == {"action": "uncheck"}
    assert seen["body"] == '{"name": "Ada Lovelace", "id": "17"}'


@pytest.mark.asyncio
async def test_list_names_uses_get():
    async def handler(request):
        assert request.method == "GET"
        return web.json_response(["Ada Lovelace", "Grace Hopper"])

    server = await _serve(handler)
    try:
        async with RecordingServiceClient(str(server.make_url("/exec"))) as client:
            names = await client.list_names()
    finally:
        await server.close()

    assert names == ["Ada Lovelace", "Grace Hopper"]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status,body,error",
    [
        (503, "busy", TransportError),
        (500, "boom", ServiceError),
        (200, "<html>not json</html>", ServiceError),
    ],
)
async def test_bad_replies_are_classified(status, body, error):
    async def handler(request):
        return web.Response(status=status, text=body)

    server = await _serve(handler)
    try:
        async with RecordingServiceClient(str(server.make_url("/exec"))) as client:
            with pytest.raises(error):
                await client.post_record(CheckInRecord(name="Ada"))
    finally:
        await server.close()


@pytest.mark.asyncio
async def test_unreachable_service_is_a_transport_error():
    async def handler(request):
        return web.json_response({"ok": True})

    server = await _serve(handler)
    url = str(server.make_url("/exec"))
    await server.close()

    async with RecordingServiceClient(url) as client:
        with pytest.raises(TransportError) as info:
            await client.post_record(CheckInRecord(name="Ada"))
    assert str(info.value) == "Network request failed"


@pytest.mark.asyncio
async def test_pipeline_against_live_server_drops_delivered_record():
    async def handler(request):
        payload = await request.json()
        return web.json_response({"ok": True, "message": f"Welcome, {payload['name']}"})

    notifier = RecordingNotifier()
    queue = PendingQueue(MemoryStorage())
    server = await _serve(handler)
    try:
        async with RecordingServiceClient(str(server.make_url("/exec"))) as client:
            pipeline = CheckInPipeline(client.post_record, notifier, timeout_ms=5000)
            await pipeline.check_in_and_save(CheckInRecord(name="Ada"), queue)
    finally:
        await server.close()

    assert queue.get() == []
    assert [(n.message, n.severity) for n in notifier.notices] == [("Welcome, Ada", Severity.SUCCESS)]


def test_client_requires_url():
    with pytest.raises(ValueError):
        RecordingServiceClient("")


class _BrokenResponse:
    status = 200

    def __init__(self, exc):
        self.exc = exc

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    async def text(self):
        raise self.exc


class _BrokenSession:
    def __init__(self, exc):
        self.exc = exc

    def request(self, *args, **kwargs):
        return _BrokenResponse(self.exc)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "raised,error,message",
    [
        (aiohttp.ClientPayloadError("Response payload is not completed"), TransportError, "Network request failed"),
        (asyncio.TimeoutError(), SubmissionTimeout, "Timeout"),
        (aiohttp.ClientError("odd failure"), ServiceError, "Request to the service failed: odd failure"),
    ],
)
async def test_aiohttp_failures_become_check_in_errors(raised, error, message):
    client = RecordingServiceClient("http://records.invalid/exec", session=_BrokenSession(raised))

    with pytest.raises(error) as info:
        await client.post_record(CheckInRecord(name="Ada"))

    assert str(info.value) == message
