import asyncio
import pathlib
import sys

import pytest

SYS_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_PATH = SYS_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from scan_checkin.core.errors import ServiceError, SubmissionTimeout, TransportError
from scan_checkin.core.guard import with_network_error_guard, with_timeout


async def _value(value, delay=0.0):
    await asyncio.sleep(delay)
    return value


async def _fail(exc):
    await asyncio.sleep(0)
    raise exc


@pytest.mark.asyncio
async def test_with_timeout_returns_result_when_in_time():
    assert await with_timeout(1000, _value("ack")) == "ack"


@pytest.mark.asyncio
async def test_with_timeout_passes_failures_through_unchanged():
    error = ValueError("bad payload")
    with pytest.raises(ValueError) as info:
        await with_timeout(1000)(_fail(error))
    assert info.value is error


@pytest.mark.asyncio
async def test_with_timeout_fires_on_a_call_that_never_settles():
    loop = asyncio.get_running_loop()
    never = loop.create_future()
    started = loop.time()

    with pytest.raises(SubmissionTimeout) as info:
        await with_timeout(100, never)

    elapsed = loop.time() - started
    assert str(info.value) == "Timeout"
    assert 0.09 <= elapsed < 0.6
    assert not never.cancelled()
    never.cancel()


@pytest.mark.asyncio
async def test_timed_out_call_keeps_running_and_its_reply_is_dropped():
    finished = []

    async def slow_call():
        await asyncio.sleep(0.05)
        finished.append(True)
        return {"ok": True}

    with pytest.raises(SubmissionTimeout):
        await with_timeout(10, slow_call())

    await asyncio.sleep(0.1)
    assert finished == [True]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "error",
    [TransportError(), SubmissionTimeout(), RuntimeError("Network request failed")],
)
async def test_guard_converts_retryable_failures(error):
    seen = []

    def recover(exc):
        seen.append(exc)
        return "retry"

    assert await with_network_error_guard(recover, _fail(error)) == "retry"
    assert seen == [error]


@pytest.mark.asyncio
@pytest.mark.parametrize("error", [ValueError("boom"), ServiceError("HTTP 500", status=500)])
async def test_guard_lets_other_failures_propagate(error):
    with pytest.raises(type(error)):
        await with_network_error_guard(lambda exc: "retry", _fail(error))


@pytest.mark.asyncio
async def test_guard_returns_successful_result_untouched():
    reply = {"ok": True, "message": "hi"}
    assert await with_network_error_guard(lambda exc: "retry")(_value(reply)) is reply


@pytest.mark.asyncio
async def test_timeout_inside_guard_is_treated_as_network_failure():
    never = asyncio.get_running_loop().create_future()
    result = await with_network_error_guard(lambda exc: "retry", with_timeout(20, never))
    assert result == "retry"
    never.cancel()
