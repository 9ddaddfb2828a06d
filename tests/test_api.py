import asyncio
import os
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.modules.ocr.api import run_until_disconnected
from app.modules.ocr.exceptions import ClientDisconnectedError, PipelineError
from app.modules.ocr.providers.ocr_pipeline import run_command
from tests.helpers import write_script


def _request(is_disconnected) -> MagicMock:
    request = MagicMock()
    request.method = "POST"
    request.url.path = "/ocr-pdf"
    request.is_disconnected = AsyncMock(side_effect=is_disconnected)
    return request


async def _finish_with(value):
    await asyncio.sleep(0.01)
    return value


async def _fail():
    raise PipelineError("ocrmypdf failed")


@pytest.mark.asyncio
async def test_returns_result_while_client_stays_connected():
    request = _request(lambda: False)

    result = await run_until_disconnected(request, _finish_with("text"), poll_interval=0.5)

    assert result == "text"


@pytest.mark.asyncio
async def test_work_errors_propagate():
    request = _request(lambda: False)

    with pytest.raises(PipelineError, match="ocrmypdf failed"):
        await run_until_disconnected(request, _fail(), poll_interval=0.5)


@pytest.mark.asyncio
async def test_disconnect_kills_running_tool(tmp_path):
    pid_file = tmp_path / "pid"
    script = write_script(tmp_path / "hang", f'echo $$ > "{pid_file}"\nexec sleep 10\n')
    request = _request(lambda: pid_file.exists() and bool(pid_file.read_text().strip()))

    loop = asyncio.get_running_loop()
    started = loop.time()
    with pytest.raises(ClientDisconnectedError):
        await run_until_disconnected(request, run_command([script], 30, "hang"), poll_interval=0.05)

    assert loop.time() - started < 5
    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)


@pytest.mark.asyncio
async def test_outer_cancellation_also_cancels_work(tmp_path):
    pid_file = tmp_path / "pid"
    script = write_script(tmp_path / "hang", f'echo $$ > "{pid_file}"\nexec sleep 10\n')
    request = _request(lambda: False)

    task = asyncio.create_task(
        run_until_disconnected(request, run_command([script], 30, "hang"), poll_interval=0.05)
    )
    for _ in range(50):
        if pid_file.exists() and pid_file.read_text().strip():
            break
        await asyncio.sleep(0.05)
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task

    pid = int(pid_file.read_text())
    with pytest.raises(ProcessLookupError):
        os.kill(pid, 0)
