import asyncio

import pytest

from subweave.exceptions import OperationCancelledError, OperationTimeoutError
from subweave.utils.subprocess import run_subprocess


@pytest.mark.asyncio
async def test_run_subprocess_executes_command() -> None:
    result = await run_subprocess(["bash", "-lc", "echo -n hi"])
    assert result.returncode == 0
    assert result.stdout == b"hi"


@pytest.mark.asyncio
async def test_run_subprocess_timeout_kills_child() -> None:
    with pytest.raises(OperationTimeoutError):
        await run_subprocess(["sleep", "5"], timeout_s=0.1)


@pytest.mark.asyncio
async def test_run_subprocess_cancel_event() -> None:
    cancel = asyncio.Event()
    asyncio.get_running_loop().call_later(0.05, cancel.set)

    with pytest.raises(OperationCancelledError):
        await run_subprocess(["sleep", "5"], cancel_event=cancel)
