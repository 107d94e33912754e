"""Async-friendly subprocess helpers.

The child is driven by `Popen.communicate()` in a worker thread instead of
`asyncio.create_subprocess_exec()`, whose child watchers can hang on some
runtimes. Cancellation and timeouts kill the child.
"""

from __future__ import annotations

import asyncio
import subprocess
from dataclasses import dataclass
from typing import Sequence

from subweave.pipeline.concurrency import run_cancellable


@dataclass(frozen=True)
class RunResult:
    returncode: int
    stdout: bytes
    stderr: bytes


async def run_subprocess(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    check: bool = False,
    timeout_s: float | None = None,
    cwd: str | None = None,
    cancel_event: asyncio.Event | None = None,
) -> RunResult:
    proc = subprocess.Popen(
        list(args),
        stdout=subprocess.PIPE if capture_output else subprocess.DEVNULL,
        stderr=subprocess.PIPE if capture_output else subprocess.DEVNULL,
        cwd=cwd,
    )
    try:
        stdout, stderr = await run_cancellable(
            asyncio.to_thread(proc.communicate),
            cancel_event=cancel_event,
            timeout_s=timeout_s,
            stage="subprocess",
        )
    except BaseException:
        proc.kill()
        raise

    returncode = int(proc.returncode)
    if check and returncode != 0:
        raise subprocess.CalledProcessError(returncode, list(args), stdout, stderr)
    return RunResult(
        returncode=returncode,
        stdout=stdout or b"",
        stderr=stderr or b"",
    )
