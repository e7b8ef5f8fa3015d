"""
Asyncio subprocess runner.

Spawns the capture executable with stdin closed and stdout/stderr piped,
drains both pipes while waiting for exit, and races that against a deadline
timer. Whichever of (deadline, exit) comes first settles the run; the other
one is dropped. The child is always reaped before run() returns, including
when the awaiting coroutine is cancelled.
"""

import asyncio
import logging
from typing import Sequence

from snapshot.adapters.process.base import ProcessRunner, RunOutcome

_CHUNK_SIZE = 64 * 1024
# longest deadline handed to the event loop (one day)
MAX_DEADLINE_MS = 24 * 60 * 60 * 1000


class _Settlement:
    """One-shot outcome holder: only the first settle() is applied."""

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self.future = loop.create_future()
        self.settled = False

    def settle(self, outcome: RunOutcome) -> bool:
        if self.settled:
            return False
        self.settled = True
        # the waiter may already be gone (cancelled request)
        if not self.future.done():
            self.future.set_result(outcome)
        return True


async def _drain(stream: asyncio.StreamReader, buf: bytearray):
    while True:
        chunk = await stream.read(_CHUNK_SIZE)
        if not chunk:
            return
        buf.extend(chunk)


class SubprocessRunner(ProcessRunner):
    def __init__(self, status_store=None):
        self.status = status_store

    async def run(self, args: Sequence[str], timeout_ms: int) -> RunOutcome:
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            # ValueError: an argument with an embedded NUL byte
            self._log(f"subprocess: spawn failed for {args[0]}: {e}", logging.WARNING)
            return RunOutcome(spawn_error=str(e))

        loop = asyncio.get_running_loop()
        result = _Settlement(loop)
        stdout = bytearray()
        stderr = bytearray()
        timer = None
        watcher = None

        def on_deadline():
            if result.settle(RunOutcome(timed_out=True, stdout=bytes(stdout), stderr=bytes(stderr))):
                self._log(f"subprocess: pid={proc.pid} exceeded {timeout_ms} ms, killing", logging.WARNING)
                self._kill(proc)

        async def watch_exit():
            await asyncio.gather(_drain(proc.stdout, stdout), _drain(proc.stderr, stderr))
            code = await proc.wait()
            if timer is not None:
                timer.cancel()
            result.settle(RunOutcome(exit_code=code, stdout=bytes(stdout), stderr=bytes(stderr)))

        try:
            # timeout_ms has no upper bound; clamp before it becomes a float
            timer = loop.call_later(min(timeout_ms, MAX_DEADLINE_MS) / 1000, on_deadline)
            watcher = asyncio.ensure_future(watch_exit())
            return await result.future
        finally:
            if timer is not None:
                timer.cancel()
            if proc.returncode is None:
                self._kill(proc)
            # reap: pipes close once the child is gone, so this returns promptly
            if watcher is not None:
                await watcher
            else:
                await proc.wait()

    def _kill(self, proc: asyncio.subprocess.Process):
        try:
            proc.kill()  # SIGKILL on POSIX
        except ProcessLookupError:
            pass  # exited between the check and the signal

    def _log(self, msg: str, level: int = logging.INFO):
        if self.status is not None:
            self.status.log(msg, level)
