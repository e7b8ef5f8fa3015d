"""Mock runner: plays back a scripted process result without spawning anything."""

import asyncio
import base64
from typing import Optional, Sequence

from snapshot.adapters.process.base import ProcessRunner, RunOutcome

# 1x1 PNG
PLACEHOLDER_PNG = base64.b64decode(
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
)
# SOI + JFIF APP0 + EOI; marks the stream as JPEG, not decodable
PLACEHOLDER_JPEG = (
    b"\xff\xd8"
    b"\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00"
    b"\xff\xd9"
)


def placeholder_frame(codec: str) -> bytes:
    return PLACEHOLDER_PNG if codec == "png" else PLACEHOLDER_JPEG


class MockRunner(ProcessRunner):
    """
    stdout=None serves a placeholder frame matching the -vcodec argument.
    delay_s longer than the run's timeout yields a timed-out outcome.
    """

    def __init__(self, status_store=None, stdout: Optional[bytes] = None, stderr: bytes = b"",
                 exit_code: int = 0, delay_s: float = 0.0, spawn_error: Optional[str] = None):
        self.status = status_store
        self.stdout = stdout
        self.stderr = stderr
        self.exit_code = exit_code
        self.delay_s = delay_s
        self.spawn_error = spawn_error
        self.calls: list[list[str]] = []
        self.timeouts: list[int] = []

    async def run(self, args: Sequence[str], timeout_ms: int) -> RunOutcome:
        self.calls.append(list(args))
        self.timeouts.append(timeout_ms)
        if self.spawn_error is not None:
            return RunOutcome(spawn_error=self.spawn_error)

        if self.delay_s * 1000 > timeout_ms:
            await asyncio.sleep(timeout_ms / 1000)
            self._log(f"mock_runner: timed out after {timeout_ms} ms")
            return RunOutcome(timed_out=True)

        await asyncio.sleep(self.delay_s)
        out = self.stdout if self.stdout is not None else placeholder_frame(_codec_arg(args))
        self._log(f"mock_runner: exit={self.exit_code} bytes={len(out)}")
        return RunOutcome(exit_code=self.exit_code, stdout=out, stderr=self.stderr)

    def _log(self, msg: str):
        if self.status is not None:
            self.status.log(msg)


def _codec_arg(args: Sequence[str]) -> str:
    args = list(args)
    if "-vcodec" in args:
        i = args.index("-vcodec")
        if i + 1 < len(args):
            return args[i + 1]
    return ""
