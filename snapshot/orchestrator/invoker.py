import logging
import time
from snapshot.adapters.process.base import ProcessRunner
from snapshot.orchestrator.contracts import CaptureResult, CaptureSuccess, CaptureFailure
from snapshot.orchestrator import errors

class FrameCaptureInvoker:
    def __init__(self, runner: ProcessRunner, ffmpeg_bin: str, stream_url: str, status_store):
        self.runner = runner
        self.ffmpeg_bin = ffmpeg_bin
        self.stream_url = stream_url
        self.status = status_store

    def build_args(self, image_codec: str) -> list[str]:
        return [
            self.ffmpeg_bin,
            "-rtsp_transport", "tcp",
            "-y",
            "-i", self.stream_url,
            "-frames:v", "1",
            "-f", "image2pipe",
            "-vcodec", image_codec,
            "pipe:1",
        ]

    async def capture(self, timeout_ms: int, image_codec: str) -> CaptureResult:
        args = self.build_args(image_codec)
        t0 = time.time()
        self.status.log(f"capture start codec={image_codec} timeout={timeout_ms}ms")

        out = await self.runner.run(args, timeout_ms)
        dt = int((time.time() - t0) * 1000)

        # the runner settles exactly one of these; check spawn and deadline first
        if out.spawn_error is not None:
            result = CaptureFailure(reason=errors.ERR_PROCESS, message=out.spawn_error)
        elif out.timed_out:
            result = CaptureFailure(reason=errors.ERR_TIMEOUT, message=f"Timeout after {timeout_ms} ms")
        elif out.exit_code == 0:
            result = CaptureSuccess(data=out.stdout)
        else:
            stderr = out.stderr.decode("utf-8", errors="replace")
            result = CaptureFailure(
                reason=errors.ERR_NON_ZERO_EXIT,
                message=f"ffmpeg exited with code {out.exit_code}: {stderr}",
                exit_code=out.exit_code,
                stderr=stderr,
            )

        if result.ok:
            self.status.log(f"capture done bytes={len(result.data)} dt={dt}ms")
        else:
            self.status.log(f"capture failed reason={result.reason} dt={dt}ms", logging.WARNING)
        return result
