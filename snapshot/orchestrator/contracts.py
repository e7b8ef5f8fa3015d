from dataclasses import dataclass
from typing import Optional, Literal, Union

ResponseFormat = Literal["base64", "binary"]
ImageFormat = Literal["jpeg", "png"]

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_CODEC = "mjpeg"

@dataclass
class CaptureRequest:
    timeout_ms: int = DEFAULT_TIMEOUT_MS
    image_codec: str = DEFAULT_CODEC       # forwarded verbatim to -vcodec
    response_format: ResponseFormat = "base64"

@dataclass
class CaptureSuccess:
    data: bytes
    ok: bool = True

@dataclass
class CaptureFailure:
    reason: str                # one of orchestrator.errors
    message: str
    exit_code: Optional[int] = None
    stderr: str = ""
    ok: bool = False

CaptureResult = Union[CaptureSuccess, CaptureFailure]


def image_format(codec: str) -> ImageFormat:
    # anything that isn't png is served as jpeg
    return "png" if codec == "png" else "jpeg"


def media_type(codec: str) -> str:
    return f"image/{image_format(codec)}"
