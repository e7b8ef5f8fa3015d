import base64
import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.datastructures import QueryParams
from starlette.exceptions import HTTPException as StarletteHTTPException

from snapshot.services.config import ConfigError, Settings, load_settings
from snapshot.services.models import (
    SnapshotResponse, ErrorResponse,
    NOT_FOUND, METHOD_NOT_ALLOWED, BAD_TIMEOUT, TOO_MANY_CAPTURES,
)
from snapshot.services.status_store import StatusStore
from snapshot.orchestrator.contracts import (
    CaptureRequest, DEFAULT_CODEC, image_format, media_type,
)
from snapshot.orchestrator.invoker import FrameCaptureInvoker
from snapshot.orchestrator import errors
from snapshot.adapters.process.base import ProcessRunner
from snapshot.adapters.process.mock_runner import MockRunner
from snapshot.adapters.process.subprocess_runner import SubprocessRunner

NO_STORE = {"Cache-Control": "no-store"}


class InvalidQuery(ValueError):
    pass


def _first(params: QueryParams, name: str) -> str:
    # repeated keys: the first occurrence wins
    values = params.getlist(name)
    return values[0] if values else ""


def parse_capture_request(params: QueryParams, settings: Settings) -> CaptureRequest:
    """Query string -> CaptureRequest. Empty values fall back to defaults."""
    response = _first(params, "response") or "base64"
    codec = _first(params, "codec") or DEFAULT_CODEC

    raw_timeout = _first(params, "timeout_ms").strip()
    if not raw_timeout:
        timeout_ms = settings.default_timeout_ms
    else:
        try:
            timeout_ms = int(raw_timeout)
        except ValueError:
            raise InvalidQuery(BAD_TIMEOUT)
        if timeout_ms <= 0:
            raise InvalidQuery(BAD_TIMEOUT)
    if settings.max_timeout_ms is not None and timeout_ms > settings.max_timeout_ms:
        raise InvalidQuery(f"timeout_ms must not exceed {settings.max_timeout_ms}")

    return CaptureRequest(
        timeout_ms=timeout_ms,
        image_codec=codec,
        response_format="binary" if response == "binary" else "base64",
    )


def build_runner(settings: Settings, status: StatusStore) -> ProcessRunner:
    if settings.runner == "mock":
        return MockRunner(status)
    return SubprocessRunner(status)


def _error(status_code: int, message: str, headers: Optional[dict] = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump(), headers=headers)


def create_app(settings: Settings, runner: Optional[ProcessRunner] = None,
               status: Optional[StatusStore] = None) -> FastAPI:
    status = status or StatusStore()
    runner = runner or build_runner(settings, status)
    invoker = FrameCaptureInvoker(runner, settings.ffmpeg_bin, settings.rtsp_url, status)

    # only "/" and "/snapshot" exist: no docs routes, no slash redirects
    app = FastAPI(title="rtsp-snapshot", docs_url=None, redoc_url=None, openapi_url=None)
    app.router.redirect_slashes = False
    app.state.settings = settings
    app.state.status = status
    app.state.invoker = invoker

    @app.middleware("http")
    async def only_get(request: Request, call_next):
        # method is checked before routing, so POST /anything is a 405
        if request.method != "GET":
            status.log(f"REJECT {request.method} {request.url.path}")
            return _error(405, METHOD_NOT_ALLOWED, headers={"Allow": "GET"})
        return await call_next(request)

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            return _error(404, NOT_FOUND)
        return _error(exc.status_code, str(exc.detail))

    @app.get("/", response_model=SnapshotResponse)
    @app.get("/snapshot", response_model=SnapshotResponse)
    async def snapshot(request: Request):
        try:
            req = parse_capture_request(request.query_params, settings)
        except InvalidQuery as e:
            status.log(f"SNAPSHOT {errors.ERR_BAD_REQUEST}: {e}", logging.WARNING)
            return _error(400, str(e))

        limit = settings.max_concurrent_captures
        if limit is not None and status.in_flight >= limit:
            status.log(f"SNAPSHOT {errors.ERR_BUSY}: {status.in_flight} captures in flight", logging.WARNING)
            return _error(503, TOO_MANY_CAPTURES)

        status.begin_capture()
        result = None
        try:
            result = await invoker.capture(req.timeout_ms, req.image_codec)
        finally:
            status.end_capture(result)

        if not result.ok:
            status.log(f"SNAPSHOT {result.reason}: {result.message}", logging.ERROR)
            return _error(500, result.message)

        if req.response_format == "binary":
            # Content-Length is filled in from the body
            return Response(content=result.data, media_type=media_type(req.image_codec), headers=NO_STORE)

        body = SnapshotResponse(
            format=image_format(req.image_codec),
            size=len(result.data),
            data=base64.b64encode(result.data).decode("ascii"),
        )
        return JSONResponse(content=body.model_dump(), headers=NO_STORE)

    return app


def main():
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    try:
        settings = load_settings()
    except ConfigError as e:
        print(e, file=sys.stderr)
        sys.exit(1)

    app = create_app(settings)
    app.state.status.log(
        f"snapshot server listening on {settings.host}:{settings.port} "
        f"(runner={settings.runner}, ffmpeg={settings.ffmpeg_bin})"
    )
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
