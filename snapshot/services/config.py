"""
Process configuration, read once at startup.

Values come from the environment; a .env file (SNAPSHOT_ENV_FILE, default
".env") is loaded first without overriding variables that are already set.
RTSP_URL is mandatory.
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from dotenv import load_dotenv

from snapshot.orchestrator.contracts import DEFAULT_TIMEOUT_MS


class ConfigError(Exception):
    pass


@dataclass
class Settings:
    rtsp_url: str
    port: int = 8080
    host: str = "0.0.0.0"
    ffmpeg_bin: str = "ffmpeg"
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS
    max_timeout_ms: Optional[int] = None          # None: no upper bound on timeout_ms
    max_concurrent_captures: Optional[int] = None  # None: no admission limit
    runner: str = "subprocess"                     # subprocess | mock


def _int(env: Mapping[str, str], name: str, default: Optional[int]) -> Optional[int]:
    raw = env.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"Environment variable {name} must be an integer, got {raw!r}.")
    if value <= 0:
        raise ConfigError(f"Environment variable {name} must be positive, got {value}.")
    return value


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    if env is None:
        load_dotenv(dotenv_path=os.getenv("SNAPSHOT_ENV_FILE", ".env"), override=False)
        env = os.environ

    rtsp_url = env.get("RTSP_URL", "").strip()
    if not rtsp_url:
        raise ConfigError("Environment variable RTSP_URL must be set.")

    runner = env.get("CAPTURE_RUNNER", "subprocess").strip().lower() or "subprocess"
    if runner not in ("subprocess", "mock"):
        raise ConfigError(f"CAPTURE_RUNNER must be 'subprocess' or 'mock', got {runner!r}.")

    return Settings(
        rtsp_url=rtsp_url,
        port=_int(env, "PORT", 8080),
        host=env.get("HOST", "").strip() or "0.0.0.0",
        ffmpeg_bin=env.get("FFMPEG_BIN", "").strip() or "ffmpeg",
        default_timeout_ms=_int(env, "SNAPSHOT_DEFAULT_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        max_timeout_ms=_int(env, "SNAPSHOT_MAX_TIMEOUT_MS", None),
        max_concurrent_captures=_int(env, "SNAPSHOT_MAX_CONCURRENT", None),
        runner=runner,
    )
