"""
Application settings read from environment variables.

`Settings.from_env()` is called once when the app is created; the
resulting object is passed to the catalog store and upload manager so
neither hardcodes a directory.

Storage location:
- DATA_DIR wins when set
- otherwise PERSISTENT_DISK_PATH (mount point of a persistent disk deployment)
- otherwise ./data (ephemeral, relative to the working directory)
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from .errors import ConfigError

DEFAULT_DATA_DIR = "data"
DEFAULT_DATA_FILE = "data.json"
DEFAULT_MAX_UPLOAD_BYTES = 20 * 1024 * 1024  # 20 MiB
DEFAULT_UPLOAD_URL_PREFIX = "/uploads"
DEFAULT_PORT = 3000


def _env_str(env: Mapping[str, str], name: str, default: str = "") -> str:
    return (env.get(name) or "").strip() or default


def _env_positive_int(env: Mapping[str, str], name: str, default: int) -> int:
    raw = _env_str(env, name)
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError as exc:
        raise ConfigError(f"Invalid {name}. It must be an integer.") from exc
    if value <= 0:
        raise ConfigError(f"Invalid {name}. It must be > 0.")
    return value


@dataclass(frozen=True)
class Settings:
    data_dir: Path
    data_file: str = DEFAULT_DATA_FILE
    upload_dir: Path | None = None
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    upload_url_prefix: str = DEFAULT_UPLOAD_URL_PREFIX
    cors_origins: tuple[str, ...] = ("*",)
    log_level: str = "INFO"
    port: int = DEFAULT_PORT

    @property
    def catalog_path(self) -> Path:
        return self.data_dir / self.data_file

    @property
    def uploads_path(self) -> Path:
        return self.upload_dir if self.upload_dir is not None else self.data_dir / "uploads"

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "Settings":
        env = os.environ if env is None else env

        data_dir = _env_str(env, "DATA_DIR") or _env_str(env, "PERSISTENT_DISK_PATH") or DEFAULT_DATA_DIR
        upload_dir = _env_str(env, "UPLOAD_DIR")
        data_file = _env_str(env, "DATA_FILE", DEFAULT_DATA_FILE)
        if Path(data_file).name != data_file:
            raise ConfigError("Invalid DATA_FILE. It must be a plain file name.")

        origins = tuple(
            origin.strip()
            for origin in _env_str(env, "CORS_ORIGINS", "*").split(",")
            if origin.strip()
        )

        return cls(
            data_dir=Path(data_dir),
            data_file=data_file,
            upload_dir=Path(upload_dir) if upload_dir else None,
            max_upload_bytes=_env_positive_int(env, "MAX_UPLOAD_BYTES", DEFAULT_MAX_UPLOAD_BYTES),
            upload_url_prefix="/" + _env_str(env, "UPLOAD_URL_PREFIX", DEFAULT_UPLOAD_URL_PREFIX).strip("/"),
            cors_origins=origins or ("*",),
            log_level=_env_str(env, "LOG_LEVEL", "INFO").upper(),
            port=_env_positive_int(env, "PORT", DEFAULT_PORT),
        )
