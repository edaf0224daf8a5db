"""
Upload storage on the local filesystem.

Accepted files are written to one directory under names of the form
`<unix-ms>-<16 hex chars>[.ext]`. The original filename is only kept as
display metadata; it never becomes part of a path.

Failure rules:
- over the size cap -> TooLarge, nothing (or nothing more) written
- I/O error while streaming -> UploadFailed, partial file removed
- anything else mid-stream (e.g. cancellation) -> partial file removed, error re-raised
"""

from __future__ import annotations

import logging
import os
import re
import secrets
import time
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from core.config import DEFAULT_MAX_UPLOAD_BYTES, DEFAULT_UPLOAD_URL_PREFIX
from core.errors import InvalidPath, NotFound, StoreUnavailable, TooLarge, UploadFailed

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1024 * 1024  # 1 MiB
MAX_NAME_ATTEMPTS = 5

_SAFE_EXT_RE = re.compile(r"^\.[a-z0-9]{1,16}$")


@dataclass(frozen=True)
class UploadResult:
    filename: str
    url: str
    original_name: str
    size: int
    content_type: str | None


def safe_extension(original_name: str) -> str:
    """
    Return the lower-cased suffix of `original_name` if it is plain
    alphanumeric, else "".
    """
    # Only the last path component counts: "a/b.exe/../x.png" -> ".png".
    base = re.split(r"[\\/]", original_name or "")[-1]
    ext = os.path.splitext(base)[1].lower()
    return ext if _SAFE_EXT_RE.match(ext) else ""


def generate_filename(original_name: str = "") -> str:
    timestamp = int(time.time() * 1000)
    return f"{timestamp}-{secrets.token_hex(8)}{safe_extension(original_name)}"


class UploadManager:
    def __init__(
        self,
        directory: Path | str,
        *,
        max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES,
        url_prefix: str = DEFAULT_UPLOAD_URL_PREFIX,
    ) -> None:
        if max_bytes <= 0:
            raise ValueError("max_bytes must be > 0.")
        self._directory = Path(directory)
        self._max_bytes = max_bytes
        self._url_prefix = url_prefix.rstrip("/")

    @property
    def directory(self) -> Path:
        return self._directory

    @property
    def max_bytes(self) -> int:
        return self._max_bytes

    def ensure_directory(self) -> None:
        """
        Idempotent; safe when several uploads create the directory at once.
        """
        try:
            self._directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(f"Cannot create upload directory {self._directory}: {exc}") from exc

    def url_for(self, filename: str) -> str:
        return f"{self._url_prefix}/{filename}"

    def accept(
        self,
        stream: BinaryIO,
        *,
        filename: str,
        declared_size: int | None = None,
        content_type: str | None = None,
    ) -> UploadResult:
        """
        Stream `stream` into a new uniquely named file and return its metadata.
        """
        if declared_size is not None and declared_size > self._max_bytes:
            raise TooLarge(self._max_bytes)

        self.ensure_directory()
        assigned, handle = self._create_destination(filename)
        destination = self._directory / assigned

        try:
            with handle:
                size = self._copy(stream, handle)
        except BaseException as exc:
            destination.unlink(missing_ok=True)
            if isinstance(exc, OSError):
                logger.warning("upload_failed filename=%s error=%s", assigned, exc)
                raise UploadFailed(f"Failed to store upload: {exc}") from exc
            raise

        logger.info(
            "upload_accepted filename=%s size=%s content_type=%s",
            assigned,
            size,
            content_type,
        )
        return UploadResult(
            filename=assigned,
            url=self.url_for(assigned),
            original_name=filename or "",
            size=size,
            content_type=content_type,
        )

    def _create_destination(self, original_name: str) -> tuple[str, BinaryIO]:
        # Exclusive create: a name clash (same ms, same random bits) retries.
        for _ in range(MAX_NAME_ATTEMPTS):
            candidate = generate_filename(original_name)
            try:
                return candidate, open(self._directory / candidate, "xb")
            except FileExistsError:
                logger.warning("upload_name_collision filename=%s", candidate)
                continue
            except OSError as exc:
                raise UploadFailed(f"Cannot create upload file: {exc}") from exc
        raise UploadFailed("Could not allocate a unique upload filename.")

    def _copy(self, stream: BinaryIO, handle: BinaryIO) -> int:
        written = 0
        while True:
            chunk = stream.read(CHUNK_SIZE)
            if not chunk:
                break
            if written + len(chunk) > self._max_bytes:
                raise TooLarge(self._max_bytes)
            handle.write(chunk)
            written += len(chunk)
        return written

    def retrieve(self, filename: str) -> Path:
        """
        Resolve an assigned filename to the stored file.

        The name is validated before any filesystem access.
        """
        name = filename or ""
        if (
            not name
            or name in {".", ".."}
            or "/" in name
            or "\\" in name
            or "\x00" in name
            or os.path.isabs(name)
        ):
            raise InvalidPath(f"Invalid upload filename: {filename!r}")

        path = self._directory / name
        if path.resolve().parent != self._directory.resolve():
            raise InvalidPath(f"Invalid upload filename: {filename!r}")

        if not path.is_file():
            raise NotFound(f"Upload '{name}' not found.")
        return path
