"""
Catalog document store backed by a single JSON file.

Guarantees:
- a reader sees either the last completed save or the seeded default,
  never a partially written file (write temp file, fsync, os.replace,
  fsync the directory)
- saves are serialized by one writer lock; loads take no lock
- an unparseable document is reported as CorruptStore, never re-seeded

The store does not merge: the last save wins. Callers that need
read-modify-write must coordinate around load()/save() themselves
(see `catalog/service.py`).
"""

from __future__ import annotations

import json
import logging
import os
import stat
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable

from core.errors import CorruptStore, SaveFailed, StoreUnavailable

from .defaults import default_catalog

logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_MODE = 0o644


def _fsync_directory(directory: Path) -> None:
    """
    Persist the rename itself. Platforms without O_DIRECTORY (Windows) skip it.
    """
    flags = getattr(os, "O_DIRECTORY", None)
    if flags is None:
        return
    dir_fd = os.open(directory, os.O_RDONLY | flags)
    try:
        os.fsync(dir_fd)
    finally:
        os.close(dir_fd)


class DocumentStore:
    def __init__(
        self,
        path: Path | str,
        *,
        seed: Callable[[], dict[str, Any]] = default_catalog,
    ) -> None:
        self._path = Path(path)
        self._seed = seed
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def open(self) -> None:
        """
        Create the storage directory. Called once at startup; fails fast.
        """
        directory = self._path.parent
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StoreUnavailable(f"Cannot create storage directory {directory}: {exc}") from exc

        if not directory.is_dir():
            raise StoreUnavailable(f"Storage path {directory} is not a directory.")

    def load(self) -> dict[str, Any]:
        catalog = self._read()
        if catalog is not None:
            return catalog

        with self._write_lock:
            # Another caller may have seeded (or saved) while we waited.
            catalog = self._read()
            if catalog is not None:
                return catalog

            catalog = self._seed()
            self._write(catalog)
            logger.info("catalog_seeded path=%s", self._path)
            return catalog

    def save(self, catalog: dict[str, Any]) -> None:
        with self._write_lock:
            self._write(catalog)

    def _read(self) -> dict[str, Any] | None:
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as exc:
            raise StoreUnavailable(f"Cannot read catalog {self._path}: {exc}") from exc

        try:
            data = json.loads(raw.decode("utf-8"))
        except ValueError as exc:
            # Covers both JSONDecodeError and UnicodeDecodeError.
            raise CorruptStore(f"Catalog {self._path} is not valid JSON: {exc}") from exc

        if not isinstance(data, dict):
            raise CorruptStore(f"Catalog {self._path} is not a JSON object.")
        return data

    def _document_mode(self) -> int:
        try:
            return stat.S_IMODE(self._path.stat().st_mode)
        except FileNotFoundError:
            return DEFAULT_DOCUMENT_MODE

    def _write(self, catalog: dict[str, Any]) -> None:
        if not isinstance(catalog, dict):
            raise SaveFailed("Catalog must be a JSON object.")

        try:
            payload = json.dumps(catalog, ensure_ascii=False, indent=2).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise SaveFailed(f"Catalog is not JSON serializable: {exc}") from exc

        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
        except FileNotFoundError as exc:
            raise StoreUnavailable(f"Storage directory {self._path.parent} does not exist.") from exc
        except OSError as exc:
            raise SaveFailed(f"Cannot create temporary file for {self._path}: {exc}") from exc

        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                # mkstemp creates 0600; keep the document mode as before.
                os.chmod(tmp_path, self._document_mode())
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
            _fsync_directory(self._path.parent)
        except OSError as exc:
            tmp_path.unlink(missing_ok=True)
            logger.warning("catalog_save_failed path=%s error=%s", self._path, exc)
            raise SaveFailed(f"Failed to write catalog {self._path}: {exc}") from exc

        logger.debug("catalog_saved path=%s bytes=%s", self._path, len(payload))
