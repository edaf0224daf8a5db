"""
Storage error taxonomy.

These errors are transport-agnostic: the catalog store and the upload
manager raise them, and `api/main.py` maps them to HTTP responses.
"""

from __future__ import annotations


class ConfigError(RuntimeError):
    pass


class StorageError(RuntimeError):
    pass


class StoreUnavailable(StorageError):
    """The storage directory cannot be created or accessed."""


class CorruptStore(StorageError):
    """The catalog document exists but cannot be parsed."""


class SaveFailed(StorageError):
    pass


class TooLarge(StorageError):
    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"File too large. Max is {max_bytes} bytes.")
        self.max_bytes = max_bytes


class UploadFailed(StorageError):
    pass


class InvalidPath(StorageError):
    pass


class NotFound(InvalidPath):
    pass


class ServiceNotFound(StorageError):
    pass


class SectionNotFound(StorageError):
    pass
