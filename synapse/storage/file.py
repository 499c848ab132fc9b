"""
File-backed blob store.

Each key maps to one file in a directory. Writes go to a temporary file in
the same directory and are moved into place, so a crash mid-write never
leaves a truncated blob behind.
"""

import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from ..exceptions import StorageError
from .base import BlobStore


class FileBlobStore(BlobStore):
    """
    Stores each blob as `<directory>/<key>.bin`.
    """

    def __init__(self, directory: str):
        """
        Initialize the store.

        Args:
            directory: Directory holding the blob files; created on first write
        """
        self.directory = Path(directory)

    def _path_for(self, key: str) -> Path:
        safe_key = re.sub(r"[^A-Za-z0-9_.-]", "_", key)
        return self.directory / f"{safe_key}.bin"

    def get(self, key: str) -> Optional[bytes]:
        path = self._path_for(key)
        if not path.exists():
            return None
        try:
            return path.read_bytes()
        except OSError as e:
            raise StorageError(f"Failed to read blob {key}: {e}", operation="get", key=key) from e

    def put(self, key: str, data: bytes) -> None:
        path = self._path_for(key)
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(dir=self.directory, prefix=f".{path.name}.")
            try:
                with os.fdopen(fd, "wb") as f:
                    f.write(data)
                    f.flush()
                    os.fsync(f.fileno())
                os.replace(tmp_name, path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as e:
            raise StorageError(f"Failed to write blob {key}: {e}", operation="put", key=key) from e

        logging.info(f"Wrote {len(data)} bytes to {path}")
