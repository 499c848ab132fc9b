"""
In-memory blob store for testing Synapse.

Keeps blobs in a dictionary and can be told to fail reads or writes, so the
persistence engine's failure paths can be exercised without a real disk.
"""

from typing import Dict, Optional

from ..exceptions import StorageError
from .base import BlobStore


class MemoryBlobStore(BlobStore):
    """
    Dictionary-backed store with failure injection.
    """

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.fail_puts = False
        self.fail_gets = False
        self.put_count = 0

    def get(self, key: str) -> Optional[bytes]:
        if self.fail_gets:
            raise StorageError(f"Simulated read failure for {key}", operation="get", key=key)
        return self.blobs.get(key)

    def put(self, key: str, data: bytes) -> None:
        if self.fail_puts:
            raise StorageError(f"Simulated write failure for {key}", operation="put", key=key)
        self.blobs[key] = bytes(data)
        self.put_count += 1
