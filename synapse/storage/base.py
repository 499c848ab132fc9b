"""
Blob store interface for Synapse.

The persistence engine only needs a key-addressed binary store. Every
backend implements this interface.
"""

from abc import ABC, abstractmethod
from typing import Optional


class BlobStore(ABC):
    """
    Abstract base class for durable blob stores.
    """

    @abstractmethod
    def get(self, key: str) -> Optional[bytes]:
        """
        Read the blob stored under a key.

        Args:
            key: The blob key

        Returns:
            The stored bytes, or None if nothing is stored under the key

        Raises:
            StorageError: If the store cannot be read
        """
        pass

    @abstractmethod
    def put(self, key: str, data: bytes) -> None:
        """
        Store a blob under a key, replacing any previous value.

        Args:
            key: The blob key
            data: The bytes to store

        Raises:
            StorageError: If the write fails
        """
        pass
