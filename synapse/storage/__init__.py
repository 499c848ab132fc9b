"""Durable blob stores."""

from .base import BlobStore
from .file import FileBlobStore
from .memory import MemoryBlobStore

__all__ = ["BlobStore", "FileBlobStore", "MemoryBlobStore"]
