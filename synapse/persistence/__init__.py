"""Workspace persistence."""

from .engine import PersistenceEngine
from .scheduler import DebouncedSaver

__all__ = ["PersistenceEngine", "DebouncedSaver"]
