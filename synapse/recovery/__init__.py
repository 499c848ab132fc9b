"""Soft deletion and undo."""

from .buffer import PendingDeletion, RecoveryBuffer
from .manager import DeletionImpact, DeletionManager, DeletionResult

__all__ = ["PendingDeletion", "RecoveryBuffer", "DeletionImpact", "DeletionManager", "DeletionResult"]
