"""
Error types for Synapse.

Document operations are total and never raise. Storage failures and caller
misuse at the workspace boundary are reported with the classes below.
"""

from typing import Optional


class SynapseError(Exception):
    """Base class for all Synapse errors."""


class StorageError(SynapseError):
    """
    A durable read or write failed.

    Storage errors are never fatal to a running session: in-memory state is
    kept and the next save attempt retries.
    """

    def __init__(self, message: str, operation: Optional[str] = None, key: Optional[str] = None):
        super().__init__(message)
        self.operation = operation
        self.key = key


class ValidationError(SynapseError):
    """A requested mutation refers to something that does not exist."""
