"""Relational working copy of the workspace."""

from .manager import DatabaseManager

__all__ = ["DatabaseManager"]
