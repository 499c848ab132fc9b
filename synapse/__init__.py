"""
Synapse - Local-First Linked Workspace

A workspace of pages made of typed blocks, with cross-page links,
whole-workspace persistence to a durable blob, recoverable deletion and
tabular database blocks.
"""

__version__ = "0.1.0"
__author__ = "Synapse Project"

from .config import ConfigManager, get_config
from .exceptions import StorageError, SynapseError, ValidationError
from .models import Block, BlockType, LinkKind, LinkMetadata, Page
from .workspace import Workspace

__all__ = [
    "ConfigManager",
    "get_config",
    "StorageError",
    "SynapseError",
    "ValidationError",
    "Block",
    "BlockType",
    "LinkKind",
    "LinkMetadata",
    "Page",
    "Workspace",
]
