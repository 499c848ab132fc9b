"""Data models for Synapse."""

from .document import (
    Block,
    BlockType,
    LinkKind,
    LinkMetadata,
    Page,
    ScheduleType,
    STRUCTURED_TYPES,
    TEXT_TYPES,
    new_id,
    now_ms,
)
from .metadata import BlockMetadata, CodeMetadata, TimerMetadata, LegacyMetadata, parse_metadata
from .tabular import (
    ChecklistItem,
    ColumnFilter,
    ColumnType,
    SortSpec,
    TabularColumn,
    TabularData,
    TabularView,
    ViewConfig,
)

__all__ = [
    "Block",
    "BlockType",
    "LinkKind",
    "LinkMetadata",
    "Page",
    "ScheduleType",
    "STRUCTURED_TYPES",
    "TEXT_TYPES",
    "new_id",
    "now_ms",
    "BlockMetadata",
    "CodeMetadata",
    "TimerMetadata",
    "LegacyMetadata",
    "parse_metadata",
    "ChecklistItem",
    "ColumnFilter",
    "ColumnType",
    "SortSpec",
    "TabularColumn",
    "TabularData",
    "TabularView",
    "ViewConfig",
]
