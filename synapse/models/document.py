"""
Document models for Synapse.

This module defines the Page, Block and LinkMetadata structures that make up
the workspace graph, plus the identifier and timestamp helpers every other
component uses.
"""

import random
import string
import time
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .metadata import BlockMetadata, parse_metadata


_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_id() -> str:
    """Return a fresh 9-character base-36 identifier."""
    return "".join(random.choices(_ID_ALPHABET, k=9))


def now_ms() -> int:
    """Return the current time in milliseconds since the epoch."""
    return int(time.time() * 1000)


class BlockType(str, Enum):
    """The closed set of block types."""

    TEXT = "text"
    HEADING = "heading"
    TODO = "todo"
    CODE = "code"
    DIVIDER = "divider"
    KANBAN = "kanban"
    DATABASE = "database"
    MINDMAP = "mindmap"
    PROJECT_OS = "project_os"
    CALLOUT = "callout"
    EMBED = "embed"
    QUOTE = "quote"
    TABLE = "table"
    IMAGE = "image"
    VIDEO = "video"
    AUDIO = "audio"
    CHECKBOX = "checkbox"
    DATE = "date"
    TIME = "time"
    MATH = "math"
    EMOJI = "emoji"
    TIMER = "timer"


# Block types whose content is plain editable text
TEXT_TYPES = frozenset({
    BlockType.TEXT,
    BlockType.HEADING,
    BlockType.TODO,
    BlockType.CALLOUT,
    BlockType.EMBED,
    BlockType.QUOTE,
    BlockType.CHECKBOX,
    BlockType.MATH,
    BlockType.DATE,
    BlockType.TIME,
    BlockType.EMOJI,
})

# Block types whose content is a serialized payload owned by its renderer
STRUCTURED_TYPES = frozenset({
    BlockType.KANBAN,
    BlockType.DATABASE,
    BlockType.MINDMAP,
    BlockType.PROJECT_OS,
})


class ScheduleType(str, Enum):
    TODAY = "today"
    WEEK = "week"
    SOMEDAY = "someday"


class LinkKind(str, Enum):
    """How a linked block follows its target."""

    LIVE = "live"
    SNAPSHOT = "snapshot"


class LinkMetadata(BaseModel):
    """
    Marks a block as representing content from another page.

    A live link always reflects the target's current state. A snapshot link
    captured the target's content once and is independent afterwards.
    """

    model_config = ConfigDict(populate_by_name=True)

    source_page_id: str = Field(
        ...,
        alias="sourcePageId",
        description="Id of the page the block refers to"
    )

    source_block_id: Optional[str] = Field(
        default=None,
        alias="sourceBlockId",
        description="Id of a specific block within the target page"
    )

    kind: LinkKind = Field(
        default=LinkKind.LIVE,
        description="live or snapshot"
    )

    created_at: int = Field(
        default_factory=now_ms,
        alias="createdAt",
        description="Milliseconds since epoch when the link was made"
    )

    updated_at: int = Field(
        default_factory=now_ms,
        alias="updatedAt",
        description="Milliseconds since epoch when the link was last changed"
    )


class Block(BaseModel):
    """
    A typed unit of content within a page.

    The type decides how `content` and `metadata` are interpreted. Structured
    types (kanban, database, mindmap, project_os) keep a serialized payload in
    `content` that the core stores but never interprets, except for database
    blocks which the tabular engine reads and rewrites.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        default_factory=new_id,
        description="Identifier, unique within the owning page"
    )

    type: BlockType = Field(
        default=BlockType.TEXT,
        description="Type tag from the closed block type set"
    )

    content: str = Field(
        default="",
        description="Text payload or serialized structured payload"
    )

    checked: bool = Field(
        default=False,
        description="Checked state for todo and checkbox blocks"
    )

    schedule: Optional[ScheduleType] = Field(
        default=None,
        description="Scheduling tag"
    )

    last_edited_at: Optional[int] = Field(
        default=None,
        alias="lastEditedAt",
        description="Milliseconds since epoch of the last content edit"
    )

    metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Attribute bag whose shape depends on the block type"
    )

    link_metadata: Optional[LinkMetadata] = Field(
        default=None,
        alias="linkMetadata",
        description="Present when the block represents another page or block"
    )

    def typed_metadata(self) -> BlockMetadata:
        """Return the metadata bag as the variant for this block's type."""
        return parse_metadata(self.type.value, self.metadata)


class Page(BaseModel):
    """
    A top-level document: an ordered list of blocks.

    Block order is render order and must survive persistence. `updated_at` is
    the sole ordering key for page listings.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(
        default_factory=new_id,
        description="Globally unique, immutable identifier"
    )

    title: str = Field(
        default="",
        description="Page title"
    )

    blocks: List[Block] = Field(
        default_factory=list,
        description="Blocks in render order"
    )

    updated_at: int = Field(
        default_factory=now_ms,
        alias="updatedAt",
        description="Milliseconds since epoch of the last mutation"
    )

    is_deleted: bool = Field(
        default=False,
        alias="isDeleted",
        description="True while the page sits in the recovery buffer"
    )

    deleted_at: Optional[int] = Field(
        default=None,
        alias="deletedAt",
        description="Milliseconds since epoch when the page was deleted"
    )

    def find_block(self, block_id: str) -> Optional[Block]:
        """Return the block with the given id, or None."""
        for block in self.blocks:
            if block.id == block_id:
                return block
        return None

    def block_index(self, block_id: str) -> int:
        """Return the position of a block, or -1 if it is not on this page."""
        for index, block in enumerate(self.blocks):
            if block.id == block_id:
                return index
        return -1
