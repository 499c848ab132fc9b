"""Pure document model operations."""

from .operations import (
    bootstrap_page,
    clear_block_link,
    create_block,
    create_page,
    create_page_from_blocks,
    default_block,
    duplicate_page,
    insert_block,
    move_block,
    page_text,
    remove_block,
    reorder_block,
    set_block_link,
    update_block,
    update_page,
)

__all__ = [
    "bootstrap_page",
    "clear_block_link",
    "create_block",
    "create_page",
    "create_page_from_blocks",
    "default_block",
    "duplicate_page",
    "insert_block",
    "move_block",
    "page_text",
    "remove_block",
    "reorder_block",
    "set_block_link",
    "update_block",
    "update_page",
]
