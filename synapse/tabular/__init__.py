"""Query engine for database blocks."""

from .engine import (
    MIN_COLUMN_WIDTH,
    add_column,
    add_row,
    checklist_progress,
    default_value,
    delete_rows,
    duplicate_row,
    export_csv,
    go_to_page,
    normalize,
    parse_payload,
    query_rows,
    remove_column,
    rename_column,
    resize_column,
    serialize_payload,
    set_cell,
    set_page_size,
    set_search,
    toggle_sort,
    view_config,
)

__all__ = [
    "MIN_COLUMN_WIDTH",
    "add_column",
    "add_row",
    "checklist_progress",
    "default_value",
    "delete_rows",
    "duplicate_row",
    "export_csv",
    "go_to_page",
    "normalize",
    "parse_payload",
    "query_rows",
    "remove_column",
    "rename_column",
    "resize_column",
    "serialize_payload",
    "set_cell",
    "set_page_size",
    "set_search",
    "toggle_sort",
    "view_config",
]
