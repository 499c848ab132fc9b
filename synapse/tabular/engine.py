"""
Query and mutation engine for database (tabular) blocks.

All functions are pure: they take a TabularData payload and return a new
one. Schema changes keep the row invariant (every row has an entry for every
column id) and every mutation recomputes derived progress columns.
"""

import csv
import io
import json
import logging
import math
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pydantic import ValidationError as ModelValidationError

from ..models import (
    ColumnType,
    SortSpec,
    TabularColumn,
    TabularData,
    TabularView,
    ViewConfig,
    new_id,
)


MIN_COLUMN_WIDTH = 80


def default_value(column_type: ColumnType) -> Any:
    """Return the value a new or backfilled cell of this type starts with."""
    if column_type == ColumnType.CHECKLIST:
        return []
    if column_type == ColumnType.CHECKBOX:
        return False
    if column_type in (ColumnType.PROGRESS, ColumnType.RATING):
        return 0
    return ""


def parse_payload(content: str) -> TabularData:
    """
    Parse a database block's content.

    Empty content yields an empty table. Malformed content is logged and also
    yields an empty table. Rows are normalized so every column has a cell.
    """
    if not content or not content.strip():
        return TabularData()
    try:
        data = TabularData.model_validate_json(content)
    except ModelValidationError as e:
        logging.warning(f"Unreadable database payload, treating as empty: {e}")
        return TabularData()
    return normalize(data)


def serialize_payload(data: TabularData) -> str:
    """Serialize a payload back into block content."""
    payload: Dict[str, Any] = {
        "columns": [col.model_dump(mode="json", by_alias=True, exclude_none=True) for col in data.columns],
        "rows": data.rows,
    }
    if data.view_config is not None:
        payload["viewConfig"] = data.view_config.model_dump(mode="json", by_alias=True, exclude_none=True)
    return json.dumps(payload)


def normalize(data: TabularData) -> TabularData:
    """Give every row an id and a cell for every column, then derive progress."""
    rows = []
    for row in data.rows:
        fixed = dict(row)
        if not fixed.get("id"):
            fixed["id"] = new_id()
        for col in data.columns:
            if col.id not in fixed:
                fixed[col.id] = default_value(col.type)
        rows.append(fixed)
    return _with_rows(data, rows)


def checklist_progress(items: Optional[Iterable[Any]]) -> Optional[int]:
    """
    Percentage of checked checklist items, rounded half up.

    An empty checklist has no progress to derive and yields None.
    """
    entries = list(items or [])
    if not entries:
        return None
    done = sum(1 for item in entries if _item_checked(item))
    total = len(entries)
    return (200 * done + total) // (2 * total)


def view_config(data: TabularData, page_size: int = 10) -> ViewConfig:
    """Return the payload's view cursor, or a default one."""
    return data.view_config or ViewConfig(page_size=page_size)


def query_rows(data: TabularData, view: Optional[ViewConfig] = None) -> TabularView:
    """
    Produce the rows to display.

    Rows are filtered by the search query (case-insensitive substring over
    every column's cell text) and by any column filters, then sorted, then
    sliced to the requested page. A page past either end is clamped.

    Args:
        data: The table payload
        view: Cursor to apply; defaults to the payload's own view config

    Returns:
        The visible rows with paging figures
    """
    view = view or view_config(data)
    rows = list(data.rows)

    query = (view.search_query or "").strip().lower()
    if query:
        rows = [row for row in rows if _row_matches(row, data.columns, query)]

    for column_filter in view.filters:
        needle = column_filter.value.strip().lower()
        if needle:
            rows = [
                row for row in rows
                if needle in _cell_text(row.get(column_filter.column_id)).lower()
            ]

    if view.sort_by is not None:
        column_id = view.sort_by.column_id
        rows = sorted(
            rows,
            key=lambda row: _sort_key(row.get(column_id)),
            reverse=view.sort_by.direction == "desc"
        )

    page_size = max(1, view.page_size)
    filtered_count = len(rows)
    total_pages = math.ceil(filtered_count / page_size)
    page = _clamp_page(view.page, total_pages)
    start = (page - 1) * page_size

    return TabularView(
        rows=rows[start:start + page_size],
        page=page,
        page_size=page_size,
        total_pages=total_pages,
        filtered_count=filtered_count
    )


def set_cell(data: TabularData, row_id: str, column_id: str, value: Any) -> TabularData:
    """
    Write one cell, then recompute derived progress for every row.

    A progress column is overwritten whenever the schema has a checklist
    column and the row's checklist is non-empty, so writes to it are
    discarded in that case. Unknown rows or columns leave the payload
    unchanged.
    """
    if data.column(column_id) is None:
        return data
    if not any(row.get("id") == row_id for row in data.rows):
        return data

    rows = [
        {**row, column_id: value} if row.get("id") == row_id else row
        for row in data.rows
    ]
    return _with_rows(data, rows)


def add_column(data: TabularData, title: str, column_type: ColumnType = ColumnType.TEXT,
               column_id: Optional[str] = None, width: int = 150,
               options: Optional[List[str]] = None) -> Tuple[TabularData, str]:
    """
    Add a column and backfill its default value into every row.

    Returns:
        The new payload and the new column's id
    """
    column_id = column_id or new_id()
    if data.column(column_id) is not None:
        return data, column_id

    column = TabularColumn(id=column_id, title=title, type=column_type,
                           width=width, options=options)
    rows = [{**row, column_id: default_value(column_type)} for row in data.rows]
    updated = data.model_copy(update={"columns": list(data.columns) + [column]})
    return _with_rows(updated, rows), column_id


def remove_column(data: TabularData, column_id: str) -> TabularData:
    """Remove a column and strip its key from every row."""
    if data.column(column_id) is None:
        return data

    columns = [col for col in data.columns if col.id != column_id]
    rows = [{k: v for k, v in row.items() if k != column_id} for row in data.rows]

    view = data.view_config
    if view is not None:
        sort_by = view.sort_by if view.sort_by is None or view.sort_by.column_id != column_id else None
        filters = [f for f in view.filters if f.column_id != column_id]
        view = view.model_copy(update={"sort_by": sort_by, "filters": filters})

    updated = data.model_copy(update={"columns": columns, "view_config": view})
    return _with_rows(updated, rows)


def rename_column(data: TabularData, column_id: str, title: str) -> TabularData:
    return _update_column(data, column_id, {"title": title})


def resize_column(data: TabularData, column_id: str, width: int,
                  min_width: int = MIN_COLUMN_WIDTH) -> TabularData:
    return _update_column(data, column_id, {"width": max(min_width, width)})


def add_row(data: TabularData) -> Tuple[TabularData, str]:
    """
    Insert an empty row at the top of the table.

    Returns:
        The new payload and the new row's id
    """
    row_id = new_id()
    row: Dict[str, Any] = {"id": row_id}
    for col in data.columns:
        row[col.id] = default_value(col.type)
    return _with_rows(data, [row] + list(data.rows)), row_id


def duplicate_row(data: TabularData, row_id: str) -> Tuple[TabularData, Optional[str]]:
    """Copy a row under a new id and insert it at the top."""
    source = next((row for row in data.rows if row.get("id") == row_id), None)
    if source is None:
        return data, None
    copy_id = new_id()
    copy = json.loads(json.dumps(source))
    copy["id"] = copy_id
    return _with_rows(data, [copy] + list(data.rows)), copy_id


def delete_rows(data: TabularData, row_ids: Sequence[str]) -> TabularData:
    doomed = set(row_ids)
    return _with_rows(data, [row for row in data.rows if row.get("id") not in doomed])


def toggle_sort(data: TabularData, column_id: str) -> TabularData:
    """Sort ascending by a column, or flip to descending if it is already ascending."""
    view = view_config(data)
    direction = "asc"
    if view.sort_by is not None and view.sort_by.column_id == column_id and view.sort_by.direction == "asc":
        direction = "desc"
    return _with_view(data, {"sort_by": SortSpec(column_id=column_id, direction=direction)})


def set_search(data: TabularData, query: str) -> TabularData:
    """Change the search query and return to the first page."""
    return _with_view(data, {"search_query": query, "page": 1})


def set_page_size(data: TabularData, page_size: int) -> TabularData:
    return _with_view(data, {"page_size": max(1, page_size), "page": 1})


def go_to_page(data: TabularData, page: int) -> TabularData:
    """Move the cursor to a page, clamped to the pages the current query has."""
    total_pages = query_rows(data).total_pages
    return _with_view(data, {"page": _clamp_page(page, total_pages)})


def export_csv(data: TabularData) -> str:
    """Render the table as CSV: a header of column titles, then one line per row."""
    out = io.StringIO()
    writer = csv.writer(out, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow([col.title for col in data.columns])
    for row in data.rows:
        writer.writerow([_cell_text(row.get(col.id)) for col in data.columns])
    return out.getvalue()


def _with_rows(data: TabularData, rows: List[Dict[str, Any]]) -> TabularData:
    return data.model_copy(update={"rows": _derive_progress(data.columns, rows)})


def _with_view(data: TabularData, changes: Dict[str, Any]) -> TabularData:
    view = view_config(data).model_copy(update=changes)
    return data.model_copy(update={"view_config": view})


def _update_column(data: TabularData, column_id: str, changes: Dict[str, Any]) -> TabularData:
    if data.column(column_id) is None:
        return data
    columns = [
        col.model_copy(update=changes) if col.id == column_id else col
        for col in data.columns
    ]
    return data.model_copy(update={"columns": columns})


def _derive_progress(columns: Sequence[TabularColumn],
                     rows: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    checklist = next((col for col in columns if col.type == ColumnType.CHECKLIST), None)
    progress_ids = [col.id for col in columns if col.type == ColumnType.PROGRESS]
    if checklist is None or not progress_ids:
        return rows

    derived = []
    for row in rows:
        value = checklist_progress(row.get(checklist.id))
        if value is None:
            derived.append(row)
        else:
            derived.append({**row, **{col_id: value for col_id in progress_ids}})
    return derived


def _item_checked(item: Any) -> bool:
    if isinstance(item, dict):
        return bool(item.get("checked"))
    return bool(getattr(item, "checked", False))


def _clamp_page(page: int, total_pages: int) -> int:
    return min(max(1, page), max(1, total_pages))


def _cell_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    if isinstance(value, list):
        return ", ".join(_cell_text(item) for item in value)
    if isinstance(value, dict):
        if "text" in value:
            return _cell_text(value["text"])
        return json.dumps(value, sort_keys=True)
    return str(value)


def _row_matches(row: Dict[str, Any], columns: Sequence[TabularColumn], query: str) -> bool:
    return any(query in _cell_text(row.get(col.id)).lower() for col in columns)


def _sort_key(value: Any) -> Tuple[int, Any]:
    # blanks first, then numbers, then text
    if value is None or value == "":
        return (-1, "")
    if isinstance(value, (bool, int, float)):
        return (0, float(value))
    if isinstance(value, str):
        return (1, value)
    return (1, _cell_text(value))
