"""
Payload models for database (tabular) blocks.

A database block's content is the JSON form of TabularData: a column schema,
the rows, and the view cursor the user last left the table in. Field aliases
keep the stored JSON in the camelCase shape the block renderers read.
"""

from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ColumnType(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    DATE = "date"
    SELECT = "select"
    TAGS = "tags"
    PROGRESS = "progress"
    RATING = "rating"
    RELATION = "relation"
    CHECKLIST = "checklist"


class ChecklistItem(BaseModel):
    """One entry of a checklist cell."""

    id: str = ""
    text: str = ""
    checked: bool = False


class TabularColumn(BaseModel):
    """
    A column of the table schema.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Column id, used as the key in every row")

    title: str = Field(default="", description="Header text")

    type: ColumnType = Field(default=ColumnType.TEXT, description="Cell value type")

    width: int = Field(default=150, description="Rendered width in pixels")

    options: Optional[List[str]] = Field(
        default=None,
        description="Allowed values for select and tags columns"
    )

    visible: Optional[bool] = Field(default=None)

    relation_page_id: Optional[str] = Field(
        default=None,
        alias="relationPageId",
        description="Target page for relation columns"
    )


class SortSpec(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    column_id: str = Field(..., alias="colId")
    direction: Literal["asc", "desc"] = "asc"


class ColumnFilter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    column_id: str = Field(..., alias="colId")
    value: str = ""


class ViewConfig(BaseModel):
    """
    Display cursor over the table.

    Not authoritative data: it is persisted with the block only so the last
    view is restored. Out-of-range pages are clamped by the engine.
    """

    model_config = ConfigDict(populate_by_name=True)

    sort_by: Optional[SortSpec] = Field(default=None, alias="sortBy")

    filters: List[ColumnFilter] = Field(default_factory=list)

    search_query: str = Field(default="", alias="searchQuery")

    page: int = Field(default=1)

    page_size: int = Field(default=10, alias="pageSize")

    view_mode: str = Field(default="table", alias="viewMode")


class TabularData(BaseModel):
    """
    The full payload of a database block.

    Every row carries an `id` plus one entry per column id in `columns`.
    """

    model_config = ConfigDict(populate_by_name=True)

    columns: List[TabularColumn] = Field(default_factory=list)

    rows: List[Dict[str, Any]] = Field(default_factory=list)

    view_config: Optional[ViewConfig] = Field(default=None, alias="viewConfig")

    def column(self, column_id: str) -> Optional[TabularColumn]:
        for col in self.columns:
            if col.id == column_id:
                return col
        return None


class TabularView(BaseModel):
    """The page of rows produced by a query, with paging figures."""

    rows: List[Dict[str, Any]] = Field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total_pages: int = 0
    filtered_count: int = 0
