"""
Database manager for Synapse.

This module maps the in-memory page tree onto two relations in a DuckDB
database: `pages` and `blocks`. Writes are never incremental; every save
clears both relations and re-inserts the whole workspace in one transaction,
with an explicit sort_order column recording each block's position.
"""

import duckdb
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError as ModelValidationError

from ..models import Block, BlockType, LinkMetadata, Page, ScheduleType


class DatabaseManager:
    """
    Manages the DuckDB working copy of the workspace.
    """

    def __init__(self, db_path: str = "workspace.duckdb"):
        """
        Initialize the database manager.

        Args:
            db_path: Path to the DuckDB database file
        """
        self.db_path = db_path
        self.connection = None

    def connect(self):
        """Establish connection to the database."""
        self.connection = duckdb.connect(self.db_path)

    def disconnect(self):
        """Close the database connection."""
        if self.connection:
            self.connection.close()
            self.connection = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.disconnect()

    def initialize_database(self):
        """
        Create the pages and blocks relations if they don't exist.
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS pages (
                id VARCHAR NOT NULL,
                title VARCHAR,
                updated_at BIGINT NOT NULL
            )
        """)

        # Block ids are only unique within their page, so blocks are
        # addressed by (page_id, block_id).
        self.connection.execute("""
            CREATE TABLE IF NOT EXISTS blocks (
                page_id VARCHAR NOT NULL,
                block_id VARCHAR NOT NULL,
                type VARCHAR NOT NULL,
                content VARCHAR,
                checked BOOLEAN,
                schedule VARCHAR,
                last_edited_at BIGINT,
                metadata VARCHAR NOT NULL,
                link_metadata VARCHAR,
                sort_order INTEGER NOT NULL
            )
        """)

    def rewrite_workspace(self, pages: Sequence[Page]) -> None:
        """
        Replace the stored workspace with the given pages.

        Both relations are cleared and refilled inside a single transaction;
        on any failure the transaction is rolled back and the error re-raised.

        Args:
            pages: The complete set of pages to store
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        page_rows = []
        block_rows = []
        for page in pages:
            page_rows.append([page.id, page.title, page.updated_at])
            for sort_order, block in enumerate(page.blocks):
                block_rows.append(self._block_row(page.id, block, sort_order))

        self.connection.begin()
        try:
            self.connection.execute("DELETE FROM blocks")
            self.connection.execute("DELETE FROM pages")
            if page_rows:
                self.connection.executemany(
                    "INSERT INTO pages (id, title, updated_at) VALUES (?, ?, ?)",
                    page_rows
                )
            if block_rows:
                self.connection.executemany("""
                    INSERT INTO blocks (
                        page_id, block_id, type, content, checked, schedule,
                        last_edited_at, metadata, link_metadata, sort_order
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """, block_rows)
            self.connection.commit()
        except duckdb.Error:
            self.connection.rollback()
            raise

        self.connection.execute("CHECKPOINT")
        logging.info(f"Stored {len(page_rows)} pages and {len(block_rows)} blocks")

    def fetch_pages(self) -> List[Page]:
        """
        Rebuild the page tree from the relations.

        Returns:
            Pages ordered by updated_at descending, each with its blocks in
            sort_order
        """
        if not self.connection:
            raise RuntimeError("Database connection not established")

        page_results = self.connection.execute("""
            SELECT id, title, updated_at
            FROM pages
            ORDER BY updated_at DESC, rowid
        """).fetchall()

        block_results = self.connection.execute("""
            SELECT page_id, block_id, type, content, checked, schedule,
                   last_edited_at, metadata, link_metadata
            FROM blocks
            ORDER BY page_id, sort_order
        """).fetchall()

        blocks_by_page: Dict[str, List[Block]] = {}
        for row in block_results:
            blocks_by_page.setdefault(row[0], []).append(self._row_to_block(row))

        return [
            Page(
                id=row[0],
                title=row[1] or "",
                updated_at=row[2],
                blocks=blocks_by_page.get(row[0], [])
            )
            for row in page_results
        ]

    def count_rows(self, table: str) -> int:
        """Return the number of rows in `pages` or `blocks`."""
        if not self.connection:
            raise RuntimeError("Database connection not established")
        if table not in ("pages", "blocks"):
            raise ValueError(f"Unknown table: {table}")
        result = self.connection.execute(f"SELECT COUNT(*) FROM {table}").fetchone()
        return int(result[0]) if result else 0

    @staticmethod
    def _block_row(page_id: str, block: Block, sort_order: int) -> List[Any]:
        link = None
        if block.link_metadata is not None:
            link = block.link_metadata.model_dump_json(by_alias=True)
        return [
            page_id,
            block.id,
            block.type.value,
            block.content,
            block.checked,
            block.schedule.value if block.schedule else None,
            block.last_edited_at,
            json.dumps(block.metadata or {}),
            link,
            sort_order,
        ]

    @staticmethod
    def _row_to_block(row) -> Block:
        _, block_id, block_type, content, checked, schedule, last_edited_at, metadata, link = row

        try:
            bag = json.loads(metadata) if metadata else {}
        except json.JSONDecodeError:
            logging.warning(f"Block {block_id} has unreadable metadata; using an empty bag")
            bag = {}
        if not isinstance(bag, dict):
            bag = {"value": bag}

        try:
            typed = BlockType(block_type)
        except ValueError:
            logging.warning(f"Block {block_id} has unknown type {block_type!r}; loading as text")
            typed = BlockType.TEXT
            bag = {**bag, "legacyType": block_type}

        try:
            schedule_tag = ScheduleType(schedule) if schedule else None
        except ValueError:
            schedule_tag = None

        link_metadata: Optional[LinkMetadata] = None
        if link:
            try:
                link_metadata = LinkMetadata.model_validate_json(link)
            except ModelValidationError as e:
                logging.warning(f"Block {block_id} has unreadable link metadata; dropping it: {e}")

        return Block(
            id=block_id,
            type=typed,
            content=content or "",
            checked=bool(checked),
            schedule=schedule_tag,
            last_edited_at=last_edited_at,
            metadata=bag,
            link_metadata=link_metadata,
        )
