"""
Workspace session for Synapse.

The Workspace owns the active page list. Every mutation goes through it:
the pure document operations produce a new list, the workspace commits it,
bumps its version and schedules a save. Link queries, deletion with undo
and tabular edits are exposed here for the UI layer.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from . import document, tabular
from .config import ConfigManager
from .exceptions import StorageError, ValidationError
from .links import LinkResolver, capture_content, display_content
from .models import Block, BlockType, LinkKind, LinkMetadata, Page, TabularData, TabularView
from .persistence import DebouncedSaver, PersistenceEngine
from .recovery import DeletionImpact, DeletionManager, DeletionResult, RecoveryBuffer
from .storage import FileBlobStore


class Workspace:
    """
    The single active document session.
    """

    def __init__(self, engine: PersistenceEngine,
                 saver: Optional[DebouncedSaver] = None,
                 deletion_manager: Optional[DeletionManager] = None,
                 default_title: str = "Workspace",
                 default_page_size: int = 10,
                 min_column_width: int = tabular.MIN_COLUMN_WIDTH):
        """
        Initialize the workspace.

        Args:
            engine: Persistence engine for load and save
            saver: Debounced saver; without one every commit saves immediately
            deletion_manager: Handles delete and undo
            default_title: Title for bootstrap and replacement pages
            default_page_size: Page size of tables without a stored view
            min_column_width: Narrowest width a table column can be resized to
        """
        self.engine = engine
        self.saver = saver
        self.deletion_manager = deletion_manager or DeletionManager(default_title=default_title)
        self.default_title = default_title
        self.default_page_size = default_page_size
        self.min_column_width = min_column_width
        self.resolver = LinkResolver()
        self.last_save_error: Optional[StorageError] = None
        self._pages: Tuple[Page, ...] = ()
        self._version = 0

    @classmethod
    def from_config(cls, config: ConfigManager) -> "Workspace":
        """Build a file-backed workspace from configuration."""
        store = FileBlobStore(config.storage_directory)
        engine = PersistenceEngine(
            store,
            blob_key=config.blob_key,
            working_dir=config.storage_directory,
            working_filename=config.working_filename
        )
        saver = DebouncedSaver(engine, delay=config.save_debounce_seconds)
        buffer = RecoveryBuffer(window_seconds=config.recovery_window_seconds)
        return cls(
            engine,
            saver=saver,
            deletion_manager=DeletionManager(buffer, default_title=config.default_page_title),
            default_title=config.default_page_title,
            default_page_size=config.default_page_size,
            min_column_width=config.min_column_width
        )

    @property
    def pages(self) -> Tuple[Page, ...]:
        return self._pages

    @property
    def version(self) -> int:
        return self._version

    def open(self) -> Tuple[Page, ...]:
        """
        Load the stored workspace, bootstrapping a first page if it is empty.

        A failed load falls back to an empty workspace with the default page.
        """
        try:
            pages = self.engine.load()
        except StorageError as e:
            logging.error(f"Failed to load workspace, starting empty: {e}")
            pages = []

        if pages:
            self._pages = tuple(pages)
            self._version += 1
        else:
            self.commit([document.bootstrap_page(self.default_title)])
        return self._pages

    def commit(self, pages: Sequence[Page]) -> None:
        """Install a new page list and persist it."""
        self._pages = tuple(pages)
        self._version += 1
        if self.saver is not None:
            self.saver.schedule(self._pages)
            return
        try:
            self.engine.save(self._pages)
            self.last_save_error = None
        except StorageError as e:
            logging.error(f"Save failed, will retry on next edit: {e}")
            self.last_save_error = e

    def flush(self) -> bool:
        """Write any pending save now. Returns False if the save failed."""
        if self.saver is None:
            return self.last_save_error is None
        return self.saver.flush()

    def close(self) -> None:
        self.flush()
        self.engine.close()

    def export_backup(self) -> bytes:
        """Flush pending edits and return the stored workspace blob."""
        if not self.flush():
            raise StorageError("Pending edits could not be saved", operation="export")
        return self.engine.export_blob()

    def restore_backup(self, data: bytes) -> Tuple[Page, ...]:
        """
        Replace the workspace with a backup blob.

        Pending saves and any recoverable deletion are discarded.

        Raises:
            StorageError: If the backup is unreadable or cannot be stored
        """
        if self.saver is not None:
            self.saver.cancel()
        pages = self.engine.import_blob(data)
        self.deletion_manager.buffer.clear()
        if pages:
            self._pages = tuple(pages)
            self._version += 1
        else:
            self.commit([document.bootstrap_page(self.default_title)])
        return self._pages

    # Page access

    def get_page(self, page_id: str) -> Optional[Page]:
        return next((page for page in self._pages if page.id == page_id), None)

    def most_recent_page(self) -> Optional[Page]:
        """The most recently updated page, the default selection."""
        if not self._pages:
            return None
        return max(self._pages, key=lambda page: page.updated_at)

    def _require(self, page_id: str) -> Page:
        page = self.get_page(page_id)
        if page is None:
            raise ValidationError(f"No active page with id {page_id}")
        return page

    def _replace(self, *updated: Page) -> None:
        by_id = {page.id: page for page in updated}
        self.commit([by_id.get(page.id, page) for page in self._pages])

    # Page mutations

    def add_page(self, title: str = "", blocks: Optional[Sequence[Block]] = None) -> Page:
        """Create a page at the top of the list."""
        page = document.create_page(title, blocks)
        self.commit([page] + list(self._pages))
        return page

    def add_page_from_blocks(self, title: str, blocks: Sequence[Block]) -> Page:
        """Create a page from template blocks."""
        page = document.create_page_from_blocks(title, blocks)
        self.commit([page] + list(self._pages))
        return page

    def rename_page(self, page_id: str, title: str) -> Page:
        page = document.update_page(self._require(page_id), {"title": title})
        self._replace(page)
        return page

    # Block mutations

    def insert_block(self, page_id: str, after_block_id: Optional[str], block: Block) -> Page:
        page = document.insert_block(self._require(page_id), after_block_id, block)
        self._replace(page)
        return page

    def update_block(self, page_id: str, block_id: str, patch: dict) -> Page:
        page = document.update_block(self._require(page_id), block_id, patch)
        self._replace(page)
        return page

    def remove_block(self, page_id: str, block_id: str) -> Page:
        page = document.remove_block(self._require(page_id), block_id)
        self._replace(page)
        return page

    def reorder_block(self, page_id: str, block_id: str, before_block_id: Optional[str]) -> Page:
        page = document.reorder_block(self._require(page_id), block_id, before_block_id)
        self._replace(page)
        return page

    def move_block(self, source_id: str, target_id: str, block_id: str,
                   after_block_id: Optional[str] = None) -> Tuple[Page, Page]:
        source, target = document.move_block(
            self._require(source_id), self._require(target_id), block_id, after_block_id
        )
        self._replace(source, target)
        return source, target

    # Links

    def link_block(self, page_id: str, block_id: Optional[str], target_page_id: str,
                   target_block_id: Optional[str] = None,
                   kind: LinkKind = LinkKind.LIVE) -> Page:
        """
        Link a block to another page, or to one block of it.

        With no block_id a new block is appended: an embed block for a live
        link, a text block holding the captured content for a snapshot.
        Snapshot links copy the target's content into the block once.

        Raises:
            ValidationError: If the page, block or target does not exist
        """
        page = self._require(page_id)
        target = self.get_page(target_page_id)
        if target is None:
            raise ValidationError(f"Cannot link to missing page {target_page_id}")
        target_block = None
        if target_block_id is not None:
            target_block = target.find_block(target_block_id)
            if target_block is None:
                raise ValidationError(f"Page {target_page_id} has no block {target_block_id}")

        link = LinkMetadata(
            source_page_id=target_page_id,
            source_block_id=target_block_id,
            kind=kind
        )
        captured = capture_content(target, target_block)

        if block_id is None:
            if kind == LinkKind.LIVE:
                block = document.create_block(BlockType.EMBED, f"Ref: {target.title or 'Context'}",
                                              link_metadata=link)
            else:
                block = document.create_block(BlockType.TEXT, captured, link_metadata=link)
            last = page.blocks[-1].id if page.blocks else None
            updated = document.insert_block(page, last, block)
        else:
            if page.find_block(block_id) is None:
                raise ValidationError(f"Page {page_id} has no block {block_id}")
            patch = {"link_metadata": link}
            if kind == LinkKind.SNAPSHOT:
                patch["content"] = captured
            updated = document.update_block(page, block_id, patch)

        self._replace(updated)
        logging.info(f"Linked block on {page_id} to {target_page_id} ({kind.value})")
        return updated

    def unlink_block(self, page_id: str, block_id: str) -> Page:
        page = document.clear_block_link(self._require(page_id), block_id)
        self._replace(page)
        return page

    def inbound_links(self, page_id: str) -> List[Page]:
        return self.resolver.inbound_links(self._pages, page_id, self._version)

    def outbound_links(self, page_id: str) -> List[Page]:
        return self.resolver.outbound_links(self._pages, self._require(page_id))

    def linked_block_count(self, page_id: str) -> int:
        return self.resolver.linked_block_count(self._pages, page_id, self._version)

    def display_content(self, page_id: str, block_id: str) -> str:
        block = self._require(page_id).find_block(block_id)
        if block is None:
            raise ValidationError(f"Page {page_id} has no block {block_id}")
        return display_content(self._pages, block)

    # Tables

    def _table_block(self, page_id: str, block_id: str) -> Block:
        block = self._require(page_id).find_block(block_id)
        if block is None or block.type != BlockType.DATABASE:
            raise ValidationError(f"Page {page_id} has no database block {block_id}")
        return block

    def table(self, page_id: str, block_id: str) -> TabularData:
        return tabular.parse_payload(self._table_block(page_id, block_id).content)

    def table_view(self, page_id: str, block_id: str) -> TabularView:
        data = self.table(page_id, block_id)
        return tabular.query_rows(data, tabular.view_config(data, self.default_page_size))

    def edit_table(self, page_id: str, block_id: str,
                   edit: Callable[[TabularData], TabularData]) -> TabularData:
        """
        Apply a tabular edit and write the new payload back into the block.

        Args:
            page_id: Page holding the table
            block_id: The database block
            edit: Function from the current payload to the new one

        Returns:
            The new payload
        """
        data = edit(self.table(page_id, block_id))
        self.update_block(page_id, block_id, {"content": tabular.serialize_payload(data)})
        return data

    def resize_table_column(self, page_id: str, block_id: str, column_id: str,
                            width: int) -> TabularData:
        return self.edit_table(
            page_id, block_id,
            lambda data: tabular.resize_column(data, column_id, width, self.min_column_width)
        )

    # Deletion

    def deletion_impact(self, page_id: str) -> Optional[DeletionImpact]:
        return self.deletion_manager.deletion_impact(self._pages, page_id)

    def delete_page(self, page_id: str) -> DeletionResult:
        """Delete a page into the recovery buffer. Unknown ids are a no-op."""
        result = self.deletion_manager.delete_page(self._pages, page_id)
        if result.deleted:
            self.commit(result.pages)
        return result

    def undo_delete(self) -> Optional[Page]:
        """
        Restore the most recently deleted page if it is still recoverable.

        Returns:
            The restored page, or None if there was nothing to restore
        """
        entry = self.deletion_manager.pending
        restored_pages = self.deletion_manager.undo(self._pages)
        if restored_pages is None or entry is None:
            return None
        self.commit(restored_pages)
        return self.get_page(entry.page.id)
