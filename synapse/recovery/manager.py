"""
Deletion and recovery of pages.

A confirmed delete moves a page from the active list into the recovery
buffer; undo puts it back at its old position. Inbound links to a deleted
page are left as they are and resolve as dangling.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence

from ..document import create_page
from ..links import linked_block_count, linking_page_count
from ..models import Page, now_ms
from .buffer import PendingDeletion, RecoveryBuffer


@dataclass
class DeletionImpact:
    """
    What deleting a page would affect, for the confirmation prompt.
    """
    page_id: str
    title: str
    block_count: int
    linked_block_count: int
    linking_page_count: int
    last_modified: int


@dataclass
class DeletionResult:
    pages: List[Page]
    impact: Optional[DeletionImpact] = None
    evicted: Optional[PendingDeletion] = None

    @property
    def deleted(self) -> bool:
        return self.impact is not None


class DeletionManager:
    """
    Orchestrates soft deletion, single-slot undo and the non-empty invariant.
    """

    def __init__(self, buffer: Optional[RecoveryBuffer] = None, default_title: str = "Workspace"):
        """
        Initialize the deletion manager.

        Args:
            buffer: Recovery buffer holding the last deleted page
            default_title: Title of the page synthesized when the last page is deleted
        """
        self.buffer = buffer or RecoveryBuffer()
        self.default_title = default_title

    def deletion_impact(self, pages: Sequence[Page], page_id: str) -> Optional[DeletionImpact]:
        """
        Describe the effect of deleting a page.

        Args:
            pages: The active page list
            page_id: The page about to be deleted

        Returns:
            The impact, or None if the page is not in the list
        """
        page = next((p for p in pages if p.id == page_id), None)
        if page is None:
            return None
        return DeletionImpact(
            page_id=page.id,
            title=page.title or "Untitled",
            block_count=len(page.blocks),
            linked_block_count=linked_block_count(pages, page_id),
            linking_page_count=linking_page_count(pages, page_id),
            last_modified=page.updated_at
        )

    def delete_page(self, pages: Sequence[Page], page_id: str) -> DeletionResult:
        """
        Move a page into the recovery buffer.

        Any page already in the buffer is evicted permanently. Deleting the
        only page leaves a freshly created default page behind.

        Args:
            pages: The active page list
            page_id: The page to delete

        Returns:
            The new active list, the impact that was surfaced, and any evicted entry
        """
        index = next((i for i, p in enumerate(pages) if p.id == page_id), -1)
        if index == -1:
            return DeletionResult(pages=list(pages))

        impact = self.deletion_impact(pages, page_id)
        if impact is not None and impact.linked_block_count:
            logging.warning(
                f"Deleting page {page_id} leaves {impact.linked_block_count} linking blocks "
                f"in {impact.linking_page_count} pages dangling"
            )

        held = pages[index].model_copy(update={"is_deleted": True, "deleted_at": now_ms()})
        evicted = self.buffer.hold(held, index)

        remaining = [p for p in pages if p.id != page_id]
        if not remaining:
            remaining = [create_page(self.default_title)]
            logging.info("Deleted the last page; created a default page")

        logging.info(f"Deleted page {page_id} (recoverable)")
        return DeletionResult(pages=remaining, impact=impact, evicted=evicted)

    def undo(self, pages: Sequence[Page]) -> Optional[List[Page]]:
        """
        Restore the page held in the recovery buffer.

        Returns:
            The new active list with the page back at its original index
            (clamped to the list length), or None if there is nothing to restore
        """
        entry = self.buffer.take()
        if entry is None:
            return None

        restored = entry.page.model_copy(update={"is_deleted": False, "deleted_at": None})
        remaining = [p for p in pages if p.id != restored.id]
        index = min(max(entry.original_index, 0), len(remaining))
        remaining.insert(index, restored)
        logging.info(f"Restored page {restored.id} at position {index}")
        return remaining

    @property
    def pending(self) -> Optional[PendingDeletion]:
        return self.buffer.peek()
