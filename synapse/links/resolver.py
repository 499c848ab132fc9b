"""
Link resolution for Synapse.

Pure queries over the current page collection: which pages a page links to,
which pages link to it, and whether a given link still resolves. Nothing in
this module mutates state. A link whose target page (or target block) no
longer exists is reported as DANGLING, never raised.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from ..document import page_text
from ..models import Block, LinkKind, Page


BROKEN_REFERENCE_TEXT = "Reference not found"


class LinkStatus(str, Enum):
    RESOLVED = "resolved"
    DANGLING = "dangling"


@dataclass
class LinkResolution:
    """
    Outcome of following one block's link.
    """
    status: LinkStatus
    page: Optional[Page] = None
    block: Optional[Block] = None

    @property
    def is_dangling(self) -> bool:
        return self.status == LinkStatus.DANGLING


def _page_index(pages: Sequence[Page]) -> Dict[str, Page]:
    return {page.id: page for page in pages}


def outbound_links(pages: Sequence[Page], page: Page) -> List[Page]:
    """
    Pages referenced by any block of `page`.

    Targets that no longer exist are left out; use dangling_links to find them.

    Args:
        pages: The active page collection
        page: The page whose links to follow

    Returns:
        Distinct target pages in first-reference order
    """
    index = _page_index(pages)
    targets: List[Page] = []
    seen = set()
    for block in page.blocks:
        if block.link_metadata is None:
            continue
        target_id = block.link_metadata.source_page_id
        if target_id in seen or target_id not in index:
            continue
        seen.add(target_id)
        targets.append(index[target_id])
    return targets


def inbound_links(pages: Sequence[Page], page_id: str) -> List[Page]:
    """
    Pages containing at least one block that links to `page_id`.

    Args:
        pages: The active page collection
        page_id: Id of the linked-to page

    Returns:
        Linking pages in collection order
    """
    return [
        page for page in pages
        if any(_links_to(block, page_id) for block in page.blocks)
    ]


def linked_block_count(pages: Sequence[Page], page_id: str) -> int:
    """Count blocks in other pages that reference `page_id`."""
    return sum(
        1
        for page in pages if page.id != page_id
        for block in page.blocks if _links_to(block, page_id)
    )


def linking_page_count(pages: Sequence[Page], page_id: str) -> int:
    """Count other pages holding at least one block that references `page_id`."""
    return sum(
        1 for page in pages
        if page.id != page_id and any(_links_to(block, page_id) for block in page.blocks)
    )


def resolve_link(pages: Sequence[Page], block: Block) -> Optional[LinkResolution]:
    """
    Follow a block's link.

    Returns:
        None for an unlinked block, otherwise a resolution whose status is
        DANGLING when the target page or target block is gone
    """
    link = block.link_metadata
    if link is None:
        return None

    target = _page_index(pages).get(link.source_page_id)
    if target is None:
        return LinkResolution(status=LinkStatus.DANGLING)

    if link.source_block_id is None:
        return LinkResolution(status=LinkStatus.RESOLVED, page=target)

    target_block = target.find_block(link.source_block_id)
    if target_block is None:
        return LinkResolution(status=LinkStatus.DANGLING, page=target)
    return LinkResolution(status=LinkStatus.RESOLVED, page=target, block=target_block)


def capture_content(page: Page, block: Optional[Block] = None) -> str:
    """
    The content a link to `page` (or to one of its blocks) shows.

    A block target shows that block's content; a page target shows the
    page's text, or its title when it has none.
    """
    if block is not None:
        return block.content
    return page_text(page) or page.title


def display_content(pages: Sequence[Page], block: Block) -> str:
    """
    Text to render for a block, following live links.

    Live links reflect their target's current content, snapshot links keep
    what they captured, and dangling links render a placeholder.
    """
    resolution = resolve_link(pages, block)
    if resolution is None:
        return block.content
    if resolution.is_dangling:
        return BROKEN_REFERENCE_TEXT
    if block.link_metadata is not None and block.link_metadata.kind == LinkKind.SNAPSHOT:
        return block.content
    return capture_content(resolution.page, resolution.block)


def dangling_links(pages: Sequence[Page]) -> List[Tuple[Page, Block]]:
    """Every (page, block) pair whose link no longer resolves."""
    found = []
    for page in pages:
        for block in page.blocks:
            resolution = resolve_link(pages, block)
            if resolution is not None and resolution.is_dangling:
                found.append((page, block))
    return found


def _links_to(block: Block, page_id: str) -> bool:
    return block.link_metadata is not None and block.link_metadata.source_page_id == page_id


class LinkResolver:
    """
    Memoizing front for the link queries.

    Results are cached against the identity and version of the page
    collection they were computed from; a new collection or a bumped version
    recomputes. The inbound index is built in one pass over all blocks.
    """

    def __init__(self):
        self._pages: Optional[Sequence[Page]] = None
        self._version: Optional[int] = None
        self._inbound: Dict[str, List[Tuple[Page, Block]]] = {}

    def _refresh(self, pages: Sequence[Page], version: int) -> None:
        # holding the collection keeps its identity from being reused
        if pages is self._pages and version == self._version:
            return
        inbound: Dict[str, List[Tuple[Page, Block]]] = {}
        for page in pages:
            for block in page.blocks:
                if block.link_metadata is not None:
                    inbound.setdefault(block.link_metadata.source_page_id, []).append((page, block))
        self._inbound = inbound
        self._pages = pages
        self._version = version

    def inbound_links(self, pages: Sequence[Page], page_id: str, version: int = 0) -> List[Page]:
        self._refresh(pages, version)
        result: List[Page] = []
        seen = set()
        for page, _ in self._inbound.get(page_id, []):
            if page.id not in seen:
                seen.add(page.id)
                result.append(page)
        return result

    def linked_block_count(self, pages: Sequence[Page], page_id: str, version: int = 0) -> int:
        self._refresh(pages, version)
        return sum(1 for page, _ in self._inbound.get(page_id, []) if page.id != page_id)

    def outbound_links(self, pages: Sequence[Page], page: Page) -> List[Page]:
        return outbound_links(pages, page)

    def resolve_link(self, pages: Sequence[Page], block: Block) -> Optional[LinkResolution]:
        return resolve_link(pages, block)
