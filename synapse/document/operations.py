"""
Document model operations for Synapse.

Every function here is a pure transformation: it returns a new Page (or
pages) and never mutates its arguments. Callers commit the result and
trigger persistence. Operations are total over well-formed input; unknown
ids leave the page unchanged.
"""

from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from ..models import Block, BlockType, LinkMetadata, Page, TEXT_TYPES, new_id, now_ms


def default_block() -> Block:
    """Return the empty text block every page falls back to."""
    return Block(type=BlockType.TEXT, content="")


def bootstrap_page(title: str = "Workspace") -> Page:
    """
    Create the first-run page shown on an empty workspace.

    Args:
        title: Title for the page

    Returns:
        A page with a heading and a short hint
    """
    return create_page(title, [
        Block(type=BlockType.HEADING, content="Begin your journey"),
        Block(type=BlockType.TEXT, content='Focus your thoughts here. Use "/" to add blocks.'),
    ])


def create_page(title: str = "", initial_blocks: Optional[Sequence[Block]] = None) -> Page:
    """
    Create a new page.

    Args:
        title: Page title
        initial_blocks: Blocks to start with; an empty page gets one empty text block

    Returns:
        The new page
    """
    blocks = _unique_ids(list(initial_blocks or []))
    if not blocks:
        blocks = [default_block()]
    return Page(title=title, blocks=blocks, updated_at=now_ms())


def create_page_from_blocks(title: str, blocks: Sequence[Block]) -> Page:
    """Instantiate a page from template blocks, giving every block a fresh id."""
    fresh = [block.model_copy(update={"id": new_id()}, deep=True) for block in blocks]
    return create_page(title, fresh)


def duplicate_page(page: Page) -> Page:
    """Copy a page under a new id with fresh block ids."""
    return create_page_from_blocks(page.title, page.blocks)


def create_block(block_type: BlockType = BlockType.TEXT, content: str = "", **fields: Any) -> Block:
    """
    Create a new block stamped with the current edit time.

    Args:
        block_type: Type tag of the block
        content: Text or serialized payload
        **fields: Any other Block field (metadata, checked, link_metadata, ...)

    Returns:
        The new block
    """
    fields.setdefault("last_edited_at", now_ms())
    return Block.model_validate({"type": block_type, "content": content, **fields})


def insert_block(page: Page, after_block_id: Optional[str], block: Block) -> Page:
    """
    Insert a block after another one.

    A None anchor inserts at the top; an anchor that is not on the page
    appends at the end. A block whose id is already used on the page is
    given a new id.
    """
    if page.find_block(block.id) is not None:
        block = block.model_copy(update={"id": _free_id({b.id for b in page.blocks})})

    blocks = list(page.blocks)
    if after_block_id is None:
        blocks.insert(0, block)
    else:
        index = page.block_index(after_block_id)
        if index == -1:
            blocks.append(block)
        else:
            blocks.insert(index + 1, block)
    return _touch(page, blocks)


def remove_block(page: Page, block_id: str) -> Page:
    """Remove a block. Removing the last block leaves a fresh empty text block."""
    if page.find_block(block_id) is None:
        return page
    blocks = [block for block in page.blocks if block.id != block_id]
    if not blocks:
        blocks = [default_block()]
    return _touch(page, blocks)


def reorder_block(page: Page, block_id: str, before_block_id: Optional[str]) -> Page:
    """
    Move a block so it sits directly before another block.

    A None anchor moves the block to the end of the page.
    """
    moving = page.find_block(block_id)
    if moving is None or block_id == before_block_id:
        return page

    blocks = [block for block in page.blocks if block.id != block_id]
    if before_block_id is None:
        blocks.append(moving)
    else:
        target = next((i for i, block in enumerate(blocks) if block.id == before_block_id), -1)
        if target == -1:
            return page
        blocks.insert(target, moving)
    return _touch(page, blocks)


def update_page(page: Page, patch: Dict[str, Any]) -> Page:
    """
    Apply a field patch to a page. The id never changes.

    Args:
        page: The page to update
        patch: Field values keyed by field name (e.g. {"title": "Notes"})

    Returns:
        The updated page with a new updated_at
    """
    data = page.model_dump()
    data.update(patch)
    data["id"] = page.id
    data["updated_at"] = now_ms()
    updated = Page.model_validate(data)
    if not updated.blocks:
        updated = updated.model_copy(update={"blocks": [default_block()]})
    return updated


def update_block(page: Page, block_id: str, patch: Dict[str, Any]) -> Page:
    """
    Apply a field patch to one block of a page.

    Content edits stamp last_edited_at unless the patch sets it.
    """
    index = page.block_index(block_id)
    if index == -1:
        return page

    current = page.blocks[index]
    data = current.model_dump()
    data.update(patch)
    data["id"] = current.id
    if "content" in patch and "last_edited_at" not in patch:
        data["last_edited_at"] = now_ms()

    blocks = list(page.blocks)
    blocks[index] = Block.model_validate(data)
    return _touch(page, blocks)


def set_block_link(page: Page, block_id: str, link: LinkMetadata) -> Page:
    """Attach link metadata to a block."""
    return update_block(page, block_id, {"link_metadata": link})


def clear_block_link(page: Page, block_id: str) -> Page:
    """Detach a block from whatever it referenced."""
    return update_block(page, block_id, {"link_metadata": None})


def move_block(source: Page, target: Page, block_id: str,
               after_block_id: Optional[str] = None) -> Tuple[Page, Page]:
    """
    Move a block between pages as delete-from-source plus insert-into-target.

    Returns:
        The updated (source, target) pair; for a move within one page both
        elements are the same page
    """
    block = source.find_block(block_id)
    if block is None:
        return source, target

    if source.id == target.id:
        if len(source.blocks) == 1:
            return source, source
        moved = insert_block(remove_block(source, block_id), after_block_id, block)
        return moved, moved

    return remove_block(source, block_id), insert_block(target, after_block_id, block)


def page_text(page: Page) -> str:
    """Return the text of a page's text-like blocks, one block per line."""
    return "\n".join(
        block.content for block in page.blocks
        if block.type in TEXT_TYPES and block.content.strip()
    )


def _touch(page: Page, blocks: List[Block]) -> Page:
    return page.model_copy(update={"blocks": blocks, "updated_at": now_ms()})


def _free_id(taken: Set[str]) -> str:
    candidate = new_id()
    while candidate in taken:
        candidate = new_id()
    return candidate


def _unique_ids(blocks: List[Block]) -> List[Block]:
    seen: Set[str] = set()
    taken = {block.id for block in blocks}
    result = []
    for block in blocks:
        if block.id in seen:
            block = block.model_copy(update={"id": _free_id(taken | seen)})
        seen.add(block.id)
        result.append(block)
    return result
