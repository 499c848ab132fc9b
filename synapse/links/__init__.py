"""Cross-page link queries."""

from .resolver import (
    BROKEN_REFERENCE_TEXT,
    LinkResolution,
    LinkResolver,
    LinkStatus,
    capture_content,
    dangling_links,
    display_content,
    inbound_links,
    linked_block_count,
    linking_page_count,
    outbound_links,
    resolve_link,
)

__all__ = [
    "BROKEN_REFERENCE_TEXT",
    "LinkResolution",
    "LinkResolver",
    "LinkStatus",
    "capture_content",
    "dangling_links",
    "display_content",
    "inbound_links",
    "linked_block_count",
    "linking_page_count",
    "outbound_links",
    "resolve_link",
]
