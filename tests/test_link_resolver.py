"""
Unit tests for link resolution.
"""

import unittest

from synapse.links import (
    BROKEN_REFERENCE_TEXT,
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
from synapse.models import Block, BlockType, LinkKind, LinkMetadata, Page


def link_to(page_id, block_id=None, kind=LinkKind.LIVE, content=""):
    return Block(
        type=BlockType.EMBED,
        content=content,
        link_metadata=LinkMetadata(source_page_id=page_id, source_block_id=block_id, kind=kind)
    )


class TestLinkQueries(unittest.TestCase):
    """Test inbound and outbound link queries."""

    def setUp(self):
        """Build a small linked workspace."""
        self.target = Page(id="t", title="Target", blocks=[
            Block(id="tb1", content="Alpha"),
            Block(id="tb2", content="Beta"),
        ])
        self.source_a = Page(id="a", title="A", blocks=[link_to("t"), link_to("t", "tb2")])
        self.source_b = Page(id="b", title="B", blocks=[Block(content="plain"), link_to("t")])
        self.other = Page(id="o", title="Other", blocks=[link_to("a")])
        self.pages = [self.target, self.source_a, self.source_b, self.other]

    def test_inbound_links(self):
        """Test pages linking to a page are found once each."""
        linking = inbound_links(self.pages, "t")
        self.assertEqual([p.id for p in linking], ["a", "b"])

    def test_outbound_links(self):
        """Test outbound targets are distinct and in reference order."""
        self.assertEqual([p.id for p in outbound_links(self.pages, self.source_a)], ["t"])
        self.assertEqual(outbound_links(self.pages, self.target), [])

    def test_outbound_skips_missing_targets(self):
        """Test links to missing pages do not appear as outbound targets."""
        page = Page(id="x", blocks=[link_to("gone"), link_to("t")])
        self.assertEqual([p.id for p in outbound_links(self.pages + [page], page)], ["t"])

    def test_counts(self):
        """Test linked block and linking page counts."""
        self.assertEqual(linked_block_count(self.pages, "t"), 3)
        self.assertEqual(linking_page_count(self.pages, "t"), 2)
        self.assertEqual(linked_block_count(self.pages, "b"), 0)

    def test_self_links(self):
        """Test a page linking to itself is inbound but not counted as impact."""
        page = Page(id="s", blocks=[link_to("s")])
        pages = [page]

        self.assertEqual([p.id for p in inbound_links(pages, "s")], ["s"])
        self.assertEqual(linked_block_count(pages, "s"), 0)
        self.assertEqual(linking_page_count(pages, "s"), 0)


class TestLinkResolution(unittest.TestCase):
    """Test following a single block's link."""

    def setUp(self):
        """Set up a target page."""
        self.target = Page(id="t", title="Target", blocks=[Block(id="tb", content="Alpha")])

    def test_unlinked_block(self):
        """Test a block without a link resolves to None."""
        self.assertIsNone(resolve_link([self.target], Block()))

    def test_page_link_resolves(self):
        """Test a page-level link resolves to the page."""
        resolution = resolve_link([self.target], link_to("t"))

        self.assertEqual(resolution.status, LinkStatus.RESOLVED)
        self.assertEqual(resolution.page.id, "t")
        self.assertIsNone(resolution.block)

    def test_block_link_resolves(self):
        """Test a block-level link resolves to the block."""
        resolution = resolve_link([self.target], link_to("t", "tb"))
        self.assertEqual(resolution.block.content, "Alpha")

    def test_missing_page_is_dangling(self):
        """Test a link to a deleted page is dangling, not an error."""
        resolution = resolve_link([self.target], link_to("gone"))
        self.assertTrue(resolution.is_dangling)

    def test_missing_block_is_dangling(self):
        """Test a link to a removed block is dangling."""
        resolution = resolve_link([self.target], link_to("t", "gone"))

        self.assertTrue(resolution.is_dangling)
        self.assertEqual(resolution.page.id, "t")

    def test_dangling_links(self):
        """Test listing every broken reference."""
        broken = link_to("gone")
        holder = Page(id="h", blocks=[link_to("t"), broken])

        found = dangling_links([self.target, holder])
        self.assertEqual([(p.id, b.id) for p, b in found], [("h", broken.id)])


class TestDisplayContent(unittest.TestCase):
    """Test what linked blocks render."""

    def setUp(self):
        """Set up a target page."""
        self.target = Page(id="t", title="Target", blocks=[
            Block(id="tb", content="Alpha"),
            Block(type=BlockType.DATABASE, content='{"rows": []}'),
            Block(type=BlockType.TEXT, content="Gamma"),
        ])

    def test_capture_content(self):
        """Test captured content for page and block targets."""
        self.assertEqual(capture_content(self.target, self.target.blocks[0]), "Alpha")
        self.assertEqual(capture_content(self.target), "Alpha\nGamma")
        self.assertEqual(capture_content(Page(title="Empty", blocks=[Block()])), "Empty")

    def test_live_link_follows_target(self):
        """Test a live link shows the target's current content."""
        block = link_to("t", "tb", content="stale")
        self.assertEqual(display_content([self.target], block), "Alpha")

    def test_snapshot_keeps_captured_content(self):
        """Test a snapshot ignores later edits to the target."""
        block = link_to("t", "tb", kind=LinkKind.SNAPSHOT, content="Alpha v1")
        self.assertEqual(display_content([self.target], block), "Alpha v1")

    def test_dangling_shows_placeholder(self):
        """Test a broken reference renders the placeholder text."""
        block = link_to("gone", content="whatever")
        self.assertEqual(display_content([self.target], block), BROKEN_REFERENCE_TEXT)

    def test_plain_block_shows_own_content(self):
        """Test unlinked blocks render their own content."""
        self.assertEqual(display_content([self.target], Block(content="hi")), "hi")


class TestLinkResolver(unittest.TestCase):
    """Test the memoizing resolver."""

    def test_results_follow_version(self):
        """Test a bumped version recomputes the inbound index."""
        resolver = LinkResolver()
        target = Page(id="t", blocks=[Block()])
        pages = (target, Page(id="a", blocks=[link_to("t")]))

        self.assertEqual([p.id for p in resolver.inbound_links(pages, "t", 1)], ["a"])
        self.assertEqual(resolver.linked_block_count(pages, "t", 1), 1)

        pages = (target, Page(id="a", blocks=[link_to("t")]), Page(id="b", blocks=[link_to("t")]))
        self.assertEqual([p.id for p in resolver.inbound_links(pages, "t", 2)], ["a", "b"])
        self.assertEqual(resolver.linked_block_count(pages, "t", 2), 2)

    def test_new_collection_with_same_version_recomputes(self):
        """Test a different page collection is never served a stale index."""
        resolver = LinkResolver()
        target = Page(id="t", blocks=[Block()])

        self.assertEqual(resolver.linked_block_count([target, Page(id="a", blocks=[link_to("t")])], "t"), 1)
        self.assertEqual(resolver.linked_block_count([target, Page(id="a", blocks=[Block()])], "t"), 0)
        self.assertEqual(resolver.inbound_links([target], "t"), [])

    def test_matches_pure_queries(self):
        """Test the resolver agrees with the plain functions."""
        resolver = LinkResolver()
        pages = [
            Page(id="t", blocks=[link_to("t")]),
            Page(id="a", blocks=[link_to("t"), link_to("t")]),
        ]

        self.assertEqual(
            [p.id for p in resolver.inbound_links(pages, "t")],
            [p.id for p in inbound_links(pages, "t")]
        )
        self.assertEqual(resolver.linked_block_count(pages, "t"), linked_block_count(pages, "t"))


if __name__ == "__main__":
    unittest.main()
