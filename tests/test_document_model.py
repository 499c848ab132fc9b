"""
Unit tests for the pure document operations.
"""

import unittest

from synapse import document
from synapse.models import Block, BlockType, LinkMetadata, Page


def make_page(*ids, title="Page"):
    return Page(title=title, updated_at=1, blocks=[Block(id=i, content=i.upper()) for i in ids])


class TestPageCreation(unittest.TestCase):
    """Test page construction helpers."""

    def test_create_page_gets_default_block(self):
        """Test an empty page starts with one empty text block."""
        page = document.create_page("Inbox")

        self.assertEqual(page.title, "Inbox")
        self.assertEqual(len(page.blocks), 1)
        self.assertEqual(page.blocks[0].type, BlockType.TEXT)
        self.assertEqual(page.blocks[0].content, "")

    def test_bootstrap_page(self):
        """Test the first-run page has a heading and a hint."""
        page = document.bootstrap_page("Workspace")

        self.assertEqual(page.title, "Workspace")
        self.assertEqual([b.type for b in page.blocks], [BlockType.HEADING, BlockType.TEXT])
        self.assertEqual(page.blocks[0].content, "Begin your journey")

    def test_duplicate_block_ids_are_reassigned(self):
        """Test block ids are unique within a new page."""
        page = document.create_page("Dupes", [Block(id="same"), Block(id="same")])

        ids = [b.id for b in page.blocks]
        self.assertEqual(len(set(ids)), 2)
        self.assertEqual(ids[0], "same")

    def test_create_from_template_gives_fresh_ids(self):
        """Test template instantiation never reuses template ids."""
        template = [Block(id="t1", content="Goal"), Block(id="t2", content="Steps")]
        page = document.create_page_from_blocks("Plan", template)

        self.assertEqual([b.content for b in page.blocks], ["Goal", "Steps"])
        self.assertNotIn("t1", [b.id for b in page.blocks])

    def test_duplicate_page(self):
        """Test duplicating a page copies content under new ids."""
        source = make_page("a", "b")
        copy = document.duplicate_page(source)

        self.assertNotEqual(copy.id, source.id)
        self.assertEqual([b.content for b in copy.blocks], ["A", "B"])


class TestBlockOperations(unittest.TestCase):
    """Test block insertion, removal and ordering."""

    def test_insert_after_anchor(self):
        """Test inserting directly after a block."""
        page = document.insert_block(make_page("a", "b"), "a", Block(id="n"))

        self.assertEqual([b.id for b in page.blocks], ["a", "n", "b"])
        self.assertGreater(page.updated_at, 1)

    def test_insert_without_anchor_goes_to_top(self):
        """Test a None anchor inserts at the beginning."""
        page = document.insert_block(make_page("a", "b"), None, Block(id="n"))
        self.assertEqual([b.id for b in page.blocks], ["n", "a", "b"])

    def test_insert_with_unknown_anchor_appends(self):
        """Test a missing anchor appends at the end."""
        page = document.insert_block(make_page("a", "b"), "zzz", Block(id="n"))
        self.assertEqual([b.id for b in page.blocks], ["a", "b", "n"])

    def test_insert_colliding_id_is_renamed(self):
        """Test an inserted block never duplicates an id on the page."""
        page = document.insert_block(make_page("a", "b"), "b", Block(id="a", content="copy"))

        ids = [b.id for b in page.blocks]
        self.assertEqual(len(set(ids)), 3)
        self.assertEqual(page.blocks[2].content, "copy")

    def test_remove_block(self):
        """Test removing a block."""
        page = document.remove_block(make_page("a", "b"), "a")
        self.assertEqual([b.id for b in page.blocks], ["b"])

    def test_remove_last_block_leaves_empty_block(self):
        """Test a page never ends up with zero blocks."""
        page = document.remove_block(make_page("a"), "a")

        self.assertEqual(len(page.blocks), 1)
        self.assertNotEqual(page.blocks[0].id, "a")
        self.assertEqual(page.blocks[0].content, "")

    def test_remove_unknown_block_is_noop(self):
        """Test removing a missing block returns the page unchanged."""
        original = make_page("a")
        self.assertIs(document.remove_block(original, "zzz"), original)

    def test_reorder_before_anchor(self):
        """Test moving a block before another."""
        page = document.reorder_block(make_page("a", "b", "c"), "c", "a")
        self.assertEqual([b.id for b in page.blocks], ["c", "a", "b"])

    def test_reorder_to_end(self):
        """Test a None anchor moves the block to the end."""
        page = document.reorder_block(make_page("a", "b", "c"), "a", None)
        self.assertEqual([b.id for b in page.blocks], ["b", "c", "a"])

    def test_reorder_unknown_is_noop(self):
        """Test reordering with unknown ids changes nothing."""
        original = make_page("a", "b")

        self.assertIs(document.reorder_block(original, "zzz", "a"), original)
        self.assertIs(document.reorder_block(original, "a", "zzz"), original)

    def test_update_block_keeps_id_and_stamps_edit(self):
        """Test content edits stamp last_edited_at and ids never change."""
        page = document.update_block(make_page("a"), "a", {"content": "new", "id": "hijack"})
        block = page.blocks[0]

        self.assertEqual(block.id, "a")
        self.assertEqual(block.content, "new")
        self.assertIsNotNone(block.last_edited_at)

    def test_update_page_title(self):
        """Test patching a page keeps its id and bumps updated_at."""
        original = make_page("a")
        page = document.update_page(original, {"title": "Renamed", "id": "other"})

        self.assertEqual(page.id, original.id)
        self.assertEqual(page.title, "Renamed")
        self.assertGreater(page.updated_at, original.updated_at)

    def test_link_helpers(self):
        """Test attaching and clearing link metadata."""
        link = LinkMetadata(source_page_id="target")
        page = document.set_block_link(make_page("a"), "a", link)
        self.assertEqual(page.blocks[0].link_metadata.source_page_id, "target")

        page = document.clear_block_link(page, "a")
        self.assertIsNone(page.blocks[0].link_metadata)


class TestMoveBlock(unittest.TestCase):
    """Test moving blocks between and within pages."""

    def test_move_between_pages(self):
        """Test a move deletes from the source and inserts into the target."""
        source, target = document.move_block(make_page("a", "b"), make_page("x"), "b", "x")

        self.assertEqual([b.id for b in source.blocks], ["a"])
        self.assertEqual([b.id for b in target.blocks], ["x", "b"])

    def test_move_only_block_leaves_source_valid(self):
        """Test moving a page's only block leaves a default block behind."""
        source, target = document.move_block(make_page("a"), make_page("x"), "a")

        self.assertEqual(len(source.blocks), 1)
        self.assertNotEqual(source.blocks[0].id, "a")
        self.assertEqual([b.id for b in target.blocks], ["a", "x"])

    def test_move_within_page(self):
        """Test a same-page move reorders the blocks."""
        page = make_page("a", "b", "c")
        source, target = document.move_block(page, page, "a", "c")

        self.assertIs(source, target)
        self.assertEqual([b.id for b in source.blocks], ["b", "c", "a"])

    def test_page_text(self):
        """Test page text skips structured and empty blocks."""
        page = Page(blocks=[
            Block(content="one"),
            Block(type=BlockType.DATABASE, content="{}"),
            Block(content="  "),
            Block(type=BlockType.HEADING, content="two"),
        ])
        self.assertEqual(document.page_text(page), "one\ntwo")


if __name__ == "__main__":
    unittest.main()
