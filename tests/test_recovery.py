"""
Unit tests for page deletion and undo.
"""

import unittest

from synapse.models import Block, BlockType, LinkMetadata, Page
from synapse.recovery import DeletionManager, RecoveryBuffer

from fakes import FakeTimerFactory


def make_pages(*ids):
    return [Page(id=i, title=i.upper(), blocks=[Block(content=i)]) for i in ids]


class TestRecoveryBuffer(unittest.TestCase):
    """Test the single-slot buffer and its expiry window."""

    def setUp(self):
        """Set up a buffer driven by fake timers."""
        self.timers = FakeTimerFactory()
        self.expired = []
        self.buffer = RecoveryBuffer(window_seconds=10.0, timer_factory=self.timers,
                                     on_expire=self.expired.append)

    def test_hold_and_take(self):
        """Test a held page can be taken back once."""
        page = make_pages("a")[0]
        self.assertIsNone(self.buffer.hold(page, 2))

        entry = self.buffer.take()
        self.assertEqual(entry.page.id, "a")
        self.assertEqual(entry.original_index, 2)
        self.assertIsNone(self.buffer.take())

    def test_window_starts_timer(self):
        """Test holding a page starts a daemon timer for the window."""
        self.buffer.hold(make_pages("a")[0], 0)

        timer = self.timers.live[0]
        self.assertEqual(timer.interval, 10.0)
        self.assertTrue(timer.daemon)

    def test_expiry_drops_page(self):
        """Test the window running out makes the page unrecoverable."""
        self.buffer.hold(make_pages("a")[0], 0)
        self.timers.fire_all()

        self.assertIsNone(self.buffer.peek())
        self.assertIsNone(self.buffer.take())
        self.assertEqual([e.page.id for e in self.expired], ["a"])

    def test_second_hold_evicts_first(self):
        """Test only the most recent deletion stays recoverable."""
        a, b = make_pages("a", "b")
        self.buffer.hold(a, 0)
        evicted = self.buffer.hold(b, 1)

        self.assertEqual(evicted.page.id, "a")
        self.assertEqual(self.buffer.peek().page.id, "b")
        self.assertEqual(len(self.timers.live), 1)

    def test_stale_timer_cannot_expire_new_entry(self):
        """Test an old timer firing late does not drop a newer deletion."""
        a, b = make_pages("a", "b")
        self.buffer.hold(a, 0)
        stale = self.timers.timers[0]
        self.buffer.hold(b, 0)

        # Simulate the old timer callback running despite cancellation
        stale.function()

        self.assertEqual(self.buffer.peek().page.id, "b")
        self.assertEqual(self.expired, [])

    def test_expiry_after_undo_is_noop(self):
        """Test expiry racing a completed undo changes nothing."""
        self.buffer.hold(make_pages("a")[0], 0)
        timer = self.timers.timers[0]
        self.assertIsNotNone(self.buffer.take())

        timer.function()
        self.assertEqual(self.expired, [])


class TestDeletionManager(unittest.TestCase):
    """Test delete with impact, undo, and the non-empty invariant."""

    def setUp(self):
        """Set up a manager driven by fake timers."""
        self.timers = FakeTimerFactory()
        self.manager = DeletionManager(
            RecoveryBuffer(window_seconds=10.0, timer_factory=self.timers),
            default_title="Workspace"
        )

    def test_delete_and_undo_restores_position(self):
        """Test undo puts the page back where it was."""
        pages = make_pages("a", "b", "c")
        result = self.manager.delete_page(pages, "b")

        self.assertTrue(result.deleted)
        self.assertEqual([p.id for p in result.pages], ["a", "c"])
        self.assertTrue(self.manager.pending.page.is_deleted)
        self.assertIsNotNone(self.manager.pending.page.deleted_at)

        restored = self.manager.undo(result.pages)
        self.assertEqual([p.id for p in restored], ["a", "b", "c"])
        self.assertFalse(restored[1].is_deleted)
        self.assertIsNone(restored[1].deleted_at)

    def test_undo_index_is_clamped(self):
        """Test a stale index past the end restores at the end."""
        pages = make_pages("a", "b", "c")
        result = self.manager.delete_page(pages, "c")

        shorter = result.pages[:1]
        restored = self.manager.undo(shorter)
        self.assertEqual([p.id for p in restored], ["a", "c"])

    def test_undo_after_expiry_is_noop(self):
        """Test nothing is restored once the window has elapsed."""
        result = self.manager.delete_page(make_pages("a", "b"), "a")
        self.timers.fire_all()

        self.assertIsNone(self.manager.undo(result.pages))

    def test_second_delete_evicts_first(self):
        """Test deleting another page makes the first one unrecoverable."""
        first = self.manager.delete_page(make_pages("a", "b", "c"), "a")
        second = self.manager.delete_page(first.pages, "b")

        self.assertEqual(second.evicted.page.id, "a")
        restored = self.manager.undo(second.pages)
        self.assertEqual([p.id for p in restored], ["b", "c"])
        self.assertIsNone(self.manager.undo(restored))

    def test_deleting_last_page_creates_default(self):
        """Test the active list is never left empty."""
        result = self.manager.delete_page(make_pages("only"), "only")

        self.assertEqual(len(result.pages), 1)
        self.assertEqual(result.pages[0].title, "Workspace")
        self.assertNotEqual(result.pages[0].id, "only")

        restored = self.manager.undo(result.pages)
        self.assertEqual([p.id for p in restored], ["only", result.pages[0].id])

    def test_unknown_page_is_noop(self):
        """Test deleting a missing page changes nothing."""
        pages = make_pages("a")
        result = self.manager.delete_page(pages, "zzz")

        self.assertFalse(result.deleted)
        self.assertEqual([p.id for p in result.pages], ["a"])
        self.assertIsNone(self.manager.pending)

    def test_deletion_impact(self):
        """Test the impact summary counts links from other pages."""
        target = Page(id="t", title="Target", updated_at=42, blocks=[Block(), Block()])
        linker = Page(id="l", blocks=[
            Block(type=BlockType.EMBED, link_metadata=LinkMetadata(source_page_id="t")),
            Block(type=BlockType.EMBED, link_metadata=LinkMetadata(source_page_id="t")),
        ])
        impact = self.manager.deletion_impact([target, linker], "t")

        self.assertEqual(impact.title, "Target")
        self.assertEqual(impact.block_count, 2)
        self.assertEqual(impact.linked_block_count, 2)
        self.assertEqual(impact.linking_page_count, 1)
        self.assertEqual(impact.last_modified, 42)

    def test_links_to_deleted_page_are_left_alone(self):
        """Test deletion does not rewrite blocks that link to the page."""
        target = Page(id="t", blocks=[Block()])
        link_block = Block(type=BlockType.EMBED, link_metadata=LinkMetadata(source_page_id="t"))
        linker = Page(id="l", blocks=[link_block])

        result = self.manager.delete_page([target, linker], "t")
        self.assertEqual(result.pages[0].blocks[0], link_block)


if __name__ == "__main__":
    unittest.main()
