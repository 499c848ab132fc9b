"""
Single-slot recovery buffer.

Holds the most recently deleted page for a bounded window. Holding a new
page evicts the previous one for good; an undo takes the page back out;
the window's expiry drops it. Expiry and undo race on a lock and a slot
generation number, so exactly one of them wins.
"""

import logging
import threading
from dataclasses import dataclass
from typing import Callable, Optional

from ..models import Page, now_ms


@dataclass
class PendingDeletion:
    """A deleted page awaiting undo, with its place in the page list."""
    page: Page
    original_index: int
    deleted_at: int
    generation: int


class RecoveryBuffer:
    """
    Owns the recovery slot and its cancelable expiry timer.
    """

    def __init__(self, window_seconds: float = 10.0,
                 timer_factory: Callable = threading.Timer,
                 on_expire: Optional[Callable[[PendingDeletion], None]] = None):
        """
        Initialize the buffer.

        Args:
            window_seconds: How long a held page stays recoverable
            timer_factory: Callable with threading.Timer's signature
            on_expire: Called with the entry when its window runs out
        """
        self.window_seconds = window_seconds
        self.timer_factory = timer_factory
        self.on_expire = on_expire
        self._entry: Optional[PendingDeletion] = None
        self._timer = None
        self._generation = 0
        self._lock = threading.Lock()

    def hold(self, page: Page, original_index: int) -> Optional[PendingDeletion]:
        """
        Put a page in the slot and start its recovery window.

        Args:
            page: The deleted page
            original_index: Its position in the page list before deletion

        Returns:
            The entry that was evicted to make room, if any
        """
        with self._lock:
            evicted = self._entry
            self._cancel_timer()
            self._generation += 1
            generation = self._generation
            self._entry = PendingDeletion(
                page=page,
                original_index=original_index,
                deleted_at=page.deleted_at or now_ms(),
                generation=generation
            )
            self._timer = self.timer_factory(self.window_seconds, lambda: self._expire(generation))
            self._timer.daemon = True
            self._timer.start()

        if evicted is not None:
            logging.info(f"Page {evicted.page.id} evicted from the recovery buffer and is gone")
        return evicted

    def take(self) -> Optional[PendingDeletion]:
        """Remove and return the held entry, cancelling its expiry."""
        with self._lock:
            entry = self._entry
            if entry is None:
                return None
            self._cancel_timer()
            self._entry = None
            self._generation += 1
            return entry

    def peek(self) -> Optional[PendingDeletion]:
        with self._lock:
            return self._entry

    def clear(self) -> None:
        """Drop the held entry, if any."""
        self.take()

    def _expire(self, generation: int) -> None:
        with self._lock:
            entry = self._entry
            if entry is None or entry.generation != generation:
                return
            self._entry = None
            self._timer = None

        logging.info(f"Recovery window for page {entry.page.id} elapsed; page is gone")
        if self.on_expire:
            self.on_expire(entry)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
