"""
Debounced saving for Synapse.

Edits arrive far faster than a full rewrite should run. The saver keeps only
the most recent page list and writes it once the edits pause for a short
trailing delay. Failures are logged and left for the next edit to retry.
"""

import logging
import threading
from typing import Callable, List, Optional, Sequence

from ..exceptions import StorageError
from ..models import Page
from .engine import PersistenceEngine


class DebouncedSaver:
    """
    Trailing-delay save scheduler.

    Saves never overlap: a save that becomes due while another is running
    waits for it and then writes the newest pending state.
    """

    def __init__(self, engine: PersistenceEngine, delay: float = 0.5,
                 timer_factory: Callable = threading.Timer,
                 on_error: Optional[Callable[[StorageError], None]] = None):
        """
        Initialize the saver.

        Args:
            engine: Engine that performs the save
            delay: Seconds of quiet before a scheduled save runs
            timer_factory: Callable with threading.Timer's signature
            on_error: Called with the StorageError of a failed save
        """
        self.engine = engine
        self.delay = delay
        self.timer_factory = timer_factory
        self.on_error = on_error
        self.last_error: Optional[StorageError] = None
        self._pending: Optional[List[Page]] = None
        self._timer = None
        self._lock = threading.Lock()
        self._save_lock = threading.Lock()

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, pages: Sequence[Page]) -> None:
        """Queue a save of `pages`, restarting the trailing delay."""
        with self._lock:
            self._pending = list(pages)
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self.timer_factory(self.delay, self._run)
            self._timer.daemon = True
            self._timer.start()

    def flush(self) -> bool:
        """
        Run any pending save now.

        Returns:
            True if nothing was pending or the save succeeded
        """
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
        return self._run()

    def cancel(self) -> None:
        """Drop the pending save without writing it."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None

    def _run(self) -> bool:
        with self._save_lock:
            with self._lock:
                pages = self._pending
                self._pending = None
                self._timer = None
            if pages is None:
                return True

            try:
                self.engine.save(pages)
            except StorageError as e:
                logging.error(f"Save failed, will retry on next edit: {e}")
                self.last_error = e
                if self.on_error:
                    self.on_error(e)
                return False

            self.last_error = None
            return True
