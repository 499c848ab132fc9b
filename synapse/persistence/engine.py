"""
Persistence engine for Synapse.

Saves rewrite the whole workspace into a DuckDB working copy, then write
that database file as one opaque blob to the durable store under a fixed
key. Loading reverses the process. A missing blob means a fresh workspace;
a blob that will not open is replaced by a fresh empty schema.
"""

import duckdb
import logging
import shutil
import tempfile
import threading
from pathlib import Path
from typing import List, Optional, Sequence

from ..database import DatabaseManager
from ..exceptions import StorageError
from ..models import Page
from ..storage import BlobStore


class PersistenceEngine:
    """
    Round-trips the page collection through the relational store and the
    durable blob store.

    Saves and loads are serialized by a lock: a save requested while another
    is in flight waits for it to finish.
    """

    def __init__(self, blob_store: BlobStore, blob_key: str = "db_blob",
                 working_dir: Optional[str] = None,
                 working_filename: str = "workspace.duckdb"):
        """
        Initialize the persistence engine.

        Args:
            blob_store: Durable key-addressed store
            blob_key: Fixed key the workspace blob lives under
            working_dir: Directory for the DuckDB working copy; a private
                temporary directory is used when omitted
            working_filename: Filename of the working copy
        """
        self.blob_store = blob_store
        self.blob_key = blob_key
        self._owns_working_dir = working_dir is None
        self.working_dir = Path(working_dir or tempfile.mkdtemp(prefix="synapse-"))
        self.working_path = self.working_dir / working_filename
        self._lock = threading.Lock()
        self._ready = False

    def load(self) -> List[Page]:
        """
        Load the stored workspace.

        Returns:
            Pages ordered by updated_at descending, or an empty list when
            nothing has been saved yet or the stored blob is unreadable

        Raises:
            StorageError: If the durable store cannot be read
        """
        with self._lock:
            blob = self.blob_store.get(self.blob_key)
            if blob is None:
                logging.info("No stored workspace found; starting with an empty schema")
                self._reset_working_copy()
                return []

            try:
                pages = self._install_blob(blob, self.working_path)
            except duckdb.Error as e:
                logging.error(f"Stored workspace could not be opened, starting fresh: {e}")
                self._reset_working_copy()
                return []
            except OSError as e:
                raise StorageError(f"Failed to unpack workspace: {e}", operation="load",
                                   key=self.blob_key) from e

            self._ready = True
            logging.info(f"Loaded {len(pages)} pages from storage")
            return pages

    def save(self, pages: Sequence[Page]) -> None:
        """
        Persist the complete page collection.

        In-memory state is never touched; a failed save can simply be retried.

        Args:
            pages: Every active page, in list order

        Raises:
            StorageError: If a page cannot be serialized, or the relational
                rewrite or the durable write fails
        """
        with self._lock:
            try:
                if not self._ready:
                    self._reset_working_copy()
                with DatabaseManager(str(self.working_path)) as db:
                    db.initialize_database()
                    db.rewrite_workspace(pages)
                data = self.working_path.read_bytes()
            except (duckdb.Error, OSError, TypeError, ValueError) as e:
                # TypeError/ValueError: a metadata bag that is not JSON-serializable
                self._ready = False
                raise StorageError(f"Failed to write workspace: {e}", operation="save",
                                   key=self.blob_key) from e

            self.blob_store.put(self.blob_key, data)
            logging.info(f"Saved {len(pages)} pages ({len(data)} bytes)")

    def export_blob(self) -> bytes:
        """
        Return the current durable blob, for backups.

        Raises:
            StorageError: If nothing has been saved yet or the store cannot be read
        """
        with self._lock:
            blob = self.blob_store.get(self.blob_key)
        if blob is None:
            raise StorageError("No saved workspace to export", operation="export", key=self.blob_key)
        return blob

    def import_blob(self, data: bytes) -> List[Page]:
        """
        Replace the stored workspace with a backup blob.

        The blob is opened in a scratch location first; an unreadable backup
        is rejected without touching the current workspace.

        Args:
            data: A blob previously produced by export_blob

        Returns:
            The pages contained in the backup

        Raises:
            StorageError: If the blob is not a readable workspace or cannot be stored
        """
        with self._lock:
            scratch_dir = Path(tempfile.mkdtemp(prefix="synapse-import-"))
            try:
                self._install_blob(data, scratch_dir / self.working_path.name)
            except duckdb.Error as e:
                raise StorageError(f"Backup is not a readable workspace: {e}",
                                   operation="import", key=self.blob_key) from e
            finally:
                shutil.rmtree(scratch_dir, ignore_errors=True)

            self.blob_store.put(self.blob_key, data)
            pages = self._install_blob(data, self.working_path)
            self._ready = True
            logging.info(f"Imported backup with {len(pages)} pages")
            return pages

    def close(self) -> None:
        """Remove the working copy if this engine created its directory."""
        if self._owns_working_dir:
            shutil.rmtree(self.working_dir, ignore_errors=True)

    def _install_blob(self, blob: bytes, path: Path) -> List[Page]:
        self._remove_database_files(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(blob)
        with DatabaseManager(str(path)) as db:
            db.initialize_database()
            return db.fetch_pages()

    def _reset_working_copy(self) -> None:
        self._remove_database_files(self.working_path)
        self.working_dir.mkdir(parents=True, exist_ok=True)
        with DatabaseManager(str(self.working_path)) as db:
            db.initialize_database()
        self._ready = True

    @staticmethod
    def _remove_database_files(path: Path) -> None:
        for candidate in (path, path.with_name(path.name + ".wal")):
            if candidate.exists():
                candidate.unlink()
