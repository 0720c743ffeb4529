"""
watcher.py – Turns filesystem notifications into debounced full syncs.

Events carry no usable diff: every event outside hidden directories and
the trash only means "consider re-syncing". Signals that arrive while a
sync is running schedule one more sync afterwards.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from vaultgraph.services.file_index import DEFAULT_TRASH, is_excluded
from vaultgraph.services.vault_indexer import SyncResult, VaultIndexer

logger = logging.getLogger(__name__)


class ChangeSignalHandler(FileSystemEventHandler):
    """Calls ``signal`` for every event that touches a watched part of the vault."""

    def __init__(
        self,
        vault_root: Path,
        signal: Callable[[], None],
        trash_folder: str = DEFAULT_TRASH,
    ) -> None:
        super().__init__()
        self._vault_root = Path(vault_root)
        self._signal = signal
        self._trash_folder = trash_folder

    def _is_relevant(self, raw_path: str | bytes) -> bool:
        if not raw_path:
            return False
        path = Path(os.fsdecode(raw_path))
        try:
            relative = path.relative_to(self._vault_root)
        except ValueError:
            return False
        return not is_excluded(relative, self._trash_folder)

    def on_any_event(self, event: FileSystemEvent) -> None:
        paths = (event.src_path, getattr(event, "dest_path", ""))
        if any(self._is_relevant(p) for p in paths):
            self._signal()


class VaultWatcher:
    """Watch a vault and run ``indexer.full_sync`` after each quiet period."""

    def __init__(
        self,
        indexer: VaultIndexer,
        debounce_seconds: float = 2.0,
        on_result: Callable[[SyncResult], None] | None = None,
    ) -> None:
        self._indexer = indexer
        self._debounce_seconds = debounce_seconds
        self._on_result = on_result
        self._loop: asyncio.AbstractEventLoop | None = None
        self._changed: asyncio.Event | None = None

    def notify(self) -> None:
        """Record a change signal. Safe to call from the observer thread."""
        if self._loop is None or self._changed is None:
            return
        self._loop.call_soon_threadsafe(self._changed.set)

    async def _debounce(self, changed: asyncio.Event) -> None:
        """Return once no signal has arrived for a full debounce window."""
        while True:
            changed.clear()
            try:
                await asyncio.wait_for(changed.wait(), timeout=self._debounce_seconds)
            except asyncio.TimeoutError:
                return

    async def run(self, max_syncs: int | None = None) -> None:
        """Watch until cancelled, or until ``max_syncs`` syncs have run."""
        self._loop = asyncio.get_running_loop()
        changed = self._changed = asyncio.Event()

        vault_root = self._indexer.vault_path
        handler = ChangeSignalHandler(vault_root, self.notify, self._indexer.trash_folder)
        observer = Observer()
        observer.schedule(handler, str(vault_root), recursive=True)
        observer.start()
        logger.info("Watching %s", vault_root)

        syncs = 0
        try:
            while max_syncs is None or syncs < max_syncs:
                await changed.wait()
                await self._debounce(changed)
                result = await self._indexer.full_sync()
                syncs += 1
                if self._on_result is not None:
                    self._on_result(result)
        finally:
            observer.stop()
            observer.join(timeout=5.0)
            self._loop = None
            logger.info("Stopped watching %s", vault_root)
