"""
store_handle.py – Explicitly passed handle to an initialised-or-not LinkStore.

Callers receive the handle by injection and ask it for the store; before
``open`` has succeeded the handle answers with ``StoreNotReadyError``
instead of silently doing nothing.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path

from vaultgraph.errors import StoreNotReadyError
from vaultgraph.services.link_store import LinkStore

logger = logging.getLogger(__name__)


class StoreHandle:
    """Thread-safe holder for the process's LinkStore."""

    def __init__(self, store: LinkStore | None = None) -> None:
        self._lock = threading.Lock()
        self._store = store

    @property
    def is_ready(self) -> bool:
        with self._lock:
            return self._store is not None

    async def open(self, db_path: Path, vault_root: Path | None = None) -> LinkStore:
        """Create (or replace) the store backing this handle."""
        store = await asyncio.to_thread(LinkStore, db_path, vault_root)
        with self._lock:
            self._store = store
        logger.info("Link store ready: %s", db_path)
        return store

    def close(self) -> None:
        with self._lock:
            self._store = None

    def get(self) -> LinkStore:
        with self._lock:
            if self._store is None:
                raise StoreNotReadyError()
            return self._store
