"""
vault_indexer.py – Entry points that keep the link store in step with the vault.

  - full_sync()        reconcile the whole vault (LangGraph pass, see graph.py)
  - index_document()   re-index one document after an external write
  - rename_document()  carry a rename through the graph
  - remove_document()  forget one document

Usage:
    handle = StoreHandle()
    await handle.open(db_path, vault_root)
    indexer = VaultIndexer(handle, vault_root)
    result = await indexer.full_sync()
"""

from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from vaultgraph.errors import (
    DocumentNotFoundError,
    StoreNotReadyError,
    UnsafeDocumentPathError,
    VaultNotFoundError,
    VaultUnreadableError,
)
from vaultgraph.graph import compile_sync_graph
from vaultgraph.nodes.indexer import index_document_file
from vaultgraph.services.file_index import (
    DEFAULT_EXTENSION,
    DEFAULT_TRASH,
    FileIndex,
    is_excluded,
    path_key,
)
from vaultgraph.services.store_handle import StoreHandle

logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Outcome of a full sync. Returned even when some documents failed."""

    success: bool
    files_indexed: int = 0
    files_deleted: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    duration_ms: int = 0
    error: str | None = None
    failures: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class VaultIndexer:
    """Reconciles one vault against the store behind ``handle``."""

    def __init__(
        self,
        handle: StoreHandle,
        vault_path: Path,
        extension: str = DEFAULT_EXTENSION,
        trash_folder: str = DEFAULT_TRASH,
    ) -> None:
        self.handle = handle
        self.vault_path = Path(vault_path)
        self.extension = extension
        self.trash_folder = trash_folder
        self._graph = compile_sync_graph()

    # ── Full sync ───────────────────────────────────────────────────────────

    async def full_sync(self) -> SyncResult:
        """
        Bring the store in line with the filesystem.

        Only a missing or unreadable vault, an uninitialised store or a store
        failure make the result unsuccessful; unreadable documents are counted
        in ``files_failed`` and the pass continues.
        """
        start = time.monotonic()
        try:
            store = self.handle.get()
            final_state = await self._graph.ainvoke(
                {
                    "vault_path": str(self.vault_path),
                    "extension": self.extension,
                    "trash_folder": self.trash_folder,
                    "store": store,
                    "errors": [],
                }
            )
        except (VaultNotFoundError, VaultUnreadableError, StoreNotReadyError) as exc:
            logger.error("Full sync aborted: %s", exc)
            return SyncResult(success=False, error=str(exc))
        except sqlite3.Error as exc:
            logger.error("Full sync failed on the link store: %s", exc)
            return SyncResult(success=False, error=f"Store failure: {exc}")

        result = SyncResult(
            success=True,
            files_indexed=final_state.get("files_indexed", 0),
            files_deleted=final_state.get("files_deleted", 0),
            files_skipped=final_state.get("files_skipped", 0),
            files_failed=final_state.get("files_failed", 0),
            duration_ms=int((time.monotonic() - start) * 1000),
            failures=list(final_state.get("errors", [])),
        )
        logger.info(
            "Sync complete: %d indexed, %d deleted, %d skipped, %d failed (%d ms)",
            result.files_indexed,
            result.files_deleted,
            result.files_skipped,
            result.files_failed,
            result.duration_ms,
        )
        return result

    # ── Single-document updates ─────────────────────────────────────────────

    def document_path(self, path: str | Path) -> Path:
        """
        Normalise ``path`` and check that a full sync would index it: absolute,
        under the vault root, outside hidden folders and the trash, and carrying
        the indexable extension. Raises UnsafeDocumentPathError otherwise.
        """
        raw = Path(path)
        if not raw.is_absolute():
            raise UnsafeDocumentPathError(raw, "path is not absolute")

        normalized = Path(os.path.normpath(raw))
        try:
            relative = normalized.relative_to(os.path.normpath(self.vault_path))
        except ValueError:
            raise UnsafeDocumentPathError(raw, "path is outside the vault") from None
        if not relative.parts:
            raise UnsafeDocumentPathError(raw, "path is the vault root")
        if is_excluded(relative, self.trash_folder):
            raise UnsafeDocumentPathError(raw, "path is hidden or in the trash")
        if not normalized.name.endswith(self.extension):
            raise UnsafeDocumentPathError(raw, f"not a {self.extension} document")
        return normalized

    async def index_document(self, path: str | Path) -> int:
        """
        Re-index one document against a freshly built FileIndex.
        Returns the number of edges stored for it.
        """
        store = self.handle.get()
        path = self.document_path(path)
        if not await asyncio.to_thread(path.is_file):
            raise DocumentNotFoundError(path)

        file_index = await asyncio.to_thread(
            FileIndex.build, self.vault_path, self.extension, self.trash_folder
        )
        edges = await index_document_file(store, file_index, path)
        logger.debug("Indexed %s (%d links)", path, edges)
        return edges

    async def rename_document(self, old_path: str | Path, new_path: str | Path) -> None:
        old = self.document_path(old_path)
        new = self.document_path(new_path)
        await self.handle.get().update_path(path_key(old), path_key(new))
        logger.info("Renamed %s → %s", old, new)

    async def remove_document(self, path: str | Path) -> bool:
        return await self.handle.get().delete_document(path_key(path))
