"""
index_changed_node – (Re)indexes every document that is new or newer on
disk than in the store: read → extract → resolve → store.index.

A failing document is counted and logged; the pass carries on with the
rest. Store errors are not caught here and abort the sync.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from vaultgraph.services.file_index import FileIndex, path_key
from vaultgraph.services.link_store import LinkStore
from vaultgraph.services.links import extract_wikilinks
from vaultgraph.state import SyncState

logger = logging.getLogger(__name__)


def read_document(path: Path, file_index: FileIndex) -> tuple[int, int, list[str]]:
    """Stat and parse one document. Returns (mtime seconds, size, resolved targets)."""
    stat = path.stat()
    content = path.read_text(encoding="utf-8", errors="replace")

    resolved: list[str] = []
    for link in extract_wikilinks(content):
        target = file_index.resolve(link.target)
        if target is None:
            logger.debug("Unresolved link [[%s]] in %s", link.target, path)
            continue
        resolved.append(path_key(target))
    return int(stat.st_mtime), stat.st_size, resolved


async def index_document_file(store: LinkStore, file_index: FileIndex, path: Path) -> int:
    """Index a single document against ``file_index``. Returns edges stored."""
    modified_at, size, resolved = await asyncio.to_thread(read_document, path, file_index)
    return await store.index(path_key(path), modified_at, size, resolved)


def needs_index(modified_at: int, known_modified_at: int | None) -> bool:
    return known_modified_at is None or modified_at > known_modified_at


async def index_changed_node(state: SyncState) -> SyncState:
    store = state["store"]
    file_index = state["file_index"]
    known_files = state.get("known_files", {})
    fs_paths = state.get("fs_paths", {})

    indexed = skipped = failed = 0
    errors: list[str] = []

    for path, modified_at in sorted(state.get("fs_files", {}).items()):
        if not needs_index(modified_at, known_files.get(path)):
            skipped += 1
            continue
        try:
            await index_document_file(store, file_index, fs_paths.get(path, Path(path)))
        except (OSError, ValueError) as exc:
            failed += 1
            logger.warning("Failed to index %s: %s", path, exc)
            errors.append(f"{path}: {exc}")
            continue
        indexed += 1

    logger.info("Indexed %d, skipped %d, failed %d", indexed, skipped, failed)
    return {
        "files_indexed": indexed,
        "files_skipped": skipped,
        "files_failed": failed,
        "errors": errors,
    }
