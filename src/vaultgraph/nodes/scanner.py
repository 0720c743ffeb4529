"""
scan_node – Walks the vault and snapshots every indexable document.

The same walk feeds the FileIndex used to resolve links for the rest of
the pass, so documents created mid-sync resolve on the next sync.
"""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

from vaultgraph.errors import VaultNotFoundError, VaultUnreadableError
from vaultgraph.services.file_index import FileIndex, iter_vault_documents, path_key
from vaultgraph.state import SyncState

logger = logging.getLogger(__name__)


def collect_vault(
    vault_root: Path, extension: str, trash_folder: str
) -> tuple[dict[str, int], dict[str, Path], FileIndex]:
    """
    Return ({key: mtime seconds}, {key: path}, FileIndex) for one walk of
    ``vault_root``. Keys are the UTF-8-lossy strings stored in the link store.
    """
    if not vault_root.is_dir():
        raise VaultNotFoundError(vault_root)
    # os.walk swallows a failing root listing and would report an empty vault
    try:
        with os.scandir(vault_root):
            pass
    except OSError as exc:
        raise VaultUnreadableError(vault_root, exc) from exc

    files: dict[str, int] = {}
    paths: dict[str, Path] = {}
    for path in iter_vault_documents(vault_root, extension, trash_folder):
        try:
            modified_at = int(path.stat().st_mtime)
        except OSError as exc:
            logger.debug("Skipping %s during scan: %s", path, exc)
            continue
        key = path_key(path)
        files[key] = modified_at
        paths[key] = path

    file_index = FileIndex.from_paths(vault_root, paths.values(), extension)
    return files, paths, file_index


async def scan_node(state: SyncState) -> SyncState:
    vault_root = Path(state["vault_path"])
    fs_files, fs_paths, file_index = await asyncio.to_thread(
        collect_vault,
        vault_root,
        state.get("extension", ".md"),
        state.get("trash_folder", ".trash"),
    )
    logger.info("Scanned %s: %d documents on disk", vault_root, len(fs_files))
    return {"fs_files": fs_files, "fs_paths": fs_paths, "file_index": file_index}
