"""
prune_node – Removes documents whose backing file has disappeared.
"""

from __future__ import annotations

import logging

from vaultgraph.state import SyncState

logger = logging.getLogger(__name__)


def _removed_paths(state: SyncState) -> list[str]:
    return sorted(set(state.get("known_files", {})) - set(state.get("fs_files", {})))


async def prune_node(state: SyncState) -> SyncState:
    """
    Batch-delete vanished documents. The reported count is what the store
    actually removed, which can be lower than the candidate count when
    something else deleted rows in the meantime.
    """
    removed = _removed_paths(state)
    deleted = await state["store"].batch_delete(removed)
    logger.info("Removed %d of %d vanished documents", deleted, len(removed))
    return {"files_deleted": deleted}


def has_removed_documents(state: SyncState) -> str:
    """Conditional edge: route to prune or END."""
    return "prune" if _removed_paths(state) else "end"
