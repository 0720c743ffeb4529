"""
load_known_node – Reads the set of documents the store already tracks.
"""

from __future__ import annotations

import logging

from vaultgraph.state import SyncState

logger = logging.getLogger(__name__)


async def load_known_node(state: SyncState) -> SyncState:
    known_files = await state["store"].get_all_documents()
    logger.info("Link store tracks %d documents", len(known_files))
    return {"known_files": known_files}
