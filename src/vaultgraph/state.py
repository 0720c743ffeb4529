"""
LangGraph state schema – shared across all full-sync nodes.
"""

from __future__ import annotations

import operator
from pathlib import Path
from typing import Annotated

from typing_extensions import TypedDict

from vaultgraph.services.file_index import FileIndex
from vaultgraph.services.link_store import LinkStore


class SyncState(TypedDict, total=False):
    """State passed between every node of one full-sync pass."""

    # ── Inputs ─────────────────────────────────────────────────────────────
    vault_path: str                  # Vault root being reconciled
    extension: str                   # Indexable extension, e.g. ".md"
    trash_folder: str                # Trash directory name skipped by walks
    store: LinkStore                 # Destination link store

    # ── Scan ───────────────────────────────────────────────────────────────
    fs_files: dict[str, int]         # {path key: mtime seconds} seen on disk
    fs_paths: dict[str, Path]        # {path key: real path} for file I/O
    file_index: FileIndex            # Name resolver built from the same walk

    # ── Load ───────────────────────────────────────────────────────────────
    known_files: dict[str, int]      # {path: mtime seconds} recorded in the store

    # ── Index / prune counters ─────────────────────────────────────────────
    files_indexed: int
    files_skipped: int
    files_failed: int
    files_deleted: int

    # ── Error tracking ─────────────────────────────────────────────────────
    errors: Annotated[list[str], operator.add]  # Per-document failures
