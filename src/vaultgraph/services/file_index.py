"""
file_index.py – In-memory name → path table used to resolve wiki-links.

Every indexable document is entered twice: under its full filename
(``Note.md``) and under its stem (``Note``), so a link resolves whether
or not its author typed the extension.

The table is a snapshot of one vault walk. It is rebuilt, never patched:
a full sync builds one and reads it until the pass ends.
"""

from __future__ import annotations

import logging
import os
from collections import defaultdict
from collections.abc import Iterable, Iterator
from pathlib import Path

from vaultgraph.errors import VaultNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_EXTENSION = ".md"
DEFAULT_TRASH = ".trash"


def path_key(path: str | Path) -> str:
    """UTF-8-lossy string form of a path, used as the store key."""
    return os.fsencode(path).decode("utf-8", "replace")


def is_excluded(relative: Path, trash_folder: str = DEFAULT_TRASH) -> bool:
    """True if any component of a vault-relative path is hidden or the trash."""
    return any(
        part.startswith(".") or part == trash_folder for part in relative.parts
    )


def iter_vault_documents(
    vault_root: Path,
    extension: str = DEFAULT_EXTENSION,
    trash_folder: str = DEFAULT_TRASH,
) -> Iterator[Path]:
    """Yield indexable documents under ``vault_root``, skipping hidden dirs and the trash."""
    for dirpath, dirnames, filenames in os.walk(vault_root):
        # Prune in place so excluded trees are never descended into
        dirnames[:] = [
            d for d in dirnames if not d.startswith(".") and d != trash_folder
        ]
        for name in filenames:
            if name.startswith(".") or not name.endswith(extension):
                continue
            yield Path(dirpath) / name


class FileIndex:
    """Name resolver built from a snapshot of the vault."""

    def __init__(self, vault_root: Path, extension: str = DEFAULT_EXTENSION) -> None:
        self.vault_root = Path(vault_root)
        self.extension = extension
        self._name_to_paths: dict[str, list[Path]] = defaultdict(list)

    # ── Construction ────────────────────────────────────────────────────────

    @classmethod
    def build(
        cls,
        vault_root: Path,
        extension: str = DEFAULT_EXTENSION,
        trash_folder: str = DEFAULT_TRASH,
    ) -> FileIndex:
        """Walk ``vault_root`` once and index every document found."""
        vault_root = Path(vault_root)
        if not vault_root.is_dir():
            raise VaultNotFoundError(vault_root)
        return cls.from_paths(
            vault_root,
            iter_vault_documents(vault_root, extension, trash_folder),
            extension,
        )

    @classmethod
    def from_paths(
        cls,
        vault_root: Path,
        paths: Iterable[Path],
        extension: str = DEFAULT_EXTENSION,
    ) -> FileIndex:
        """Index an already collected set of document paths."""
        index = cls(vault_root, extension)
        for path in paths:
            index._add(Path(path))
        logger.debug("FileIndex: %d names indexed", len(index._name_to_paths))
        return index

    def _add(self, path: Path) -> None:
        self._name_to_paths[path.name].append(path)
        if path.name.endswith(self.extension):
            stem = path.name[: -len(self.extension)]
            if stem and stem != path.name:
                self._name_to_paths[stem].append(path)

    # ── Lookup ──────────────────────────────────────────────────────────────

    def __len__(self) -> int:
        return len(self._name_to_paths)

    def candidates(self, name: str) -> list[Path]:
        return list(self._name_to_paths.get(name, ()))

    def resolve(self, target: str) -> Path | None:
        """
        Resolve a raw link target to one document path, or None.

        Path-style targets (``folder/Note``) first try the literal path under
        the vault root, then any same-named document whose vault-relative path
        contains the fragment. Plain names pick the candidate closest to the
        vault root.
        """
        if "/" in target:
            direct = self.vault_root / target
            if direct.name:
                if not direct.name.endswith(self.extension):
                    direct = direct.with_name(direct.name + self.extension)
                if direct.is_file():
                    return direct

            filename = target.rstrip("/").rsplit("/", 1)[-1]
            matching = sorted(
                p for p in self.candidates(filename) if target in self._relative(p)
            )
            if matching:
                return matching[0]

        candidates = self.candidates(target)
        if not candidates:
            return None
        return min(candidates, key=lambda p: (self._depth(p), str(p)))

    # ── Helpers ─────────────────────────────────────────────────────────────

    def _relative(self, path: Path) -> str:
        try:
            return path.relative_to(self.vault_root).as_posix()
        except ValueError:
            return ""

    def _depth(self, path: Path) -> int:
        try:
            return len(path.relative_to(self.vault_root).parts)
        except ValueError:
            return len(path.parts)
