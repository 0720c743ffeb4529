"""
link_store.py – SQLite-backed store for the vault link graph.

Schema
------
  documents (path TEXT PK, modified_at INTEGER, size INTEGER)
  links     (source_path TEXT, target_path TEXT,
             PK(source_path, target_path),
             FK(source_path) → documents(path) ON DELETE CASCADE)

Edges belong to their source document: deleting a document removes its
outgoing edges, while edges pointing *at* it stay behind as broken links.
A target path does not need a documents row.

Every public method is a coroutine; the SQLite work runs on a worker
thread and writers are serialised by an in-process lock.
"""

from __future__ import annotations

import asyncio
import logging
import sqlite3
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path, PurePath

logger = logging.getLogger(__name__)

_SCHEMA = """
    CREATE TABLE IF NOT EXISTS documents (
        path        TEXT PRIMARY KEY,
        modified_at INTEGER NOT NULL,
        size        INTEGER NOT NULL
    );
    CREATE TABLE IF NOT EXISTS links (
        source_path TEXT NOT NULL,
        target_path TEXT NOT NULL,
        PRIMARY KEY (source_path, target_path),
        FOREIGN KEY (source_path) REFERENCES documents(path) ON DELETE CASCADE
    );
    CREATE INDEX IF NOT EXISTS idx_links_target ON links(target_path);
"""


@dataclass(frozen=True)
class Document:
    """A tracked note as recorded in the store."""

    path: str
    modified_at: int
    size: int


@dataclass(frozen=True)
class Edge:
    """A directed link from one document to a resolved target path."""

    source: str
    target: str


class LinkStore:
    """Persisted documents + links tables with replace-on-index semantics."""

    def __init__(self, db_path: Path, vault_root: Path | None = None) -> None:
        db_path = Path(db_path)
        db_path.parent.mkdir(parents=True, exist_ok=True)
        self._db_path = db_path
        self._vault_root = PurePath(vault_root) if vault_root is not None else None
        self._write_lock = threading.Lock()
        self._init_db()

    @property
    def db_path(self) -> Path:
        return self._db_path

    # ── Schema ───────────────────────────────────────────────────────────────

    def _init_db(self) -> None:
        with self._connect() as conn:
            conn.execute("PRAGMA journal_mode=WAL")
            conn.executescript(_SCHEMA)

    @contextmanager
    def _connect(self) -> Iterator[sqlite3.Connection]:
        conn = sqlite3.connect(self._db_path, timeout=30.0, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        # Cascades only fire when enabled on the connection
        conn.execute("PRAGMA foreign_keys=ON")
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    # ── Safety ───────────────────────────────────────────────────────────────

    def is_safe_target(self, target: str) -> bool:
        """Reject empty targets and anything that could point outside the vault."""
        if not target or not target.strip():
            return False
        path = PurePath(target)
        if ".." in path.parts:
            return False
        if path.is_absolute() and self._vault_root is not None:
            try:
                path.relative_to(self._vault_root)
            except ValueError:
                return False
        return True

    # ── Write ────────────────────────────────────────────────────────────────

    async def index(
        self,
        path: str,
        modified_at: int,
        size: int,
        resolved_targets: Iterable[str | Path],
    ) -> int:
        """
        Upsert ``path`` and replace its outgoing edges with ``resolved_targets``.

        Unsafe targets are skipped. Returns the number of distinct edges stored.
        """
        targets = [str(t) for t in resolved_targets]
        return await asyncio.to_thread(self._index, str(path), int(modified_at), int(size), targets)

    def _index(self, path: str, modified_at: int, size: int, targets: list[str]) -> int:
        rows: set[tuple[str, str]] = set()
        for target in targets:
            if not self.is_safe_target(target):
                logger.debug("Skipping unsafe link target %r from %s", target, path)
                continue
            rows.add((path, target))

        with self._write_lock, self._connect() as conn:
            conn.execute(
                """
                INSERT INTO documents (path, modified_at, size) VALUES (?, ?, ?)
                ON CONFLICT(path) DO UPDATE SET
                    modified_at = excluded.modified_at,
                    size        = excluded.size
                """,
                (path, modified_at, size),
            )
            conn.execute("DELETE FROM links WHERE source_path = ?", (path,))
            conn.executemany(
                "INSERT OR IGNORE INTO links (source_path, target_path) VALUES (?, ?)",
                sorted(rows),
            )
        return len(rows)

    async def update_path(self, old_path: str, new_path: str) -> None:
        """Rename a document key, carrying its row, outgoing and incoming edges."""
        await asyncio.to_thread(self._update_path, str(old_path), str(new_path))

    def _update_path(self, old: str, new: str) -> None:
        if old == new:
            return
        with self._write_lock, self._connect() as conn:
            exists = conn.execute(
                "SELECT 1 FROM documents WHERE path = ?", (old,)
            ).fetchone()
            if exists:
                # The renamed document replaces whatever was recorded at `new`
                conn.execute("DELETE FROM documents WHERE path = ?", (new,))
                conn.execute(
                    """
                    INSERT INTO documents (path, modified_at, size)
                    SELECT ?, modified_at, size FROM documents WHERE path = ?
                    """,
                    (new, old),
                )
                conn.execute(
                    "UPDATE OR IGNORE links SET source_path = ? WHERE source_path = ?",
                    (new, old),
                )
                conn.execute("DELETE FROM documents WHERE path = ?", (old,))
            conn.execute(
                """
                INSERT OR IGNORE INTO links (source_path, target_path)
                SELECT source_path, ? FROM links WHERE target_path = ?
                """,
                (new, old),
            )
            conn.execute("DELETE FROM links WHERE target_path = ?", (old,))
        logger.debug("Renamed %s → %s", old, new)

    async def delete_document(self, path: str) -> bool:
        """Remove one document; its outgoing edges cascade, incoming edges remain."""
        return await self.batch_delete([path]) > 0

    async def batch_delete(self, paths: Iterable[str]) -> int:
        """Delete many documents in one transaction. Returns rows actually removed."""
        return await asyncio.to_thread(self._batch_delete, [str(p) for p in paths])

    def _batch_delete(self, paths: list[str]) -> int:
        if not paths:
            return 0
        with self._write_lock, self._connect() as conn:
            cur = conn.executemany(
                "DELETE FROM documents WHERE path = ?", [(p,) for p in paths]
            )
            return cur.rowcount

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear)

    def _clear(self) -> None:
        with self._write_lock, self._connect() as conn:
            conn.execute("DELETE FROM links")
            conn.execute("DELETE FROM documents")

    # ── Read ─────────────────────────────────────────────────────────────────

    def _fetch(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        with self._connect() as conn:
            return conn.execute(sql, params).fetchall()

    async def get_outgoing_links(self, path: str) -> list[str]:
        rows = await asyncio.to_thread(
            self._fetch,
            "SELECT target_path FROM links WHERE source_path = ? ORDER BY target_path",
            (str(path),),
        )
        return [r["target_path"] for r in rows]

    async def get_backlinks(self, path: str) -> list[str]:
        rows = await asyncio.to_thread(
            self._fetch,
            "SELECT source_path FROM links WHERE target_path = ? ORDER BY source_path",
            (str(path),),
        )
        return [r["source_path"] for r in rows]

    async def get_all_edges(self) -> list[Edge]:
        rows = await asyncio.to_thread(
            self._fetch,
            "SELECT source_path, target_path FROM links ORDER BY source_path, target_path",
        )
        return [Edge(r["source_path"], r["target_path"]) for r in rows]

    async def get_document(self, path: str) -> Document | None:
        rows = await asyncio.to_thread(
            self._fetch,
            "SELECT path, modified_at, size FROM documents WHERE path = ?",
            (str(path),),
        )
        if not rows:
            return None
        r = rows[0]
        return Document(r["path"], r["modified_at"], r["size"])

    async def get_all_documents(self) -> dict[str, int]:
        """Return {path: modified_at} for every tracked document."""
        rows = await asyncio.to_thread(
            self._fetch, "SELECT path, modified_at FROM documents"
        )
        return {r["path"]: r["modified_at"] for r in rows}

    async def get_orphaned_documents(self) -> list[str]:
        """Documents with neither incoming nor outgoing edges."""
        rows = await asyncio.to_thread(
            self._fetch,
            """
            SELECT d.path FROM documents d
            WHERE NOT EXISTS (SELECT 1 FROM links l WHERE l.source_path = d.path)
              AND NOT EXISTS (SELECT 1 FROM links l WHERE l.target_path = d.path)
            ORDER BY d.path
            """,
        )
        return [r["path"] for r in rows]

    async def get_broken_edges(self) -> list[Edge]:
        """Edges whose target has no documents row."""
        rows = await asyncio.to_thread(
            self._fetch,
            """
            SELECT l.source_path, l.target_path FROM links l
            LEFT JOIN documents d ON d.path = l.target_path
            WHERE d.path IS NULL
            ORDER BY l.source_path, l.target_path
            """,
        )
        return [Edge(r["source_path"], r["target_path"]) for r in rows]

    async def counts(self) -> dict[str, int]:
        rows = await asyncio.to_thread(
            self._fetch,
            """
            SELECT
              (SELECT COUNT(*) FROM documents) AS documents,
              (SELECT COUNT(*) FROM links)     AS links,
              (SELECT COUNT(*) FROM links l
                 LEFT JOIN documents d ON d.path = l.target_path
                 WHERE d.path IS NULL)         AS broken
            """,
        )
        r = rows[0]
        return {"documents": r["documents"], "links": r["links"], "broken": r["broken"]}
