"""Tests for LinkStore."""

from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from vaultgraph.services.link_store import Document, Edge, LinkStore


def p(vault: Path, name: str) -> str:
    return str(vault / name)


def test_schema_has_target_index(store: LinkStore) -> None:
    with sqlite3.connect(store.db_path) as conn:
        names = {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'index'")}
    assert "idx_links_target" in names


@pytest.mark.asyncio
async def test_index_upserts_document(store: LinkStore, vault: Path) -> None:
    await store.index(p(vault, "A.md"), 100, 10, [])
    await store.index(p(vault, "A.md"), 200, 20, [])
    assert await store.get_document(p(vault, "A.md")) == Document(p(vault, "A.md"), 200, 20)
    assert await store.get_all_documents() == {p(vault, "A.md"): 200}


@pytest.mark.asyncio
async def test_index_replaces_edges(store: LinkStore, vault: Path) -> None:
    a = p(vault, "A.md")
    await store.index(a, 1, 1, [p(vault, "B.md"), p(vault, "C.md")])
    await store.index(a, 2, 1, [p(vault, "C.md"), p(vault, "D.md")])
    assert await store.get_outgoing_links(a) == [p(vault, "C.md"), p(vault, "D.md")]


@pytest.mark.asyncio
async def test_index_with_no_targets_clears_edges(store: LinkStore, vault: Path) -> None:
    a = p(vault, "A.md")
    await store.index(a, 1, 1, [p(vault, "B.md")])
    await store.index(a, 2, 1, [])
    assert await store.get_outgoing_links(a) == []


@pytest.mark.asyncio
async def test_duplicate_targets_are_deduplicated(store: LinkStore, vault: Path) -> None:
    a, b = p(vault, "A.md"), p(vault, "B.md")
    stored = await store.index(a, 1, 1, [b, b, b])
    assert stored == 1
    assert await store.get_outgoing_links(a) == [b]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "target",
    ["", "   ", "../outside.md", "notes/../../etc/passwd", "/etc/passwd"],
)
async def test_unsafe_targets_are_skipped(store: LinkStore, vault: Path, target: str) -> None:
    a, b = p(vault, "A.md"), p(vault, "B.md")
    stored = await store.index(a, 1, 1, [target, b])
    assert stored == 1
    assert await store.get_outgoing_links(a) == [b]


@pytest.mark.asyncio
async def test_vault_relative_targets_are_accepted(store: LinkStore, vault: Path) -> None:
    a = p(vault, "A.md")
    await store.index(a, 1, 1, ["C.md"])
    assert await store.get_outgoing_links(a) == ["C.md"]


def test_without_vault_root_only_traversal_is_rejected(tmp_path: Path) -> None:
    store = LinkStore(tmp_path / "graph.db")
    assert store.is_safe_target("/anywhere/Note.md")
    assert not store.is_safe_target("/anywhere/../Note.md")


@pytest.mark.asyncio
async def test_backlinks_and_all_edges(store: LinkStore, vault: Path) -> None:
    a, b, c = p(vault, "A.md"), p(vault, "B.md"), p(vault, "C.md")
    await store.index(a, 1, 1, [c])
    await store.index(b, 1, 1, [c, a])
    await store.index(c, 1, 1, [])

    assert await store.get_backlinks(c) == [a, b]
    assert await store.get_backlinks(a) == [b]
    assert await store.get_all_edges() == [Edge(a, c), Edge(b, a), Edge(b, c)]


@pytest.mark.asyncio
async def test_delete_cascades_outgoing_and_leaves_incoming(store: LinkStore, vault: Path) -> None:
    a, b, c = p(vault, "A.md"), p(vault, "B.md"), p(vault, "C.md")
    await store.index(a, 1, 1, [b])
    await store.index(b, 1, 1, [c])
    await store.index(c, 1, 1, [])

    assert await store.delete_document(b) is True
    assert await store.get_outgoing_links(b) == []
    assert await store.get_outgoing_links(a) == [b]
    assert await store.get_broken_edges() == [Edge(a, b)]


@pytest.mark.asyncio
async def test_delete_unknown_document(store: LinkStore, vault: Path) -> None:
    assert await store.delete_document(p(vault, "Nope.md")) is False


@pytest.mark.asyncio
async def test_batch_delete_counts_rows_removed(store: LinkStore, vault: Path) -> None:
    for name in ("A.md", "B.md", "C.md"):
        await store.index(p(vault, name), 1, 1, [])
    removed = await store.batch_delete([p(vault, "A.md"), p(vault, "B.md"), p(vault, "Gone.md")])
    assert removed == 2
    assert await store.batch_delete([]) == 0
    assert await store.get_all_documents() == {p(vault, "C.md"): 1}


@pytest.mark.asyncio
async def test_broken_edges(store: LinkStore, vault: Path) -> None:
    a, b = p(vault, "A.md"), p(vault, "B.md")
    await store.index(a, 1, 1, [b, "C.md"])
    await store.index(b, 1, 1, [])
    assert await store.get_broken_edges() == [Edge(a, "C.md")]


@pytest.mark.asyncio
async def test_orphans(store: LinkStore, vault: Path) -> None:
    a, b, lonely = p(vault, "A.md"), p(vault, "B.md"), p(vault, "Lonely.md")
    await store.index(a, 1, 1, [b])
    await store.index(b, 1, 1, [])
    await store.index(lonely, 1, 1, [])
    assert await store.get_orphaned_documents() == [lonely]


@pytest.mark.asyncio
async def test_update_path_preserves_graph_shape(store: LinkStore, vault: Path) -> None:
    a, b, c, new = p(vault, "A.md"), p(vault, "B.md"), p(vault, "C.md"), p(vault, "sub/B2.md")
    await store.index(a, 1, 1, [b])
    await store.index(b, 5, 50, [c, b])
    await store.index(c, 1, 1, [b])
    before = await store.get_outgoing_links(b)

    await store.update_path(b, new)

    assert await store.get_document(b) is None
    assert await store.get_document(new) == Document(new, 5, 50)
    assert await store.get_outgoing_links(new) == sorted(new if t == b else t for t in before)
    assert await store.get_outgoing_links(b) == []
    assert await store.get_backlinks(new) == sorted([a, c, new])
    assert await store.get_backlinks(b) == []
    assert await store.get_broken_edges() == []


@pytest.mark.asyncio
async def test_update_path_rewrites_broken_links(store: LinkStore, vault: Path) -> None:
    a = p(vault, "A.md")
    await store.index(a, 1, 1, [p(vault, "Old.md")])
    await store.update_path(p(vault, "Old.md"), p(vault, "New.md"))
    assert await store.get_outgoing_links(a) == [p(vault, "New.md")]


@pytest.mark.asyncio
async def test_update_path_onto_existing_document(store: LinkStore, vault: Path) -> None:
    a, b, x = p(vault, "A.md"), p(vault, "B.md"), p(vault, "X.md")
    await store.index(a, 1, 1, [x])
    await store.index(b, 2, 2, [a])
    await store.index(x, 3, 3, [a])
    # A links to both X and B, so the two edges merge after the rename
    await store.index(a, 1, 1, [x, b])

    await store.update_path(b, x)

    assert await store.get_document(x) == Document(x, 2, 2)
    assert await store.get_outgoing_links(x) == [a]
    assert await store.get_outgoing_links(a) == [x]


@pytest.mark.asyncio
async def test_update_path_same_path_is_noop(store: LinkStore, vault: Path) -> None:
    a = p(vault, "A.md")
    await store.index(a, 1, 1, [a])
    await store.update_path(a, a)
    assert await store.get_outgoing_links(a) == [a]


@pytest.mark.asyncio
async def test_clear_and_counts(store: LinkStore, vault: Path) -> None:
    await store.index(p(vault, "A.md"), 1, 1, [p(vault, "B.md"), "C.md"])
    await store.index(p(vault, "B.md"), 1, 1, [])
    assert await store.counts() == {"documents": 2, "links": 2, "broken": 1}

    await store.clear()
    assert await store.counts() == {"documents": 0, "links": 0, "broken": 0}


@pytest.mark.asyncio
async def test_store_persists_across_instances(tmp_path: Path, vault: Path) -> None:
    db = tmp_path / "data" / "graph.db"
    await LinkStore(db, vault).index(p(vault, "A.md"), 1, 1, [p(vault, "B.md")])
    assert await LinkStore(db, vault).get_outgoing_links(p(vault, "A.md")) == [p(vault, "B.md")]
