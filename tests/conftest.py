"""Shared pytest fixtures."""
from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from vaultgraph.services.link_store import LinkStore
from vaultgraph.services.store_handle import StoreHandle

# vaultgraph.config builds its singleton at import time, before any fixture runs
os.environ.setdefault("VAULT_PATH", "/tmp/vaultgraph_vault")


@pytest.fixture(autouse=True)
def mock_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Provide minimum env vars so Settings can be instantiated in tests."""
    monkeypatch.setenv("VAULT_PATH", "/tmp/vaultgraph_vault")


@pytest.fixture()
def vault(tmp_path: Path) -> Path:
    v = tmp_path / "vault"
    v.mkdir()
    return v


@pytest.fixture()
def note(vault: Path) -> Callable[..., Path]:
    """Write a note below the vault, creating folders as needed."""

    def _write(relative: str, body: str = "") -> Path:
        path = vault / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(body, encoding="utf-8")
        return path

    return _write


@pytest.fixture()
def store(tmp_path: Path, vault: Path) -> LinkStore:
    return LinkStore(tmp_path / "data" / "graph.db", vault_root=vault)


@pytest.fixture()
def handle(store: LinkStore) -> StoreHandle:
    return StoreHandle(store)
