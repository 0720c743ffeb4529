"""Exceptions raised by the vault link-graph indexer."""

from __future__ import annotations

from pathlib import Path


class VaultGraphError(Exception):
    """Base exception for vault graph operations."""


class VaultNotFoundError(VaultGraphError):
    """Raised when the vault root does not exist."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"Vault not found: {self.path}")


class DocumentNotFoundError(VaultGraphError):
    """Raised when a single document to (re)index is missing."""

    def __init__(self, path: str | Path) -> None:
        self.path = str(path)
        super().__init__(f"Document not found: {self.path}")


class StoreNotReadyError(VaultGraphError):
    """Raised when the link store has not been initialised yet."""

    def __init__(self) -> None:
        super().__init__("Database not initialized")


class VaultUnreadableError(VaultGraphError):
    """Raised when the vault root exists but cannot be listed."""

    def __init__(self, path: str | Path, reason: object) -> None:
        self.path = str(path)
        super().__init__(f"Cannot read vault {self.path}: {reason}")


class UnsafeDocumentPathError(VaultGraphError):
    """Raised when a single-document update names a path the vault does not index."""

    def __init__(self, path: str | Path, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"Refusing to index {self.path}: {reason}")
