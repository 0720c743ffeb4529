"""
Configuration – loads all settings from environment / .env file.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Paths ──────────────────────────────────────────────────────────────
    vault_path: Path = Field(..., description="Root directory of the notes vault")
    database_path: Path | None = Field(
        None,
        description="SQLite DB holding documents and links (default: <vault>/.vaultgraph/graph.db)",
    )

    # ── Walk rules ─────────────────────────────────────────────────────────
    note_extension: str = Field(".md", description="Extension of indexable documents")
    trash_folder: str = Field(".trash", description="Trash directory skipped by vault walks")

    # ── Watcher ────────────────────────────────────────────────────────────
    watch_debounce_seconds: float = Field(
        2.0, description="Quiet period after the last change signal before re-syncing"
    )

    # ── Logging / CLI ──────────────────────────────────────────────────────
    log_level: str = Field("INFO", description="Python logging level")

    # ── Derived helpers ────────────────────────────────────────────────────
    @property
    def db_path(self) -> Path:
        if self.database_path is not None:
            return self.database_path
        return self.vault_path / ".vaultgraph" / "graph.db"

    @field_validator("vault_path", "database_path", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path | None) -> Path | None:
        if v is None or v == "":
            return None
        return Path(v).expanduser().resolve()

    @field_validator("note_extension")
    @classmethod
    def dotted_extension(cls, v: str) -> str:
        return v if v.startswith(".") else f".{v}"


# Singleton – import this from the CLI layer only
settings = Settings()  # type: ignore[call-arg]
