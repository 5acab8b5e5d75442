from __future__ import annotations

from typing import TYPE_CHECKING

from coffin.config import get_database_config, get_storage_config

if TYPE_CHECKING:
    from pathlib import Path

    import pytest


def test_database_uri_override_wins(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URI", "sqlite+pysqlite:///:memory:")

    assert get_database_config().uri == "sqlite+pysqlite:///:memory:"


def test_data_dir_override_builds_sqlite_uri(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.delenv("DATABASE_URI", raising=False)
    monkeypatch.setenv("COFFIN_DATA_DIR", str(tmp_path / "data"))

    storage = get_storage_config()
    config = get_database_config(storage=storage)

    assert storage.resolve_data_dir() == (tmp_path / "data").resolve()
    assert config.uri == f"sqlite+pysqlite:///{(tmp_path / 'data').resolve() / 'coffin.db'}"
    assert (tmp_path / "data").is_dir()
