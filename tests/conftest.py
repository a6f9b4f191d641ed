from pathlib import Path

import pytest

from pgscope.core.pool import manager as manager_module
from pgscope.engines.sql import BulkLoader, NamedQueryLoader, TransactionCoordinator
from tests.utils.fakes import FakeAsyncConnectionPool, FakePoolManager


@pytest.fixture
def sql_dir(tmp_path: Path) -> Path:
    d = tmp_path / "sql"
    d.mkdir()
    (d / "test-query.sql").write_text(
        "SELECT %I:colName FROM %I:tableName WHERE foo = %L:fooVal", encoding="utf-8"
    )
    (d / "plain.sql").write_text("SELECT 1", encoding="utf-8")
    return d


@pytest.fixture
def loader(sql_dir: Path) -> NamedQueryLoader:
    return NamedQueryLoader(sql_dir)


@pytest.fixture
def fake_pool() -> FakePoolManager:
    return FakePoolManager()


@pytest.fixture
def coordinator(fake_pool: FakePoolManager, loader: NamedQueryLoader) -> TransactionCoordinator:
    return TransactionCoordinator(fake_pool, loader, BulkLoader(fake_pool))


@pytest.fixture
def fake_pool_cls(monkeypatch) -> type[FakeAsyncConnectionPool]:
    monkeypatch.setattr(manager_module, "AsyncConnectionPool", FakeAsyncConnectionPool)
    return FakeAsyncConnectionPool
