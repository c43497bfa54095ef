import duckdb
import pytest

from dbplayground.config import PlaygroundConfig
from dbplayground.core.statements import StatementCategory
from dbplayground.db.meta_store import (
    META_MIGRATIONS,
    MetaMigration,
    MetaStore,
    run_meta_migrations,
)


@pytest.fixture
def store(tmp_path):
    meta = MetaStore(tmp_path / "meta.duckdb")
    yield meta
    meta.close()


def test_run_meta_migrations_applies_once() -> None:
    con = duckdb.connect()
    assert run_meta_migrations(con, META_MIGRATIONS) == [m.version for m in META_MIGRATIONS]
    assert run_meta_migrations(con, META_MIGRATIONS) == []
    con.close()


def test_run_meta_migrations_rejects_out_of_order_versions() -> None:
    con = duckdb.connect()
    run_meta_migrations(con, META_MIGRATIONS)
    reordered = [MetaMigration(version="000000000001", name="early", sql="select 1"), *META_MIGRATIONS]
    with pytest.raises(RuntimeError):
        run_meta_migrations(con, reordered)
    con.close()


def test_create_list_and_delete_databases(store: MetaStore) -> None:
    first = store.create_database("inventory")
    second = store.create_database()

    assert first.id != second.id
    assert store.get_database(first.id).name == "inventory"
    assert {record.id for record in store.list_databases()} == {first.id, second.id}

    store.delete_database(first.id)
    assert store.get_database(first.id) is None
    assert [record.id for record in store.list_databases()] == [second.id]


def test_statement_log_ordinals_continue_across_appends(store: MetaStore) -> None:
    record = store.create_database()
    store.append_statements(record.id, StatementCategory.MIGRATION, ["create table a (id int)"])
    store.append_statements(
        record.id,
        StatementCategory.MIGRATION,
        ["create table b (id int)", "drop table a"],
    )
    assert store.load_statements(record.id, StatementCategory.MIGRATION) == [
        "create table a (id int)",
        "create table b (id int)",
        "drop table a",
    ]


def test_statement_logs_are_kept_per_category_and_database(store: MetaStore) -> None:
    one = store.create_database()
    two = store.create_database()
    store.append_statements(one.id, StatementCategory.MIGRATION, ["create table a (id int)"])
    store.append_statements(one.id, StatementCategory.SEED, ["insert into a values (1)"])

    assert store.load_statements(one.id, StatementCategory.SEED) == ["insert into a values (1)"]
    assert store.load_statements(two.id, StatementCategory.MIGRATION) == []

    store.clear_statements(one.id)
    assert store.load_statements(one.id, StatementCategory.MIGRATION) == []
    assert store.load_statements(one.id, StatementCategory.SEED) == []


def test_query_statements_are_not_logged(store: MetaStore) -> None:
    record = store.create_database()
    with pytest.raises(ValueError):
        store.append_statements(record.id, StatementCategory.QUERY, ["select 1"])


def test_store_reopens_with_existing_data(tmp_path) -> None:
    path = tmp_path / "meta.duckdb"
    first = MetaStore(path)
    record = first.create_database("kept")
    first.append_statements(record.id, StatementCategory.MIGRATION, ["create table a (id int)"])
    first.close()

    reopened = MetaStore(path)
    assert reopened.get_database(record.id).name == "kept"
    assert reopened.load_statements(record.id, StatementCategory.MIGRATION) == [
        "create table a (id int)"
    ]
    reopened.close()


def test_store_opens_at_default_config_path(tmp_path) -> None:
    config = PlaygroundConfig.for_directory(tmp_path)
    assert config.meta_db_path.name == "meta.duckdb"

    meta = MetaStore(config.meta_db_path)
    record = meta.create_database()
    assert meta.get_database(record.id) == record
    meta.close()

    con = duckdb.connect(str(config.meta_db_path))
    versions = [row[0] for row in con.execute("select version from _meta.migrations").fetchall()]
    assert sorted(versions) == [m.version for m in META_MIGRATIONS]
    con.close()
