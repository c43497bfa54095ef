import pytest

from dbplayground.core.migrations import MIGRATION_PLACEHOLDER
from dbplayground.core.statements import StatementCategory
from dbplayground.db.meta_store import MetaStore
from tools.export_migrations import export_script


@pytest.fixture
def store(tmp_path):
    meta = MetaStore(tmp_path / "meta.duckdb")
    yield meta
    meta.close()


def test_export_script_renders_stored_log(store: MetaStore) -> None:
    record = store.create_database()
    store.append_statements(
        record.id,
        StatementCategory.MIGRATION,
        ["CREATE TABLE people (id INT, name TEXT)", "CREATE INDEX idx ON people(name)"],
    )

    script = export_script(store, record.id, StatementCategory.MIGRATION)

    assert script.startswith("create table people")
    assert script.index("create table people") < script.index("create index idx")
    assert script.endswith(";")


def test_export_script_of_empty_log_is_placeholder(store: MetaStore) -> None:
    record = store.create_database()
    assert export_script(store, record.id, StatementCategory.MIGRATION) == MIGRATION_PLACEHOLDER


def test_export_script_unknown_database(store: MetaStore) -> None:
    with pytest.raises(SystemExit):
        export_script(store, "missing", StatementCategory.SEED)
