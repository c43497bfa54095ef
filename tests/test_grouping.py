from sqlglot import exp

from dbplayground.core.grouping import ClassifiedBatch, group_statements
from dbplayground.core.statements import StatementCategory
from dbplayground.db.sql_parser import parse_batch, statement_kind


def test_group_single_query() -> None:
    batch = group_statements(parse_batch("select * from t"))
    assert len(batch.queries) == 1
    assert batch.seeds == ()
    assert batch.migrations == ()


def test_group_create_then_insert() -> None:
    batch = group_statements(
        parse_batch(
            "create table t (id bigint primary key generated always as identity, name text);"
            "insert into t (name) values ('a')"
        )
    )
    assert [statement_kind(node) for node in batch.migrations] == ["create-table"]
    assert [statement_kind(node) for node in batch.seeds] == ["insert"]
    assert batch.queries == ()


def test_group_select_into_is_a_seed() -> None:
    batch = group_statements(parse_batch("select * into archive from t"))
    assert len(batch.seeds) == 1
    assert batch.queries == ()


def test_group_drops_unrecognized_statements() -> None:
    unknown = exp.Command(this="FROBNICATE", expression=exp.Literal.string("everything"))
    (create,) = parse_batch("create table t (id integer)")
    batch = group_statements([unknown, create])
    assert batch.migrations == (create,)
    assert unknown not in batch.queries + batch.seeds + batch.migrations


def test_group_preserves_relative_order_per_category() -> None:
    nodes = parse_batch(
        """
        create table a (id integer);
        insert into a (id) values (1);
        select * from a;
        create table b (id integer);
        insert into a (id) values (2);
        alter table b add column name text;
        select count(*) from a;
        """
    )
    batch = group_statements(nodes)
    assert list(batch.migrations) == [nodes[0], nodes[3], nodes[5]]
    assert list(batch.seeds) == [nodes[1], nodes[4]]
    assert list(batch.queries) == [nodes[2], nodes[6]]


def test_group_does_not_deduplicate() -> None:
    (create,) = parse_batch("create table a (id integer)")
    batch = group_statements([create, create])
    assert len(batch.migrations) == 2


def test_classified_batch_helpers() -> None:
    assert ClassifiedBatch().is_empty
    batch = group_statements(parse_batch("insert into t (id) values (1)"))
    assert not batch.is_empty
    assert batch.for_category(StatementCategory.SEED) == batch.seeds
    assert batch.for_category(StatementCategory.MIGRATION) == ()
