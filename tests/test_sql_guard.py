import pytest

from sql_guard import validate_read_only_sql


@pytest.mark.parametrize(
    ("sql", "expected_ok"),
    [
        ("SELECT 1", True),
        ("WITH cte AS (SELECT 1) SELECT * FROM cte", True),
        ("SELECT 1; SELECT 2;", True),
        ("SELECT dropdown_value FROM t", True),
        ("", False),
        ("   ", False),
        ("INSERT INTO x VALUES (1)", False),
        ("SELECT * INTO archive FROM t", False),
        ("SELECT * FROM a; DROP TABLE a;", False),
        ("CREATE TABLE t (id integer)", False),
        ("SELECT (1 FROM t", False),
    ],
)
def test_validate_read_only_sql(sql: str, expected_ok: bool) -> None:
    is_ok, _ = validate_read_only_sql(sql)
    assert is_ok is expected_ok


def test_validate_read_only_sql_names_the_blocked_category() -> None:
    is_ok, message = validate_read_only_sql("SELECT * FROM a; DROP TABLE a;")
    assert is_ok is False
    assert "drop-table" in message
    assert "migration" in message

    _, message = validate_read_only_sql("UPDATE t SET name = 'x'")
    assert "seed" in message


def test_validate_read_only_sql_reports_parse_failures() -> None:
    is_ok, message = validate_read_only_sql("SELECT (1 FROM t")
    assert is_ok is False
    assert "could not be parsed" in message
