from dbplayground.core.migrations import MIGRATION_PLACEHOLDER
from dbplayground.core.transcript import build_migration_script, extract_executed_sql


def _tool_call(sql: str, success: bool = True) -> dict:
    result = {"success": True, "queryResults": []} if success else {"success": False, "error": "boom"}
    return {
        "toolCallId": "call-1",
        "toolName": "executeSql",
        "args": {"sql": sql},
        "result": result,
    }


def test_extract_executed_sql_keeps_only_successful_calls_in_order() -> None:
    messages = [
        {"role": "user", "content": "make me a table"},
        {
            "role": "assistant",
            "toolInvocations": [
                _tool_call("create table a (id integer)"),
                _tool_call("create tabel broken", success=False),
            ],
        },
        {
            "role": "assistant",
            "tool_invocations": [
                {"toolName": "getDatabaseSchema", "args": {}, "result": {"success": True}},
                _tool_call("alter table a add column name text"),
            ],
        },
    ]
    assert list(extract_executed_sql(messages)) == [
        "create table a (id integer)",
        "alter table a add column name text",
    ]


def test_extract_executed_sql_skips_pending_and_empty_calls() -> None:
    pending = {"toolName": "executeSql", "args": {"sql": "select 1"}}
    empty = _tool_call("   ")
    messages = [{"role": "assistant", "toolInvocations": [pending, empty]}]
    assert list(extract_executed_sql(messages)) == []


def test_build_migration_script_replays_transcript() -> None:
    messages = [
        {
            "role": "assistant",
            "toolInvocations": [
                _tool_call(
                    "create table people (id integer, name text);"
                    "insert into people (id, name) values (1, 'Ada')"
                ),
                _tool_call("select * from people"),
                _tool_call("drop table people_typo", success=False),
            ],
        },
        {
            "role": "assistant",
            "toolInvocations": [_tool_call("create index idx_people_name on people (name)")],
        },
    ]

    script = build_migration_script(messages)

    assert script.index("create table people") < script.index("create index idx_people_name")
    assert "insert" not in script
    assert "people_typo" not in script
    assert script.count(";") == 2


def test_build_migration_script_without_migrations_is_placeholder() -> None:
    messages = [{"role": "assistant", "toolInvocations": [_tool_call("select 1")]}]
    assert build_migration_script(messages) == MIGRATION_PLACEHOLDER
    assert build_migration_script([]) == MIGRATION_PLACEHOLDER
