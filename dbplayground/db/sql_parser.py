"""sqlglot-backed parsing, kind tagging and deparsing of executed SQL batches."""

from __future__ import annotations

from typing import Any, Optional

import sqlglot
from sqlglot import exp
from sqlglot.dialects.postgres import Postgres
from sqlglot.errors import ParseError, TokenError
from sqlglot.tokens import TokenType

ENGINE_DIALECT = "duckdb"

# Postgres utility verbs sqlglot has no statement parser for. Tokenizing them as
# commands keeps the whole statement as one exp.Command node.
UTILITY_COMMANDS = [
    "VACUUM",
    "LISTEN",
    "UNLISTEN",
    "NOTIFY",
    "CHECKPOINT",
    "REINDEX",
    "DISCARD",
    "DEALLOCATE",
    "CALL",
]


class PlaygroundPostgres(Postgres):
    class Tokenizer(Postgres.Tokenizer):
        KEYWORDS = {
            **Postgres.Tokenizer.KEYWORDS,
            **{verb: TokenType.COMMAND for verb in UTILITY_COMMANDS},
        }

    class Generator(Postgres.Generator):
        def datatype_sql(self, expression: exp.DataType) -> str:
            return super().datatype_sql(expression).lower()


DIALECT = PlaygroundPostgres()

# Postgres auto-increment column types and the plain integer type each becomes
# once a sequence default takes over.
SERIAL_TYPES = {
    exp.DataType.Type.SMALLSERIAL: exp.DataType.Type.SMALLINT,
    exp.DataType.Type.SERIAL: exp.DataType.Type.INT,
    exp.DataType.Type.BIGSERIAL: exp.DataType.Type.BIGINT,
}


class StatementParseError(ValueError):
    """Raised when an executed batch cannot be parsed into statements."""


def parse_batch(sql: str) -> list[exp.Expression]:
    """Parse a SQL batch into its ordered top-level statements."""
    if not sql or not sql.strip():
        return []
    try:
        parsed = sqlglot.parse(sql, read=DIALECT)
    except (ParseError, TokenError) as exc:
        raise StatementParseError(str(exc)) from exc
    return [node for node in parsed if node is not None]


def deparse_statement(node: exp.Expression) -> str:
    """
    Canonical Postgres SQL for one statement (no terminator).
    Pretty-printed, with data types and function names in lower case.
    """
    return node.sql(dialect=DIALECT, pretty=True, normalize_functions="lower")


def _sequence_default(table: exp.Table, column: exp.ColumnDef) -> tuple[str, exp.ColumnConstraint]:
    name = f"{table.name}_{column.name}_seq"
    if table.db:
        name = f"{table.db}.{name}"
    default = exp.ColumnConstraint(
        kind=exp.DefaultColumnConstraint(
            this=exp.Anonymous(this="nextval", expressions=[exp.Literal.string(name)])
        )
    )
    return name, default


def _identity_to_sequences(node: exp.Create) -> tuple[list[str], exp.Create]:
    """
    Rewrite identity and serial columns of a CREATE TABLE into sequence defaults.
    Returns the sequences to create first and the rewritten statement.
    """
    schema = node.this
    if not isinstance(schema, exp.Schema) or not isinstance(schema.this, exp.Table):
        return [], node

    node = node.copy()
    schema = node.this
    table = schema.this
    sequences: list[str] = []
    for column in schema.expressions:
        if not isinstance(column, exp.ColumnDef):
            continue

        identity = [
            constraint
            for constraint in column.args.get("constraints") or []
            if isinstance(constraint.args.get("kind"), exp.GeneratedAsIdentityColumnConstraint)
        ]
        kind = column.args.get("kind")
        serial = isinstance(kind, exp.DataType) and kind.this in SERIAL_TYPES
        if not identity and not serial:
            continue

        name, default = _sequence_default(table, column)
        for constraint in identity:
            constraint.pop()
        if serial:
            column.set("kind", exp.DataType(this=SERIAL_TYPES[kind.this]))
        column.append("constraints", default)
        sequences.append(f"CREATE SEQUENCE IF NOT EXISTS {name}")
    return sequences, node


def to_engine_statements(node: exp.Expression) -> list[str]:
    """
    One parsed statement rendered for the embedded DuckDB engine.
    Identity and serial columns need their sequences created first, so a
    single statement can expand to several.
    """
    prelude: list[str] = []
    if isinstance(node, exp.Create) and _object_tag(str(node.args.get("kind") or "")) == "table":
        prelude, node = _identity_to_sequences(node)
    return prelude + [node.sql(dialect=ENGINE_DIALECT)]


def unwrap_parens(node: Any) -> Any:
    """Strip unaliased parentheses around a top-level statement."""
    while isinstance(node, (exp.Paren, exp.Subquery)) and not node.alias:
        node = node.this
    return node


# Create/alter/drop object nouns spanning more than one word.
MULTI_WORD_OBJECTS = [
    ("FOREIGN", "DATA", "WRAPPER"),
    ("MATERIALIZED", "VIEW"),
    ("FOREIGN", "TABLE"),
    ("EVENT", "TRIGGER"),
    ("USER", "MAPPING"),
    ("TEXT", "SEARCH"),
    ("OPERATOR", "CLASS"),
    ("OPERATOR", "FAMILY"),
    ("ACCESS", "METHOD"),
    ("DEFAULT", "PRIVILEGES"),
]

OBJECT_MODIFIERS = {
    "OR",
    "REPLACE",
    "UNIQUE",
    "TEMP",
    "TEMPORARY",
    "UNLOGGED",
    "GLOBAL",
    "LOCAL",
    "TRUSTED",
    "PROCEDURAL",
    "CONCURRENTLY",
    "CONSTRAINT",
    "RECURSIVE",
}

# Expression classes with a fixed kind tag, looked up by class name so the
# mapping holds across sqlglot releases that rename or add classes.
EXPRESSION_KINDS = {
    "Insert": "insert",
    "Update": "update",
    "Delete": "delete",
    "Merge": "merge",
    "TruncateTable": "truncate",
    "Copy": "copy",
    "Comment": "comment",
    "Grant": "grant",
    "Revoke": "revoke",
    "Transaction": "transaction-control",
    "Commit": "transaction-control",
    "Rollback": "transaction-control",
    "Set": "variable-set",
    "Analyze": "vacuum",
    "Describe": "explain",
    "AlterTable": "alter-table",
}

COMMAND_KINDS = {
    "VACUUM": "vacuum",
    "ANALYZE": "vacuum",
    "EXPLAIN": "explain",
    "CALL": "call",
    "DO": "do",
    "RETURN": "return",
    "LISTEN": "listen",
    "UNLISTEN": "unlisten",
    "NOTIFY": "notify",
    "PREPARE": "prepare",
    "EXECUTE": "execute",
    "DEALLOCATE": "deallocate",
    "DECLARE": "declare-cursor",
    "FETCH": "fetch",
    "MOVE": "fetch",
    "CLOSE": "close-portal",
    "REINDEX": "reindex",
    "CLUSTER": "cluster",
    "CHECKPOINT": "checkpoint",
    "LOCK": "lock",
    "DISCARD": "discard",
    "LOAD": "load",
    "SET": "variable-set",
    "RESET": "variable-set",
    "SHOW": "variable-show",
    "GRANT": "grant",
    "REVOKE": "revoke",
    "COMMENT": "comment",
    "TRUNCATE": "truncate",
    "COPY": "copy",
    "BEGIN": "transaction-control",
    "START": "transaction-control",
    "END": "transaction-control",
    "COMMIT": "transaction-control",
    "ROLLBACK": "transaction-control",
    "ABORT": "transaction-control",
    "SAVEPOINT": "transaction-control",
    "RELEASE": "transaction-control",
    "SECURITY": "security-label",
    "IMPORT": "import-foreign-schema",
    "REASSIGN": "reassign-owned",
    "REFRESH": "refresh-materialized-view",
}

DEFINITION_VERBS = {"CREATE", "ALTER", "DROP"}

SELECT_SHAPES = (exp.Select, exp.Union, exp.Intersect, exp.Except)


def _object_tag(text: str) -> Optional[str]:
    """Kebab-case tag for the object noun at the start of `text`."""
    words = [word.strip("(").upper() for word in text.split()]
    while words and words[0] in OBJECT_MODIFIERS:
        words.pop(0)
    if not words or not words[0].isalpha():
        return None
    for noun in MULTI_WORD_OBJECTS:
        if tuple(words[: len(noun)]) == noun:
            return "-".join(noun).lower()
    return words[0].lower()


def _definition_kind(verb: str, node: exp.Expression) -> Optional[str]:
    kind = node.args.get("kind")
    if not isinstance(kind, str) or not kind.strip():
        return None
    noun = _object_tag(kind)
    if noun is None:
        return None
    if verb == "create" and noun == "table" and isinstance(
        unwrap_parens(node.args.get("expression")), SELECT_SHAPES
    ):
        return "create-table-as"
    return f"{verb}-{noun}"


def _command_kind(node: exp.Command) -> Optional[str]:
    verb = str(node.this or "").strip().upper()
    if not verb:
        return None
    rest = node.text("expression").strip()
    if " " in verb:
        # Commands parsed from unsupported syntax keep a multi-word prefix.
        verb, _, head = verb.partition(" ")
        rest = f"{head} {rest}".strip()
    if verb in DEFINITION_VERBS:
        noun = _object_tag(rest)
        if noun is None:
            return None
        if verb == "DROP" and noun == "owned":
            return "drop-owned"
        if verb == "ALTER" and noun == "system":
            return "alter-system"
        return f"{verb.lower()}-{noun}"
    return COMMAND_KINDS.get(verb)


def statement_kind(node: Any) -> Optional[str]:
    """
    Kind tag for one parsed statement, e.g. "select", "insert",
    "create-table", "transaction-control". None for anything unrecognised.
    """
    node = unwrap_parens(node)
    if not isinstance(node, exp.Expression):
        return None
    if isinstance(node, SELECT_SHAPES):
        return "select"
    if isinstance(node, exp.Command):
        return _command_kind(node)
    if isinstance(node, exp.Create):
        return _definition_kind("create", node)
    if isinstance(node, exp.Drop):
        return _definition_kind("drop", node)

    class_name = type(node).__name__
    if class_name == "Alter":
        return _definition_kind("alter", node)
    return EXPRESSION_KINDS.get(class_name)


def write_target(node: Any) -> Optional[exp.Expression]:
    """The INTO clause of a select-shaped statement, if it has one."""
    node = unwrap_parens(node)
    while isinstance(node, (exp.Union, exp.Intersect, exp.Except)):
        node = unwrap_parens(node.this)
    if isinstance(node, exp.Select):
        into = node.args.get("into")
        if isinstance(into, exp.Expression):
            return into
    return None
