# tools/export_migrations.py
# Writes the accumulated migration (or seed) script of one playground database
# to a .sql file so it can be replayed against another Postgres database.

import argparse
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dbplayground.config import PlaygroundConfig
from dbplayground.core.migrations import new_migration_accumulator, new_seed_accumulator
from dbplayground.core.statements import StatementCategory
from dbplayground.db.meta_store import MetaStore


def export_script(store: MetaStore, database_id: str, category: StatementCategory) -> str:
    """Render the stored statement log of a database as a formatted script."""
    if store.get_database(database_id) is None:
        raise SystemExit(f"Database with ID '{database_id}' doesn't exist")

    statements = store.load_statements(database_id, category)
    factory = (
        new_migration_accumulator
        if category is StatementCategory.MIGRATION
        else new_seed_accumulator
    )
    return factory(statements).script


def main() -> int:
    parser = argparse.ArgumentParser(description="Export a playground migration script.")
    parser.add_argument("database_id", help="ID of the playground database.")
    parser.add_argument(
        "--output",
        default="",
        help="Output .sql path (default: exports/<database_id>_<category>.sql).",
    )
    parser.add_argument(
        "--seeds",
        action="store_true",
        help="Export the seed script instead of the migration script.",
    )
    parser.add_argument(
        "--meta-db",
        default="",
        help="Path to the meta database (default: from PLAYGROUND_* environment).",
    )
    args = parser.parse_args()

    config = PlaygroundConfig.from_env()
    meta_db_path = Path(args.meta_db) if args.meta_db else config.meta_db_path
    if not meta_db_path.exists():
        raise SystemExit(f"{meta_db_path} does not exist.")

    category = StatementCategory.SEED if args.seeds else StatementCategory.MIGRATION
    store = MetaStore(meta_db_path)
    try:
        script = export_script(store, args.database_id, category)
    finally:
        store.close()

    output_path = Path(args.output or f"exports/{args.database_id}_{category.value}.sql")
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(script + "\n", encoding="utf-8")
    print(f"Done! Wrote {category.value} script to: {output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
