"""Schema bootstrapper for the SQLite cache store.

Reads DDL from JSON schema files and applies them to a SQLite connection.
This is the only place that creates tables and indexes; the store module
holds no DDL of its own apart from the ``schema_info`` sentinel created here.
"""

from __future__ import annotations

import json
import sqlite3
from pathlib import Path
from typing import Any

# Default schema directory: schemas/ alongside the caching package root.
_DEFAULT_SCHEMA_DIR = Path(__file__).resolve().parent.parent / "schemas"

_SCHEMA_INFO_DDL = (
    "CREATE TABLE IF NOT EXISTS schema_info (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
)


class SchemaBootstrapper:
    """Applies JSON-defined DDL to a SQLite connection.

    Args:
        conn: Open SQLite connection.
        schema_dir: Directory containing ``tables.json`` and ``indexes.json``.
            Defaults to the ``schemas/`` directory of the caching package.
    """

    def __init__(
        self,
        conn: sqlite3.Connection,
        schema_dir: Path | None = None,
    ) -> None:
        self._conn = conn
        self._schema_dir = schema_dir if schema_dir is not None else _DEFAULT_SCHEMA_DIR

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def bootstrap(self, version: str = "1.0.0") -> None:
        """Create all tables and indexes; record the schema version.

        Safe to call on an existing database. All DDL uses ``IF NOT EXISTS``.

        Args:
            version: Schema version string to record in ``schema_info``.
        """
        self._ensure_schema_info()
        tables = self._load_json("tables.json")
        indexes = self._load_json("indexes.json")

        with self._conn:
            for table in tables:
                self._conn.execute(self._build_table_ddl(table))
            for index in indexes:
                self._conn.execute(self._build_index_ddl(index))
            self._conn.execute(
                "INSERT OR REPLACE INTO schema_info (key, value) VALUES ('version', ?)",
                (version,),
            )

    def get_version(self) -> str | None:
        """Return the stored schema version, or ``None`` if not set."""
        self._ensure_schema_info()
        row = self._conn.execute("SELECT value FROM schema_info WHERE key='version'").fetchone()
        if row is None:
            return None
        return str(row[0])

    def table_names(self) -> list[str]:
        """Names of the tables declared in ``tables.json``."""
        return [table["name"] for table in self._load_json("tables.json")]

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _ensure_schema_info(self) -> None:
        self._conn.execute(_SCHEMA_INFO_DDL)

    def _load_json(self, filename: str) -> list[Any]:
        path = self._schema_dir / filename
        return json.loads(path.read_text(encoding="utf-8"))

    @staticmethod
    def _build_table_ddl(table: dict[str, Any]) -> str:
        """Generate ``CREATE TABLE IF NOT EXISTS`` DDL from a table definition.

        Args:
            table: Dict with ``name``, ``columns``, and optional ``primary_key``.

        Returns:
            DDL string.
        """
        name: str = table["name"]
        col_defs = list(table["columns"])
        composite_pk: list[str] | None = table.get("primary_key")
        if composite_pk:
            col_defs.append(f"PRIMARY KEY ({', '.join(composite_pk)})")

        col_block = ",\n  ".join(col_defs)
        return f"CREATE TABLE IF NOT EXISTS {name} (\n  {col_block}\n)"

    @staticmethod
    def _build_index_ddl(index: dict[str, Any]) -> str:
        """Generate ``CREATE INDEX IF NOT EXISTS`` DDL from an index definition."""
        unique_kw = "UNIQUE " if index.get("unique", False) else ""
        col_list = ", ".join(index["columns"])
        return (
            f"CREATE {unique_kw}INDEX IF NOT EXISTS {index['name']} "
            f"ON {index['table']} ({col_list})"
        )
