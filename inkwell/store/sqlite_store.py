"""
Inkwell SQLite Store
--------------------
Generic relational access for the tool layer. Callers describe what they want
with Filter/OrderBy/QueryOptions; this module turns that into parameterized
SQL. Every value reaches SQLite as a bound parameter. Only identifiers that
passed validation and keywords from closed sets are written into SQL text.
"""

import json
import secrets
import sqlite3
import logging
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Mapping, Optional, Sequence, Tuple, Union

from inkwell.core.errors import MigrationError, StorageClosedError
from inkwell.core.types import Filter, OrderBy, QueryOptions, Row, validate_identifier
from inkwell.store.migrations import LEDGER_TABLE, MIGRATIONS, Migration

logger = logging.getLogger("Inkwell.SQLite")

FilterLike = Union[Filter, Mapping[str, Any]]

_COMPARISONS = {
    "eq": "=",
    "neq": "!=",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
    "like": "LIKE",
}


def generate_id() -> str:
    """32 lowercase hex characters from 16 random bytes."""
    return secrets.token_hex(16)


def serialize_value(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, bool):
        return 1 if value else 0
    if isinstance(value, (list, tuple, dict)):
        return json.dumps(value)
    return value


def _dict_factory(cursor: sqlite3.Cursor, row: tuple) -> Dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def _coerce_filters(filters: Optional[Sequence[FilterLike]]) -> List[Filter]:
    if not filters:
        return []
    return [f if isinstance(f, Filter) else Filter.model_validate(f) for f in filters]


def compile_where(filters: Optional[Sequence[FilterLike]]) -> Tuple[str, List[Any]]:
    """
    Build a WHERE clause (conjunction) and its parameters.

    Every filter compiles to exactly one clause. ``in`` with an empty list
    becomes ``0 = 1`` so the query matches nothing instead of everything.
    """
    parsed = _coerce_filters(filters)
    if not parsed:
        return "", []

    clauses: List[str] = []
    params: List[Any] = []
    for f in parsed:
        col = f.column
        if f.op in _COMPARISONS:
            clauses.append(f"{col} {_COMPARISONS[f.op]} ?")
            params.append(serialize_value(f.value))
        elif f.op == "ilike":
            clauses.append(f"{col} LIKE ? COLLATE NOCASE")
            params.append(serialize_value(f.value))
        elif f.op == "is":
            if f.value is None:
                clauses.append(f"{col} IS NULL")
            else:
                clauses.append(f"{col} IS ?")
                params.append(serialize_value(f.value))
        elif f.op == "in":
            if not isinstance(f.value, (list, tuple, set, frozenset)):
                raise ValueError(f"Filter 'in' on {col} requires a list value")
            values = list(f.value)
            if not values:
                clauses.append("0 = 1")
            else:
                clauses.append(f"{col} IN ({', '.join('?' for _ in values)})")
                params.extend(serialize_value(v) for v in values)
        elif f.op == "cs":
            clauses.append(f"{col} LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(str(f.value))}%")
        else:
            raise ValueError(f"Unsupported filter operator: {f.op}")

    return "WHERE " + " AND ".join(clauses), params


def compile_order(order: Sequence[OrderBy]) -> str:
    if not order:
        return ""
    parts = []
    for o in order:
        clause = f"{o.column} {o.direction.upper()}"
        if o.nulls == "first":
            clause += " NULLS FIRST"
        elif o.nulls == "last":
            clause += " NULLS LAST"
        parts.append(clause)
    return "ORDER BY " + ", ".join(parts)


def compile_select(opts: QueryOptions) -> Tuple[str, List[Any]]:
    projection = ", ".join(opts.select) if opts.select else "*"
    where, params = compile_where(opts.filters)
    order = compile_order(opts.order)

    limit = ""
    if opts.limit is not None or opts.offset is not None:
        # SQLite needs a LIMIT before OFFSET; -1 means unbounded.
        limit = "LIMIT ?"
        params.append(opts.limit if opts.limit is not None else -1)
        if opts.offset is not None:
            limit += " OFFSET ?"
            params.append(opts.offset)

    sql = " ".join(part for part in (f"SELECT {projection} FROM {opts.table}", where, order, limit) if part)
    return sql, params


def escape_like(value: str) -> str:
    """Make LIKE wildcards in a value match literally (pair with ESCAPE '\\')."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def split_statements(script: str) -> List[str]:
    """Split a SQL script into complete statements, dropping comment-only tails."""
    statements: List[str] = []
    buf = ""
    for piece in script.split(";"):
        buf += piece + ";"
        if sqlite3.complete_statement(buf):
            if _has_sql(buf):
                statements.append(buf.strip())
            buf = ""
    if _has_sql(buf.rstrip(";")):
        statements.append(buf.strip())
    return statements


def _has_sql(text: str) -> bool:
    for line in text.splitlines():
        stripped = line.split("--", 1)[0].strip().strip(";").strip()
        if stripped:
            return True
    return False


class SQLiteStore:
    """Thread-safe generic CRUD-by-filter access to one SQLite file."""

    def __init__(self, db_path, migrations: Optional[Sequence[Migration]] = None):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.migrations: List[Migration] = list(migrations if migrations is not None else MIGRATIONS)
        self._lock = threading.RLock()
        self._conn: Optional[sqlite3.Connection] = sqlite3.connect(
            self.db_path, check_same_thread=False, isolation_level=None
        )
        self._conn.row_factory = _dict_factory
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA foreign_keys=ON;")
        logger.debug("Opened SQLite store at %s", self.db_path)

    def _get_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise StorageClosedError("Store is closed")
        return self._conn

    @property
    def closed(self) -> bool:
        return self._conn is None

    # --- Queries ---

    def query(self, opts: Optional[QueryOptions] = None, **kwargs: Any) -> List[Row]:
        """Run a declarative SELECT. Accepts QueryOptions or its fields as kwargs."""
        if opts is None:
            opts = QueryOptions(**kwargs)
        sql, params = compile_select(opts)
        with self._lock:
            return self._get_conn().execute(sql, params).fetchall()

    def query_one(self, opts: Optional[QueryOptions] = None, **kwargs: Any) -> Optional[Row]:
        if opts is None:
            opts = QueryOptions(**kwargs)
        rows = self.query(opts.model_copy(update={"limit": 1}))
        return rows[0] if rows else None

    def count(self, table: str, filters: Optional[Sequence[FilterLike]] = None) -> int:
        validate_identifier(table)
        where, params = compile_where(filters)
        sql = f"SELECT COUNT(*) AS cnt FROM {table} {where}".strip()
        with self._lock:
            row = self._get_conn().execute(sql, params).fetchone()
        return int(row["cnt"]) if row else 0

    def raw(self, sql: str, params: Optional[Sequence[Any]] = None) -> List[Row]:
        """Escape hatch for joins and aggregates. Values must go through ``params``."""
        bound = [serialize_value(p) for p in (params or [])]
        with self._lock:
            return self._get_conn().execute(sql, bound).fetchall()

    # --- Writes ---

    def insert(self, table: str, data: Mapping[str, Any]) -> Row:
        validate_identifier(table)
        row = dict(data)
        if not row.get("id"):
            row["id"] = generate_id()
        columns = [validate_identifier(col) for col in row]
        placeholders = ", ".join("?" for _ in columns)
        sql = f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *"
        values = [serialize_value(row[col]) for col in columns]
        with self._lock:
            result = self._get_conn().execute(sql, values).fetchone()
        return result if result is not None else row

    def update(
        self,
        table: str,
        filters: Sequence[FilterLike],
        patch: Mapping[str, Any],
    ) -> List[Row]:
        """Apply ``patch`` to every matching row. Zero matches returns []."""
        validate_identifier(table)
        if not patch:
            raise ValueError("update requires at least one column to set")
        set_cols = [validate_identifier(col) for col in patch]
        set_clause = ", ".join(f"{col} = ?" for col in set_cols)
        where, where_params = compile_where(filters)
        sql = " ".join(part for part in (f"UPDATE {table} SET {set_clause}", where, "RETURNING *") if part)
        params = [serialize_value(patch[col]) for col in set_cols] + where_params
        with self._lock:
            return self._get_conn().execute(sql, params).fetchall()

    def delete(self, table: str, filters: Sequence[FilterLike]) -> List[Row]:
        validate_identifier(table)
        where, params = compile_where(filters)
        sql = " ".join(part for part in (f"DELETE FROM {table}", where, "RETURNING *") if part)
        with self._lock:
            return self._get_conn().execute(sql, params).fetchall()

    @contextmanager
    def transaction(self) -> Iterator["SQLiteStore"]:
        """Group several operations atomically. Nested use joins the outer transaction."""
        with self._lock:
            conn = self._get_conn()
            if conn.in_transaction:
                yield self
                return
            conn.execute("BEGIN")
            try:
                yield self
            except BaseException:
                conn.execute("ROLLBACK")
                raise
            conn.execute("COMMIT")

    # --- Migrations ---

    def applied_migrations(self) -> List[str]:
        with self._lock:
            conn = self._get_conn()
            conn.execute(LEDGER_TABLE)
            rows = conn.execute("SELECT name FROM _migrations ORDER BY rowid").fetchall()
        return [r["name"] for r in rows]

    def migrate(self) -> List[str]:
        """
        Apply pending migrations in declared order.

        Each script and its ledger row commit together, so a failure leaves
        the migration neither applied nor recorded. Returns the names applied
        by this call (empty when already up to date).
        """
        applied_now: List[str] = []
        with self._lock:
            conn = self._get_conn()
            conn.execute(LEDGER_TABLE)
            done = {r["name"] for r in conn.execute("SELECT name FROM _migrations").fetchall()}

            for migration in self.migrations:
                if migration.name in done:
                    continue
                conn.execute("BEGIN")
                try:
                    for statement in split_statements(migration.sql):
                        conn.execute(statement)
                    conn.execute("INSERT INTO _migrations (name) VALUES (?)", (migration.name,))
                except sqlite3.Error as e:
                    conn.execute("ROLLBACK")
                    logger.error("Migration %s failed: %s", migration.name, e)
                    raise MigrationError(migration.name, e) from e
                except BaseException:
                    conn.execute("ROLLBACK")
                    raise
                conn.execute("COMMIT")
                applied_now.append(migration.name)
                logger.info("Applied migration %s", migration.name)

        return applied_now

    def close(self) -> None:
        """Release the handle once in-flight operations finish. Safe to call twice."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None
                logger.debug("Closed SQLite store at %s", self.db_path)
