"""
db/store.py
-----------
Generic CRUD over the named, user-scoped tables.

Repositories never write SQL strings by hand for the basic operations; they
describe what they want (table, filters, order) and this module composes the
query with ``psycopg2.sql`` so identifiers are always quoted safely.

Every database error is logged and re-raised as ``RemoteCallFailed``.
"""

from typing import Any, Iterable, Optional

import psycopg2
from psycopg2 import sql
from psycopg2.extras import RealDictCursor

from db.connection import transaction
from utils.errors import RemoteCallFailed
from utils.logger import get_logger

logger = get_logger(__name__)

TABLES = frozenset({
    "transactions",
    "budget_goals",
    "recurring_transactions",
    "portfolio_holdings",
    "categorization_rules",
    "chat_conversations",
    "profiles",
    "user_achievements",
    "user_streaks",
})

FUNCTIONS = frozenset({"check_rate_limit"})


def _table(name: str) -> sql.Identifier:
    if name not in TABLES:
        raise ValueError(f"Unknown table: {name}")
    return sql.Identifier(name)


def _where(filters: Optional[dict], ranges: Optional[dict]) -> tuple[sql.Composable, list]:
    clauses: list[sql.Composable] = []
    params: list = []
    for column, value in (filters or {}).items():
        if value is None:
            clauses.append(sql.SQL("{} IS NULL").format(sql.Identifier(column)))
        else:
            clauses.append(sql.SQL("{} = %s").format(sql.Identifier(column)))
            params.append(value)
    for column, (low, high) in (ranges or {}).items():
        if low is not None:
            clauses.append(sql.SQL("{} >= %s").format(sql.Identifier(column)))
            params.append(low)
        if high is not None:
            clauses.append(sql.SQL("{} <= %s").format(sql.Identifier(column)))
            params.append(high)
    if not clauses:
        return sql.SQL(""), params
    return sql.SQL(" WHERE ") + sql.SQL(" AND ").join(clauses), params


class DataStore:
    """
    PostgreSQL implementation of the generic data-store contract:
    select-with-filter-and-order, insert (single or bulk), update-by-id,
    delete-by-id and named function calls.
    """

    # ── READ ──────────────────────────────────────────────

    def select(
        self,
        table: str,
        filters: Optional[dict] = None,
        *,
        ranges: Optional[dict] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[dict]:
        """
        Fetch rows matching all equality ``filters`` and inclusive ``ranges``.

        Args:
            table: One of TABLES.
            filters: {column: value} equality filters (None → IS NULL).
            ranges: {column: (low, high)} inclusive bounds; either may be None.
            order_by: Column to sort by.
            descending: Sort direction.
            limit: Maximum number of rows.

        Returns:
            List of row dicts.
        """
        where, params = _where(filters, ranges)
        query = sql.SQL("SELECT * FROM {}").format(_table(table)) + where
        if order_by:
            direction = sql.SQL(" DESC") if descending else sql.SQL(" ASC")
            query += sql.SQL(" ORDER BY {}").format(sql.Identifier(order_by)) + direction
            query += sql.SQL(", {} ASC").format(sql.Identifier("id"))
        if limit:
            query += sql.SQL(" LIMIT %s")
            params.append(int(limit))
        return self._fetch(query, params, f"select from {table}")

    # ── CREATE ────────────────────────────────────────────

    def insert(self, table: str, rows: dict | Iterable[dict]) -> list[dict]:
        """
        Insert one row or a batch of rows in a single transaction.

        Rows are inserted in the given order; the returned list follows it.
        """
        batch = [rows] if isinstance(rows, dict) else list(rows)
        if not batch:
            return []
        return self.insert_batches([(table, batch)])[table]

    def insert_batches(self, batches: list[tuple[str, list[dict]]]) -> dict[str, list[dict]]:
        """
        Insert into several tables atomically: either every row is stored
        or none is. Rows may carry different column sets.

        Returns:
            {table: inserted rows in order}
        """
        identifiers = [_table(name) for name, _ in batches]
        inserted: dict[str, list[dict]] = {name: [] for name, _ in batches}
        try:
            with transaction() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    for identifier, (name, rows) in zip(identifiers, batches):
                        for row in rows:
                            columns = list(row.keys())
                            query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
                                identifier,
                                sql.SQL(", ").join(sql.Identifier(c) for c in columns),
                                sql.SQL(", ").join(sql.Placeholder() * len(columns)),
                            )
                            cur.execute(query, [row[c] for c in columns])
                            inserted[name].append(dict(cur.fetchone()))
            for name, rows in inserted.items():
                logger.info(f"Inserted {len(rows)} row(s) into {name}")
            return inserted
        except psycopg2.Error as e:
            names = ", ".join(name for name, _ in batches)
            logger.error(f"Failed to insert into {names}: {e}")
            raise RemoteCallFailed(f"insert into {names} failed: {e}") from e

    # ── UPDATE ────────────────────────────────────────────

    def update(self, table: str, row_id: str, user_id: str, fields: dict) -> Optional[dict]:
        """Patch a row by id, scoped to a user. Returns the new row or None."""
        if not fields:
            raise ValueError("update() needs at least one field")
        assignments = sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(c)) for c in fields
        )
        query = sql.SQL(
            "UPDATE {} SET {}, updated_at = NOW() WHERE id = %s AND user_id = %s RETURNING *"
        ).format(_table(table), assignments)
        params = [*fields.values(), row_id, user_id]
        rows = self._fetch(query, params, f"update {table} #{row_id}")
        return rows[0] if rows else None

    # ── DELETE ────────────────────────────────────────────

    def delete(self, table: str, row_id: str, user_id: str) -> bool:
        """Delete a row by id, scoped to a user."""
        query = sql.SQL("DELETE FROM {} WHERE id = %s AND user_id = %s RETURNING id").format(
            _table(table)
        )
        rows = self._fetch(query, [row_id, user_id], f"delete {table} #{row_id}")
        if rows:
            logger.info(f"Deleted {table} #{row_id} for user {user_id}")
        return bool(rows)

    # ── RPC ───────────────────────────────────────────────

    def rpc(self, function: str, params: dict) -> Any:
        """Call a whitelisted SQL function with named arguments, return its scalar."""
        if function not in FUNCTIONS:
            raise ValueError(f"Unknown function: {function}")
        args = sql.SQL(", ").join(
            sql.SQL("{} => %s").format(sql.Identifier(name)) for name in params
        )
        query = sql.SQL("SELECT {}({}) AS result").format(sql.Identifier(function), args)
        rows = self._fetch(query, list(params.values()), f"rpc {function}")
        return rows[0]["result"] if rows else None

    # ── HELPERS ───────────────────────────────────────────

    @staticmethod
    def _fetch(query: sql.Composable, params: list, what: str) -> list[dict]:
        try:
            with transaction() as conn:
                with conn.cursor(cursor_factory=RealDictCursor) as cur:
                    cur.execute(query, params)
                    return [dict(r) for r in cur.fetchall()]
        except psycopg2.Error as e:
            logger.error(f"Failed to {what}: {e}")
            raise RemoteCallFailed(f"{what} failed: {e}") from e
