"""
Database-backed profile store for production use (Postgres).

Why: Keycloak only tracks identity attributes. The extended, role-shaped
profile (academic or teaching metadata, bookkeeping status) lives in Postgres
keyed by the account id Keycloak issued.

Security:
- Intended to be used with a service role connection string; the table should
  not be exposed to anonymous clients.
- Identifiers are composed with `psycopg.sql`; the table name is validated at
  construction time.
"""
from __future__ import annotations

import re

import psycopg
from psycopg import sql
from psycopg.types.json import Json


_TABLE_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}(?:\.[A-Za-z_][A-Za-z0-9_]{0,62})?$")


def split_table(table: str) -> tuple[str, str]:
    """Validate a table identifier and return (schema, name)."""
    if not _TABLE_RE.match(table or ""):
        raise ValueError("Invalid table name")
    if "." in table:
        schema, name = table.split(".", 1)
    else:
        schema, name = "public", table
    return schema, name


class DBProfileStore:
    """Postgres-backed profile store.

    Parameters
    ----------
    dsn:
        Psycopg3 connection string. Use a service role.
    table:
        Fully qualified table name. Defaults to `public.user_profiles`.
    """

    def __init__(self, dsn: str | None, table: str = "public.user_profiles") -> None:
        if not dsn:
            raise RuntimeError("No database DSN provided for DBProfileStore")
        self._dsn = dsn
        self._schema, self._name = split_table(table)

    def _ident(self) -> sql.Composable:
        return sql.SQL("{}.{}").format(sql.Identifier(self._schema), sql.Identifier(self._name))

    def put(self, key: str, record: dict) -> None:
        """Upsert the profile record under `key` (the identity account id)."""
        stmt = sql.SQL(
            "insert into {} (user_id, email, role, status, record, created_at, updated_at) "
            "values (%s, %s, %s, %s, %s, %s, %s) "
            "on conflict (user_id) do update set email = excluded.email, role = excluded.role, "
            "status = excluded.status, record = excluded.record, updated_at = excluded.updated_at"
        ).format(self._ident())
        params = (
            key,
            record.get("email"),
            record.get("role"),
            record.get("status"),
            Json(record),
            record.get("createdAt"),
            record.get("updatedAt"),
        )
        with psycopg.connect(self._dsn, autocommit=True) as conn:
            with conn.cursor() as cur:
                cur.execute(stmt, params)


__all__ = ["DBProfileStore", "split_table"]
