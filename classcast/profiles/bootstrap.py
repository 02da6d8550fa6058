"""
Profile table bootstrap helpers.

Intent:
    Ensure the profile table exists on startup (dev/stage friendly).

Security & Safety:
    - Controlled by `AUTO_CREATE_PROFILE_TABLE=true`.
    - Idempotent: `create ... if not exists` for the table and its lookup indexes.

Usage:
    Call `ensure_profiles_table_from_config(cfg)` once during app startup.
"""
from __future__ import annotations

import logging

import psycopg
from psycopg import sql

from classcast.config import ProvisioningConfig
from .stores_db import split_table

_log = logging.getLogger("classcast.profiles")

# Secondary lookups mirror the profile access paths (by email, role, status).
_INDEXED_COLUMNS = ("email", "role", "status")


def ensure_profiles_table(dsn: str, table: str) -> None:
    """Create the profile table and its indexes when missing."""
    schema, name = split_table(table)
    ident = sql.SQL("{}.{}").format(sql.Identifier(schema), sql.Identifier(name))
    create = sql.SQL(
        "create table if not exists {} ("
        "user_id text primary key, "
        "email text not null, "
        "role text not null, "
        "status text not null, "
        "record jsonb not null, "
        "created_at timestamptz not null default now(), "
        "updated_at timestamptz not null default now())"
    ).format(ident)
    with psycopg.connect(dsn, autocommit=True) as conn:
        with conn.cursor() as cur:
            cur.execute(create)
            for column in _INDEXED_COLUMNS:
                index = sql.Identifier(f"{name}_{column}_idx")
                cur.execute(
                    sql.SQL("create index if not exists {} on {} ({})").format(
                        index, ident, sql.Identifier(column)
                    )
                )
    _log.info("profile table ensured: %s.%s", schema, name)


def ensure_profiles_table_from_config(cfg: ProvisioningConfig) -> bool:
    """Run the bootstrap when enabled; return True when the table was ensured."""
    if not cfg.auto_create_profile_table or cfg.profiles_backend != "db":
        return False
    if not cfg.database_url:
        _log.warning("AUTO_CREATE_PROFILE_TABLE=true but DATABASE_URL is unset; skipping")
        return False
    ensure_profiles_table(cfg.database_url, cfg.profiles_table)
    return True


__all__ = ["ensure_profiles_table", "ensure_profiles_table_from_config"]
