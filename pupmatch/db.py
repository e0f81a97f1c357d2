from __future__ import annotations

import os

import psycopg


def _get_pg_config() -> dict[str, str | int]:
    return {
        "host": os.environ.get("PGHOST", "localhost"),
        "port": int(os.environ.get("PGPORT", "5432")),
        "user": os.environ.get("PGUSER", "postgres"),
        "password": os.environ.get("PGPASSWORD", "postgres"),
        "dbname": os.environ.get("PGDATABASE", "pupmatch"),
    }


def _database_url() -> str | None:
    for name in ("NEON_DATABASE_URL", "DATABASE_URL"):
        value = os.environ.get(name, "").strip()
        if value:
            return value
    return None


def get_connection() -> psycopg.Connection:
    """Open a Postgres connection from a database URL, else ``PG*`` settings."""
    url = _database_url()
    if url:
        return psycopg.connect(url)
    return psycopg.connect(**_get_pg_config())
