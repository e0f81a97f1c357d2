"""Database schema and query helpers for the dogs and adoptions tables."""

from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Callable

from .db import get_connection

DOG_COLUMNS = (
    "id, name, breed, birthdate, age, description, image_url, gif_url, "
    "attributes, parents, created_at"
)
ADOPTION_COLUMNS = "id, dog_id, dog_name, full_name, pickup_time, remarks, created_at"


def ensure_app_schema(conn) -> None:
    """Create the tables used by the record handlers.

    ``adoptions.dog_id`` has no foreign key; adoptions outlive their dog.
    """
    with conn.cursor() as cur:
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS dogs (
                id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
                name TEXT NOT NULL,
                breed TEXT NOT NULL,
                birthdate DATE,
                age TEXT,
                description TEXT NOT NULL,
                image_url TEXT,
                gif_url TEXT,
                attributes JSONB NOT NULL,
                parents JSONB,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            );
            """
        )
        cur.execute(
            """
            CREATE TABLE IF NOT EXISTS adoptions (
                id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
                dog_id TEXT NOT NULL,
                dog_name TEXT NOT NULL,
                full_name TEXT NOT NULL,
                pickup_time TIMESTAMPTZ NOT NULL,
                remarks TEXT,
                created_at TIMESTAMPTZ NOT NULL DEFAULT now()
            );
            """
        )
        cur.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_dogs_created_at
            ON dogs (created_at DESC);
            """
        )
        cur.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_adoptions_dog_id
            ON adoptions (dog_id);
            """
        )
    conn.commit()


def _to_wire(value):
    """Convert a column value into something ``json.dumps`` accepts."""
    if isinstance(value, dict):
        return {key: _to_wire(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_wire(item) for item in value]
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _row_dict(cur, row) -> dict:
    return _to_wire({column.name: value for column, value in zip(cur.description, row)})


def list_dogs(
    *,
    connection_factory: Callable = get_connection,
    ensure_schema_fn: Callable = ensure_app_schema,
) -> list[dict]:
    """Load every dog row, newest first."""
    with connection_factory() as conn:
        ensure_schema_fn(conn)
        with conn.cursor() as cur:
            cur.execute(f"SELECT {DOG_COLUMNS} FROM dogs ORDER BY created_at DESC;")
            rows = cur.fetchall()
            return [_row_dict(cur, row) for row in rows]


def insert_dog(
    name: str,
    breed: str,
    description: str,
    attributes: dict,
    birthdate: date | None = None,
    age: str | None = None,
    image_url: str | None = None,
    gif_url: str | None = None,
    parents: dict | None = None,
    *,
    connection_factory: Callable = get_connection,
    ensure_schema_fn: Callable = ensure_app_schema,
) -> dict:
    """Insert one dog and return the stored row."""
    with connection_factory() as conn:
        ensure_schema_fn(conn)
        with conn.cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO dogs (
                    name,
                    breed,
                    birthdate,
                    age,
                    description,
                    image_url,
                    gif_url,
                    attributes,
                    parents
                )
                VALUES (%s, %s, %s, %s, %s, %s, %s, %s::jsonb, %s::jsonb)
                RETURNING {DOG_COLUMNS};
                """,
                (
                    name,
                    breed,
                    birthdate,
                    age,
                    description,
                    image_url,
                    gif_url,
                    json.dumps(attributes, sort_keys=True),
                    json.dumps(parents, sort_keys=True) if parents else None,
                ),
            )
            row = _row_dict(cur, cur.fetchone())
        conn.commit()
    return row


def delete_dog(
    dog_id: str,
    *,
    connection_factory: Callable = get_connection,
    ensure_schema_fn: Callable = ensure_app_schema,
) -> None:
    with connection_factory() as conn:
        ensure_schema_fn(conn)
        with conn.cursor() as cur:
            cur.execute("DELETE FROM dogs WHERE id = %s;", (dog_id,))
        conn.commit()


def insert_adoption(
    dog_id: str,
    dog_name: str,
    full_name: str,
    pickup_time: datetime,
    remarks: str | None = None,
    *,
    connection_factory: Callable = get_connection,
    ensure_schema_fn: Callable = ensure_app_schema,
) -> dict:
    """Insert one adoption request and return the stored row."""
    with connection_factory() as conn:
        ensure_schema_fn(conn)
        with conn.cursor() as cur:
            cur.execute(
                f"""
                INSERT INTO adoptions (dog_id, dog_name, full_name, pickup_time, remarks)
                VALUES (%s, %s, %s, %s, %s)
                RETURNING {ADOPTION_COLUMNS};
                """,
                (dog_id, dog_name, full_name, pickup_time, remarks),
            )
            row = _row_dict(cur, cur.fetchone())
        conn.commit()
    return row
