"""Stateless request handlers for the dogs and adoptions tables.

Each handler takes a serverless-style event (``httpMethod``, ``body``,
``queryStringParameters``) and returns ``{statusCode, headers, body}``. They
are mounted on the application server under ``/api/dogs`` and
``/api/adoptions`` and can be deployed on their own.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from typing import Callable
from urllib.parse import parse_qs

from .ages import parse_birthdate
from .repository import delete_dog, insert_adoption, insert_dog, list_dogs

logger = logging.getLogger(__name__)

DOG_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET,POST,DELETE,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}
ADOPTION_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST,OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization",
}


class BadRequest(ValueError):
    """Raised while reading a request that must be answered with HTTP 400."""


def _respond(status: int, headers: dict, payload=None) -> dict:
    if payload is None:
        return {"statusCode": status, "headers": dict(headers), "body": ""}
    return {
        "statusCode": status,
        "headers": {**headers, "Content-Type": "application/json"},
        "body": json.dumps(payload),
    }


def _is_blank(value) -> bool:
    """Return True for values a form would treat as not provided.

    Containers count as provided even when empty.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return value == ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value == 0
    return False


def _json_body(event: dict) -> dict:
    raw = event.get("body") or "{}"
    try:
        body = json.loads(raw)
    except (TypeError, ValueError) as exc:
        raise BadRequest("Invalid JSON") from exc
    return body if isinstance(body, dict) else {}


def _query_param(event: dict, name: str) -> str | None:
    params = event.get("queryStringParameters") or {}
    value = params.get(name)
    if value is None and event.get("rawQuery"):
        value = parse_qs(event["rawQuery"]).get(name, [None])[0]
    return value or None


def _parse_pickup_time(value) -> datetime:
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as exc:
        raise BadRequest("Invalid pickupTime") from exc


def _method(event: dict) -> str:
    return str(event.get("httpMethod") or "").upper()


def handle_dogs(
    event: dict,
    *,
    connection_factory: Callable | None = None,
    ensure_schema_fn: Callable | None = None,
) -> dict:
    """List, create, and delete dog rows.

    Args:
        event: Request event with method, body and query parameters.
        connection_factory: Optional override for opening DB connections.
        ensure_schema_fn: Optional override for schema creation.

    Returns:
        Response dict with status code, CORS headers, and JSON body.
    """
    db_kwargs = {
        key: value
        for key, value in (
            ("connection_factory", connection_factory),
            ("ensure_schema_fn", ensure_schema_fn),
        )
        if value is not None
    }
    method = _method(event)
    if method == "OPTIONS":
        return _respond(204, DOG_HEADERS)

    try:
        if method == "GET":
            return _respond(200, DOG_HEADERS, list_dogs(**db_kwargs))

        if method == "POST":
            body = _json_body(event)
            required = ("name", "breed", "description", "attributes")
            if any(_is_blank(body.get(field)) for field in required):
                return _respond(400, DOG_HEADERS, {"error": "Missing required fields"})
            birthdate = None
            if not _is_blank(body.get("birthdate")):
                birthdate = parse_birthdate(body.get("birthdate"))
                if birthdate is None:
                    raise BadRequest("Invalid birthdate")
            parents = body.get("parents")
            row = insert_dog(
                name=body["name"],
                breed=body["breed"],
                description=body["description"],
                attributes=body["attributes"],
                birthdate=birthdate,
                age=body.get("age") or None,
                image_url=body.get("imageUrl") or None,
                gif_url=body.get("gifUrl") or None,
                parents=parents if parents else None,
                **db_kwargs,
            )
            logger.info(f"Created dog {row.get('id')} ({row.get('name')})")
            return _respond(201, DOG_HEADERS, row)

        if method == "DELETE":
            dog_id = _query_param(event, "id")
            if not dog_id:
                return _respond(400, DOG_HEADERS, {"error": "Missing id"})
            delete_dog(dog_id, **db_kwargs)
            logger.info(f"Deleted dog {dog_id}")
            return _respond(204, DOG_HEADERS)

        return _respond(405, DOG_HEADERS, {"error": "Method Not Allowed"})
    except BadRequest as exc:
        return _respond(400, DOG_HEADERS, {"error": str(exc)})
    except Exception:
        logger.exception(f"Dogs handler failed for {method}")
        return _respond(500, DOG_HEADERS, {"error": "Server error"})


def handle_adoptions(
    event: dict,
    *,
    connection_factory: Callable | None = None,
    ensure_schema_fn: Callable | None = None,
) -> dict:
    """Create adoption rows; POST is the only supported write."""
    db_kwargs = {
        key: value
        for key, value in (
            ("connection_factory", connection_factory),
            ("ensure_schema_fn", ensure_schema_fn),
        )
        if value is not None
    }
    method = _method(event)
    if method == "OPTIONS":
        return _respond(204, ADOPTION_HEADERS)
    if method != "POST":
        return _respond(405, ADOPTION_HEADERS, {"error": "Method Not Allowed"})

    try:
        body = _json_body(event)
        required = ("dogId", "dogName", "fullName", "pickupTime")
        if any(_is_blank(body.get(field)) for field in required):
            return _respond(400, ADOPTION_HEADERS, {"error": "Missing required fields"})
        row = insert_adoption(
            dog_id=str(body["dogId"]),
            dog_name=body["dogName"],
            full_name=body["fullName"],
            pickup_time=_parse_pickup_time(body["pickupTime"]),
            remarks=body.get("remarks") or None,
            **db_kwargs,
        )
        logger.info(f"Recorded adoption {row.get('id')} for dog {row.get('dog_id')}")
        return _respond(201, ADOPTION_HEADERS, row)
    except BadRequest as exc:
        return _respond(400, ADOPTION_HEADERS, {"error": str(exc)})
    except Exception:
        logger.exception("Adoptions handler failed")
        return _respond(500, ADOPTION_HEADERS, {"error": "Server error"})
