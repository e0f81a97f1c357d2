"""Verify database connectivity and create the record tables if needed."""

from __future__ import annotations

from .repository import list_dogs


def main() -> None:
    dogs = list_dogs()
    print(f"OK ({len(dogs)} dogs)")


if __name__ == "__main__":
    main()
