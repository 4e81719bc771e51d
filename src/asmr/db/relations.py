"""Identifier normalization for relation references of mixed shape."""

from __future__ import annotations

# Largest value a BIGINT (and an SQLite INTEGER) primary key can hold.
MAX_DB_ID = 2**63 - 1


def relation_id(value: object) -> int | None:
    """
    Normalize a relation reference to an integer id.

    Accepted inputs:
        - ``int``: returned as is
        - ``str``: parsed after trimming (``"42"`` -> 42)
        - mapping with an ``"id"`` key, or an object with an ``id`` attribute
          (an ORM instance): its id, normalized recursively

    Anything else, including booleans, non-numeric strings and numbers
    outside ``1..MAX_DB_ID`` (no row can carry them), yields None.
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value if 0 < value <= MAX_DB_ID else None
    if isinstance(value, str):
        try:
            return relation_id(int(value.strip()))
        except ValueError:
            return None
    if isinstance(value, dict):
        return relation_id(value.get("id"))
    inner = getattr(value, "id", None)
    if inner is None or inner is value:
        return None
    return relation_id(inner)
