"""Sorting helpers for list endpoints."""

from __future__ import annotations

from sqlalchemy import asc, desc
from sqlalchemy.orm import Query

from app.core.database import Base

SORT_DIRECTIONS = ("asc", "desc")


def parse_order_by(
    order_by: str | None,
    model: type[Base],
    default_direction: str = "desc",
) -> list[tuple[str, str]]:
    """Parse ``"field:dir,field:dir"`` into ``(field, direction)`` pairs.

    Unknown columns are dropped. A missing direction means ``asc``; an invalid
    one falls back to ``default_direction``.
    """
    if not order_by:
        return []

    terms: list[tuple[str, str]] = []
    for raw in order_by.split(","):
        raw = raw.strip()
        if not raw:
            continue
        field, _, direction = raw.partition(":")
        field = field.strip()
        direction = direction.strip().lower() or "asc"
        if field.startswith("_") or not hasattr(model, field):
            continue
        if direction not in SORT_DIRECTIONS:
            direction = default_direction
        if any(existing == field for existing, _ in terms):
            continue
        terms.append((field, direction))
    return terms


def apply_order_by(
    query: Query,  # type: ignore[type-arg]
    model: type[Base],
    order_by: str | None,
    default_field: str = "created_at",
    default_direction: str = "desc",
) -> Query:  # type: ignore[type-arg]
    """Apply ordering to a SQLAlchemy query.

    Args:
        query: The SQLAlchemy query to sort.
        model: The SQLAlchemy model class.
        order_by: Comma separated sort terms in "field:direction" format
            (e.g. "priority:desc,name:asc"). If None or nothing valid is given,
            uses default_field and default_direction.
        default_field: Default column to sort by.
        default_direction: Default sort direction ("asc" or "desc").

    Returns:
        The query with ordering applied. ``id`` is always appended as a final
        tiebreaker so pages are stable.
    """
    terms = parse_order_by(order_by, model, default_direction)
    if not terms:
        terms = [(default_field, default_direction)]

    clauses = []
    for field, direction in terms:
        order_func = asc if direction == "asc" else desc
        clauses.append(order_func(getattr(model, field)))
    if all(field != "id" for field, _ in terms) and hasattr(model, "id"):
        clauses.append(asc(model.id))
    return query.order_by(*clauses)
