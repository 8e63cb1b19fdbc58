"""Natural-key upsert helpers shared by the ingestion pipeline."""

import logging
from typing import Any, TypeVar

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def find_by(session: AsyncSession, model: type[T], **criteria: Any) -> T | None:
    """Return the single row matching all column == value criteria, or None."""
    filters = [getattr(model, col) == value for col, value in criteria.items()]
    result = await session.execute(select(model).where(*filters))
    return result.scalar_one_or_none()


async def get_or_create(
    session: AsyncSession,
    model: type[T],
    values: dict[str, Any],
    conflict_columns: list[str],
) -> tuple[T, bool]:
    """
    Insert-or-fetch by unique index.

    Looks the row up by its conflict columns and only inserts when absent;
    an existing row is returned untouched.

    Args:
        session: AsyncSession instance
        model: SQLModel table class
        values: Column values for a new row (must include conflict columns)
        conflict_columns: Columns that define uniqueness

    Returns:
        (instance, created) where created is True if the row was inserted.
        The new instance is flushed, so its primary key is populated.

    Example:
        team, created = await get_or_create(
            session, Team, {"tid": 13, "title": "Chennai Super Kings"},
            conflict_columns=["tid"],
        )
    """
    existing = await find_by(session, model, **{col: values[col] for col in conflict_columns})
    if existing is not None:
        return existing, False

    instance = model(**values)
    session.add(instance)
    await session.flush()
    return instance, True


async def upsert(
    session: AsyncSession,
    model: type[T],
    values: dict[str, Any],
    conflict_columns: list[str],
    update_columns: list[str] | None = None,
) -> tuple[T, bool]:
    """
    Insert-or-update by unique index.

    Args:
        session: AsyncSession instance
        model: SQLModel table class
        values: Dictionary of column values to insert/update
        conflict_columns: Columns that define uniqueness
        update_columns: Columns to update on conflict (defaults to all non-conflict columns)

    Returns:
        (instance, created) where created is False when an existing row was updated.
    """
    if update_columns is None:
        update_columns = [k for k in values.keys() if k not in conflict_columns]

    existing = await find_by(session, model, **{col: values[col] for col in conflict_columns})
    if existing is not None:
        for col in update_columns:
            if col in values:
                setattr(existing, col, values[col])
        await session.flush()
        return existing, False

    instance = model(**values)
    session.add(instance)
    await session.flush()
    return instance, True
