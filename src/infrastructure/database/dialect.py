"""Dialect-aware statement helpers."""

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession


def insert_ignore_conflict(
    session: AsyncSession,
    model: type[Any],
    index_elements: list[str],
    values: dict[str, Any],
) -> Any:
    """Build ``INSERT ... ON CONFLICT DO NOTHING`` for the session's dialect.

    The statement's rowcount is 1 when a row was inserted and 0 when a
    conflicting row already existed.
    """
    dialect = session.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = postgresql.insert(model)
    elif dialect == "sqlite":
        stmt = sqlite.insert(model)
    else:
        raise NotImplementedError(f"Unsupported dialect for upsert: {dialect}")
    return stmt.values(**values).on_conflict_do_nothing(index_elements=index_elements)
