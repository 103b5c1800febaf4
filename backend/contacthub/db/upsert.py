"""Dialect-aware ``INSERT ... ON CONFLICT`` helpers.

Both SQLite and PostgreSQL expose ``on_conflict_do_nothing`` and
``on_conflict_do_update`` on their own ``insert`` constructs; the generic
SQLAlchemy ``insert`` does not.
"""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlmodel import Session

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def conflict_insert(session: Session, model: Any) -> Any:
    """Return an insert construct for ``model`` supporting ON CONFLICT clauses."""
    dialect = session.get_bind().dialect.name
    try:
        factory = _INSERTS[dialect]
    except KeyError as exc:
        raise RuntimeError(f"Dialect '{dialect}' does not support ON CONFLICT inserts") from exc
    return factory(model)


def row_values(instance: Any, *, exclude: set[str] | None = None) -> dict[str, Any]:
    """Column values of an unsaved SQLModel instance, ready for ``insert().values``."""
    data = instance.model_dump(exclude=exclude or set())
    columns = set(type(instance).__table__.columns.keys())
    return {key: value for key, value in data.items() if key in columns}
