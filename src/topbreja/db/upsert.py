"""Dialect-aware INSERT ... ON CONFLICT support."""

from __future__ import annotations

from typing import Any

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.orm import Session


def insert_for(db: Session, table: Any) -> Any:
    """Return an ``insert()`` construct that supports ``on_conflict_do_update``.

    Both PostgreSQL and SQLite expose the same ``on_conflict_*`` API; any other
    backend is rejected because toggles depend on a single atomic upsert.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(table)
    if dialect == "sqlite":
        return sqlite.insert(table)
    raise NotImplementedError(f"Upserts are not supported on the {dialect!r} dialect")
