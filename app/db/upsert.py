"""Dialect-aware ``INSERT .. ON CONFLICT DO UPDATE``.

PostgreSQL in production, SQLite in tests; both expose the same
``on_conflict_do_update(index_elements=..., set_=...)`` API.
"""

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

_INSERTS = {
    "postgresql": pg_insert,
    "sqlite": sqlite_insert,
}


def upsert_insert(db: AsyncSession, model):
    dialect = db.get_bind().dialect.name
    try:
        return _INSERTS[dialect](model)
    except KeyError:
        raise NotImplementedError(f"Upsert is not supported for dialect {dialect!r}") from None
