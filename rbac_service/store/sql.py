"""
SQLAlchemy Store
=============================================================================
CONCEPT: Repository Pattern over a Generic Collection Interface

This module implements rbac_service.store.base.PersistenceStore on top of
the ORM models in rbac_service.db.models. Each public method:

  1. opens its own session (one short transaction per operation)
  2. builds the query incrementally (filters and ordering only when given)
  3. converts ORM rows to plain dicts before the session closes

Services never see SQLAlchemy objects, so the same service code runs
against the in-memory store in tests.

ERROR TRANSLATION:
  IntegrityError caused by a foreign key  -> ReferencedRecordError
    PostgreSQL reports SQLSTATE 23503 ("violates foreign key constraint"),
    SQLite reports "FOREIGN KEY constraint failed".
  IntegrityError caused by a UNIQUE rule  -> DuplicateRecordError
    PostgreSQL reports SQLSTATE 23505 ("duplicate key value"),
    SQLite reports "UNIQUE constraint failed".
  Any other SQLAlchemyError or OSError     -> StoreError
=============================================================================
"""

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

from sqlalchemy import delete, select, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from sqlalchemy.inspection import inspect

from rbac_service.db.engine import async_session_maker
from rbac_service.db.models import PermissionProfile, RoleDefinition, User
from rbac_service.store.base import (
    PERMISSIONS,
    ROLES,
    USERS,
    DuplicateRecordError,
    Record,
    ReferencedRecordError,
    StoreError,
)

MODELS = {
    USERS: User,
    ROLES: RoleDefinition,
    PERMISSIONS: PermissionProfile,
}

FOREIGN_KEY_VIOLATION = "23503"
UNIQUE_VIOLATION = "23505"


def _model_for(collection: str):
    try:
        return MODELS[collection]
    except KeyError:
        raise StoreError(f"Unknown collection '{collection}'") from None


def _to_dict(obj: Any) -> Record:
    """Copy every mapped column of an ORM object into a plain dict."""
    return {attr.key: getattr(obj, attr.key) for attr in inspect(obj).mapper.column_attrs}


def is_foreign_key_violation(error: IntegrityError) -> bool:
    """True when the IntegrityError was raised by a foreign-key constraint."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == FOREIGN_KEY_VIOLATION:
        return True
    message = str(orig).lower()
    return "foreign key constraint" in message


def is_unique_violation(error: IntegrityError) -> bool:
    """True when the IntegrityError was raised by a UNIQUE or primary key constraint."""
    orig = error.orig
    code = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if code == UNIQUE_VIOLATION:
        return True
    message = str(orig).lower()
    return "unique constraint" in message or "duplicate key" in message


class SqlAlchemyStore:
    """PersistenceStore backed by an async SQLAlchemy session factory."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession] = async_session_maker):
        self._session_maker = session_maker

    @asynccontextmanager
    async def _session(self, collection: str, record_id: str | None = None) -> AsyncIterator[AsyncSession]:
        try:
            async with self._session_maker() as session:
                yield session
        except IntegrityError as e:
            if record_id is not None and is_foreign_key_violation(e):
                raise ReferencedRecordError(collection, record_id, str(e.orig)) from e
            if is_unique_violation(e):
                raise DuplicateRecordError(collection, str(e.orig)) from e
            raise StoreError(f"Integrity error on {collection}: {e.orig}") from e
        except (SQLAlchemyError, OSError) as e:
            raise StoreError(f"Store failure on {collection}: {e}") from e

    async def list_all(self, collection: str, order_by: str | None = None) -> list[Record]:
        model = _model_for(collection)
        query = select(model)
        if order_by:
            query = query.order_by(getattr(model, order_by))

        async with self._session(collection) as session:
            result = await session.execute(query)
            return [_to_dict(row) for row in result.scalars().all()]

    async def get_by_id(self, collection: str, record_id: str) -> Record | None:
        model = _model_for(collection)
        async with self._session(collection) as session:
            obj = await session.get(model, record_id)
            return _to_dict(obj) if obj is not None else None

    async def get_by_filter(self, collection: str, **filters: Any) -> list[Record]:
        model = _model_for(collection)
        query = select(model)
        for field, value in filters.items():
            query = query.where(getattr(model, field) == value)
        query = query.order_by(model.id)

        async with self._session(collection) as session:
            result = await session.execute(query)
            return [_to_dict(row) for row in result.scalars().all()]

    async def insert(self, collection: str, record: Record) -> Record:
        model = _model_for(collection)
        values = {key: value for key, value in record.items() if value is not None or key != "id"}

        async with self._session(collection) as session:
            obj = model(**values)
            session.add(obj)
            await session.commit()
            await session.refresh(obj)
            return _to_dict(obj)

    async def update_by_id(
        self, collection: str, record_id: str, changes: Record
    ) -> Record | None:
        model = _model_for(collection)
        async with self._session(collection) as session:
            obj = await session.get(model, record_id)
            if obj is None:
                return None
            for key, value in changes.items():
                if key != "id":
                    setattr(obj, key, value)
            await session.commit()
            await session.refresh(obj)
            return _to_dict(obj)

    async def delete_by_id(self, collection: str, record_id: str) -> bool:
        model = _model_for(collection)
        async with self._session(collection, record_id) as session:
            result = await session.execute(delete(model).where(model.id == record_id))
            await session.commit()
            return result.rowcount > 0

    async def ping(self) -> None:
        async with self._session("health") as session:
            await session.execute(text("SELECT 1"))
