from __future__ import annotations

import logging
import uuid
from typing import Any, Iterable, Mapping, Protocol, Sequence

from sqlalchemy import Uuid, delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from models import Base


logger = logging.getLogger(__name__)

Row = dict[str, Any]
Ordering = Sequence[tuple[str, bool]]


class NotFoundError(LookupError):
    """No row exists for the requested key."""


class StorageFailure(RuntimeError):
    """The row store call itself failed. The original error is chained as __cause__."""

    def __init__(self, operation: str, table: str) -> None:
        super().__init__(f"{operation} on {table!r} failed")
        self.operation = operation
        self.table = table


class RowStore(Protocol):
    def query(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        ordering: Ordering | None = None,
    ) -> list[Row]: ...

    def insert(self, table: str, record: Mapping[str, Any]) -> Row: ...

    def upsert(
        self,
        table: str,
        key: Mapping[str, Any],
        record: Mapping[str, Any],
        *,
        on_insert: Mapping[str, Any] | None = None,
    ) -> Row: ...

    def delete(self, table: str, filters: Mapping[str, Any]) -> int: ...


def _model_for(table: str):
    for mapper in Base.registry.mappers:
        cls = mapper.class_
        if getattr(cls, "__tablename__", None) == table:
            return cls
    raise KeyError(f"unknown table {table!r}")


class _NoMatch(ValueError):
    pass


def _coerce(model, column_name: str, value: Any) -> Any:
    column = model.__table__.columns.get(column_name)
    if column is None:
        raise KeyError(f"unknown column {model.__tablename__}.{column_name}")
    if value is not None and isinstance(column.type, Uuid) and not isinstance(value, uuid.UUID):
        try:
            return uuid.UUID(str(value))
        except ValueError:
            raise _NoMatch(column_name) from None
    return value


def _row_to_dict(model, obj) -> Row:
    return {c.name: getattr(obj, c.name) for c in model.__table__.columns}


class SqlAlchemyRowStore:
    """Generic table-name addressed store over the SQLAlchemy models.

    Supports equality filters and column ordering only. Every write commits;
    any SQLAlchemy error is rolled back and raised as StorageFailure.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def _where(self, stmt, model, filters: Mapping[str, Any] | None):
        for name, value in (filters or {}).items():
            stmt = stmt.where(getattr(model, name) == _coerce(model, name, value))
        return stmt

    def _fail(self, operation: str, table: str, exc: SQLAlchemyError) -> StorageFailure:
        self.db.rollback()
        logger.error("Row store %s on %s failed: %s", operation, table, exc)
        return StorageFailure(operation, table)

    def query(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        ordering: Ordering | None = None,
    ) -> list[Row]:
        model = _model_for(table)
        try:
            stmt = self._where(select(model), model, filters)
        except _NoMatch:
            return []
        for name, ascending in ordering or ():
            col = getattr(model, name)
            stmt = stmt.order_by(col.asc() if ascending else col.desc())
        try:
            rows = self.db.execute(stmt).scalars().all()
        except SQLAlchemyError as exc:
            raise self._fail("query", table, exc) from exc
        return [_row_to_dict(model, r) for r in rows]

    def insert(self, table: str, record: Mapping[str, Any]) -> Row:
        model = _model_for(table)
        values = {k: _coerce(model, k, v) for k, v in record.items()}
        obj = model(**values)
        self.db.add(obj)
        try:
            self.db.commit()
            self.db.refresh(obj)
        except SQLAlchemyError as exc:
            raise self._fail("insert", table, exc) from exc
        return _row_to_dict(model, obj)

    def upsert(
        self,
        table: str,
        key: Mapping[str, Any],
        record: Mapping[str, Any],
        *,
        on_insert: Mapping[str, Any] | None = None,
    ) -> Row:
        """Overwrite the row matching `key`, or insert `key | on_insert | record`.

        With several matching rows, the most recently updated one is overwritten.
        """

        model = _model_for(table)
        try:
            stmt = self._where(select(model), model, key)
        except _NoMatch as exc:
            raise ValueError(f"invalid key value for column {exc.args[0]!r}") from None
        if "updated_at" in model.__table__.columns:
            stmt = stmt.order_by(model.updated_at.desc())

        values = {k: _coerce(model, k, v) for k, v in record.items()}
        try:
            existing = self.db.execute(stmt).scalars().first()
            if existing is not None:
                self.db.execute(update(model).where(model.id == existing.id).values(**values))
                self.db.commit()
                self.db.refresh(existing)
                return _row_to_dict(model, existing)
        except SQLAlchemyError as exc:
            raise self._fail("upsert", table, exc) from exc

        merged: dict[str, Any] = {}
        merged.update(key)
        merged.update(on_insert or {})
        merged.update(record)
        return self.insert(table, merged)

    def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        if not filters:
            raise ValueError("refusing to delete without filters")
        model = _model_for(table)
        try:
            stmt = self._where(delete(model), model, filters)
        except _NoMatch:
            return 0
        try:
            result = self.db.execute(stmt)
            self.db.commit()
        except SQLAlchemyError as exc:
            raise self._fail("delete", table, exc) from exc
        return int(result.rowcount or 0)


def first_or_none(rows: Iterable[Row]) -> Row | None:
    for r in rows:
        return r
    return None
