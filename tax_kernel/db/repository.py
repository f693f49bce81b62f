"""
Module: tax_kernel.db.repository
Responsibility: SQLAlchemy implementation of the Repository protocol.  Maps
    frozen DTOs to their ORM companions through the companions'
    ``from_dto()`` / ``to_dto()`` methods.
Architecture position: Kernel > DB.  Knows nothing about individual models
    beyond that contract.

Invariants enforced:
    - Callers only ever see DTOs.  ORM instances never leave this module.
    - ``save`` on an existing id updates column values in place, keeping
      created_at / created_by_id intact and stamping updated_by_id.

Failure modes:
    - AttributeError at query time if criteria name a column the model lacks.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, TypeVar
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from tax_kernel.logging_config import get_logger

logger = get_logger("db.repository")

T = TypeVar("T")

_PRESERVED_COLUMNS = frozenset({"id", "created_at", "updated_at", "created_by_id"})


class SqlAlchemyRepository(Generic[T]):
    """
    Repository over one ORM model class.

    Contract:
        ``model_class`` provides ``from_dto(dto, created_by_id)`` and
        ``to_dto()``.  The session's transaction is owned by the caller;
        this class only flushes.
    """

    def __init__(
        self,
        session: Session,
        model_class: type,
        actor_id: UUID | None = None,
    ):
        self._session = session
        self._model = model_class
        self._actor_id = actor_id

    def save(self, entity: T) -> T:
        incoming = self._model.from_dto(entity, created_by_id=self._actor_id)
        existing = self._session.get(self._model, entity.id)
        if existing is None:
            self._session.add(incoming)
        else:
            for attr in self._model.__mapper__.column_attrs:
                if attr.key not in _PRESERVED_COLUMNS:
                    setattr(existing, attr.key, getattr(incoming, attr.key))
            existing.updated_by_id = self._actor_id
        self._session.flush()
        return entity

    def find(self, **criteria: Any) -> list[T]:
        stmt = select(self._model).filter_by(
            **{k: v.value if isinstance(v, Enum) else v for k, v in criteria.items()}
        )
        rows = self._session.scalars(stmt).all()
        return [row.to_dto() for row in rows]

    def find_one(self, **criteria: Any) -> T | None:
        matches = self.find(**criteria)
        return matches[0] if matches else None

    def remove(self, entity: T) -> None:
        existing = self._session.get(self._model, entity.id)
        if existing is not None:
            self._session.delete(existing)
            self._session.flush()
            logger.debug(
                "entity_removed",
                extra={"table": self._model.__tablename__, "entity_id": str(entity.id)},
            )
