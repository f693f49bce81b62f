"""Repository -- Narrow persistence and document contracts for the core.

The core never assumes a storage engine.  Services receive a Repository per
aggregate through their constructor and exchange plain frozen dataclasses
with it; there is no lazy loading and no implicit cascade.

Implementations: InMemoryRepository (this module) and
SqlAlchemyRepository (``tax_kernel.db.repository``).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Generic, Protocol, TypeVar, runtime_checkable
from uuid import UUID

T = TypeVar("T")


@runtime_checkable
class Repository(Protocol[T]):
    """Protocol for persisting one aggregate type keyed by ``entity.id``."""

    def save(self, entity: T) -> T:
        """Insert or replace the entity and return it."""
        ...

    def find(self, **criteria: Any) -> list[T]:
        """Return every entity whose attributes equal the criteria."""
        ...

    def find_one(self, **criteria: Any) -> T | None:
        """Return the first matching entity or None."""
        ...

    def remove(self, entity: T) -> None:
        """Delete the entity.  Removing a missing entity is a no-op."""
        ...


@runtime_checkable
class DocumentSource(Protocol):
    """Protocol for the external document store.

    Implementors return objects exposing at least ``document_type`` and
    ``file_url``.
    """

    def get_documents_for_owner(
        self,
        owner_id: UUID,
        tax_year: int | None = None,
        document_type: str | None = None,
    ) -> list[Any]: ...


def _normalize(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class InMemoryRepository(Generic[T]):
    """Dict-backed Repository used by tests and single-process callers.

    Preserves insertion order; ``save`` of an existing id replaces it in
    place.
    """

    def __init__(self, entities: list[T] | None = None):
        self._items: dict[UUID, T] = {}
        for entity in entities or ():
            self.save(entity)

    def save(self, entity: T) -> T:
        self._items[entity.id] = entity
        return entity

    def find(self, **criteria: Any) -> list[T]:
        wanted = {k: _normalize(v) for k, v in criteria.items()}
        return [
            entity
            for entity in self._items.values()
            if all(_normalize(getattr(entity, k)) == v for k, v in wanted.items())
        ]

    def find_one(self, **criteria: Any) -> T | None:
        matches = self.find(**criteria)
        return matches[0] if matches else None

    def remove(self, entity: T) -> None:
        self._items.pop(entity.id, None)

    def __len__(self) -> int:
        return len(self._items)


class InMemoryDocumentSource:
    """DocumentSource over a fixed list of documents."""

    def __init__(self, documents: list[Any] | None = None):
        self._documents = list(documents or ())

    def add(self, document: Any) -> None:
        self._documents.append(document)

    def get_documents_for_owner(
        self,
        owner_id: UUID,
        tax_year: int | None = None,
        document_type: str | None = None,
    ) -> list[Any]:
        return [
            doc
            for doc in self._documents
            if doc.owner_id == owner_id
            and (tax_year is None or doc.tax_year in (None, tax_year))
            and (document_type is None or doc.document_type == document_type)
        ]
