"""Simple in-memory document repositories used by the planning service."""

from __future__ import annotations

from typing import Any, Dict, Generic, Iterator, List, MutableMapping, Protocol, Type, TypeVar


class Document(Protocol):
    id: str

    def to_document(self) -> Dict[str, Any]:
        ...


T = TypeVar("T", bound=Document)


class RepositoryError(RuntimeError):
    """Base exception for repository errors."""


class DuplicateRecordError(RepositoryError):
    """Raised when attempting to insert a record that already exists."""


class RecordNotFoundError(RepositoryError):
    """Raised when a requested record is missing."""


class InMemoryRepository(Generic[T]):
    """Document repository backed by a dictionary.

    Records are stored as their document form and rebuilt on every read, so
    callers never share mutable state with the store. Writes always replace the
    whole document.
    """

    def __init__(self, record_type: Type[T]) -> None:
        self._record_type = record_type
        self._documents: MutableMapping[str, Dict[str, Any]] = {}

    def __contains__(self, item_id: object) -> bool:
        return item_id in self._documents

    def __len__(self) -> int:
        return len(self._documents)

    def add(self, item: T) -> None:
        if item.id in self._documents:
            raise DuplicateRecordError(f"Record with id {item.id!r} already exists")
        self._documents[item.id] = item.to_document()

    def upsert(self, item: T) -> None:
        self._documents[item.id] = item.to_document()

    def get(self, item_id: str) -> T:
        try:
            document = self._documents[item_id]
        except KeyError as exc:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found") from exc
        return self._record_type.from_document(document)  # type: ignore[attr-defined]

    def remove(self, item_id: str) -> None:
        if item_id not in self._documents:
            raise RecordNotFoundError(f"Record with id {item_id!r} not found")
        del self._documents[item_id]

    def list(self) -> List[T]:
        return [
            self._record_type.from_document(document)  # type: ignore[attr-defined]
            for document in self._documents.values()
        ]

    def __iter__(self) -> Iterator[T]:
        return iter(self.list())


__all__ = [
    "Document",
    "InMemoryRepository",
    "RepositoryError",
    "DuplicateRecordError",
    "RecordNotFoundError",
]
