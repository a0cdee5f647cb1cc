"""
Port interface (ABC) for document models.

A DocumentModel is the handle the CRUD handler factory operates on: one
collection of records plus its model-level validation. Infrastructure
adapters implement it; tests substitute an in-memory double.
The domain layer never depends on concrete implementations.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from app.domain.documents.query import QueryDescriptor

Document = dict[str, Any]


@dataclass(frozen=True)
class Populate:
    """Join a referenced record from another collection into ``path``."""

    path: str
    collection: str


class DocumentModel(ABC):
    """Port for storing and retrieving the records of one model."""

    name: str

    @abstractmethod
    async def create(self, data: Document) -> Document:
        """Validate and insert a new record.

        Returns:
            The stored record with its freshly assigned identifier.
        """
        raise NotImplementedError

    @abstractmethod
    async def find(self, query: QueryDescriptor) -> list[Document]:
        """Return records matching the query's filters, sorted and paginated."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id(
        self, document_id: str, populate: Optional[Populate] = None
    ) -> Optional[Document]:
        """Return the record with the given identifier, or None."""
        raise NotImplementedError

    @abstractmethod
    async def find_by_id_and_update(
        self, document_id: str, data: Document
    ) -> Optional[Document]:
        """Atomically validate and apply a partial update.

        Returns:
            The record after the update, or None if no record matched.
        """
        raise NotImplementedError

    @abstractmethod
    async def find_by_id_and_delete(self, document_id: str) -> Optional[Document]:
        """Atomically remove a record. Returns the removed record, or None."""
        raise NotImplementedError

    @abstractmethod
    async def aggregate(self, pipeline: list[Document]) -> list[Document]:
        """Run an aggregation pipeline verbatim and return its output."""
        raise NotImplementedError

    @abstractmethod
    async def find_one_and_update(
        self, criteria: Document, update: Document, upsert: bool = True
    ) -> Optional[Document]:
        """Atomically update the first record matching ``criteria``.

        With ``upsert`` a record is inserted (defaults applied) when none
        matches.

        Returns:
            The record after the operation.
        """
        raise NotImplementedError
