"""Abstract document store interface for projtrack."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class DocumentStore(ABC):
    """Named collections of JSON documents, each keyed by an opaque ``id``."""

    @abstractmethod
    async def initialize(self) -> None:
        """Open the connection and apply the schema."""

    @abstractmethod
    async def close(self) -> None:
        """Close the connection. Safe to call more than once."""

    @abstractmethod
    async def insert_document(self, collection: str, document: dict[str, Any]) -> dict[str, Any]:
        """Insert a document, assigning an ``id`` if it has none. Returns the stored copy."""

    @abstractmethod
    async def get_document(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        """Get a document by ID. Returns None if not found."""

    @abstractmethod
    async def replace_document(
        self, collection: str, doc_id: str, document: dict[str, Any]
    ) -> dict[str, Any] | None:
        """Replace a document's body. Returns the new body or None if not found."""

    @abstractmethod
    async def delete_document(self, collection: str, doc_id: str) -> bool:
        """Delete one document. Returns True if found and deleted."""

    @abstractmethod
    async def find_documents(
        self,
        collection: str,
        *,
        filters: dict[str, Any] | None = None,
        limit: int | None = None,
        offset: int = 0,
        newest_first: bool = False,
    ) -> list[dict[str, Any]]:
        """Documents in insertion order, optionally filtered by top-level key equality."""

    @abstractmethod
    async def count_documents(
        self, collection: str, *, filters: dict[str, Any] | None = None
    ) -> int:
        """Count documents in a collection."""

    @abstractmethod
    async def delete_all(self, collection: str) -> int:
        """Delete every document in a collection. Returns the number removed."""

    @abstractmethod
    async def get_stats(self) -> dict[str, Any]:
        """Document counts per collection."""
