"""Summary: Document store gateway contract and in-memory implementation.

Importance: Gives repositories a small, backend-neutral surface over per-user collections.
Alternatives: Call the Firestore SDK directly from each repository.
"""

from __future__ import annotations

import copy
import threading
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from smartlist.models import to_utc


USERS_COLLECTION = "users"
NOTES_COLLECTION = "notes"


class _DeleteField:
    def __repr__(self) -> str:
        return "DELETE_FIELD"


DELETE_FIELD: Any = _DeleteField()


class DocumentStoreError(Exception):
    """Summary: Raised when a store operation fails for a reason other than not-found.

    Importance: Lets repositories classify backend failures as storage errors.
    Alternatives: Surface backend SDK exceptions directly.
    """


class DocumentNotFoundError(DocumentStoreError):
    """Summary: Raised when a point read or partial update targets a missing document.

    Importance: Separates the not-found case from other storage failures.
    Alternatives: Return None from reads and check at every call site.
    """

    def __init__(self, collection: str, document_id: str) -> None:
        super().__init__(f"Document {collection}/{document_id} not found")
        self.collection = collection
        self.document_id = document_id


@dataclass(frozen=True)
class StoredDocument:
    """Summary: Document snapshot with its identifier.

    Importance: Keeps store-assigned ids next to the fields they belong to.
    Alternatives: Embed the id inside the field dictionary.
    """

    id: str
    fields: dict[str, Any]


def account_collection() -> str:
    return USERS_COLLECTION


def notes_collection(account_id: str) -> str:
    """Summary: Build the per-account notes collection path.

    Importance: Ownership is enforced by the storage path, not a foreign key.
    Alternatives: Store all notes in one collection with an owner field.
    """

    return f"{USERS_COLLECTION}/{account_id}/{NOTES_COLLECTION}"


class DocumentStore(ABC):
    """Summary: Abstract interface for a hierarchical key-document database.

    Importance: Allows switching between Firestore and an in-memory store without refactors.
    Alternatives: Bind repositories to a single vendor SDK.
    """

    @abstractmethod
    def get(self, collection: str, document_id: str) -> StoredDocument:
        """Summary: Read a document by id, raising DocumentNotFoundError when absent."""

    @abstractmethod
    def list_documents(self, collection: str) -> list[StoredDocument]:
        """Summary: Return every document in a collection."""

    @abstractmethod
    def query_range(
        self, collection: str, field_name: str, start: datetime, end: datetime
    ) -> list[StoredDocument]:
        """Summary: Return documents whose field lies within [start, end].

        Importance: Backs date-bounded note queries for analytics.
        Alternatives: Scan the collection and filter in memory.
        """

    @abstractmethod
    def set(
        self, collection: str, document_id: str, fields: dict[str, Any], merge: bool = False
    ) -> None:
        """Summary: Upsert a document, merging or overwriting its fields."""

    @abstractmethod
    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        """Summary: Partially update an existing document."""

    @abstractmethod
    def add(self, collection: str, fields: dict[str, Any]) -> str:
        """Summary: Create a document with a store-assigned id and return the id."""

    @abstractmethod
    def delete(self, collection: str, document_id: str) -> None:
        """Summary: Delete a document if it exists."""


class InMemoryDocumentStore(DocumentStore):
    """Summary: Dictionary-backed document store for local runs and tests.

    Importance: Enables offline workflows and repeatable tests.
    Alternatives: Run the Firestore emulator for every test.
    """

    def __init__(self) -> None:
        """Summary: Initialize empty collections guarded by one lock.

        Importance: Sync endpoints run in a threadpool, so every call must be atomic.
        Alternatives: Require a single worker thread.
        """

        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def get(self, collection: str, document_id: str) -> StoredDocument:
        with self._lock:
            documents = self._collections.get(collection, {})
            if document_id not in documents:
                raise DocumentNotFoundError(collection, document_id)
            fields = documents[document_id]
        return StoredDocument(id=document_id, fields=copy.deepcopy(fields))

    def list_documents(self, collection: str) -> list[StoredDocument]:
        with self._lock:
            items = list(self._collections.get(collection, {}).items())
        return [
            StoredDocument(id=document_id, fields=copy.deepcopy(fields))
            for document_id, fields in items
        ]

    def query_range(
        self, collection: str, field_name: str, start: datetime, end: datetime
    ) -> list[StoredDocument]:
        """Summary: Filter documents on one datetime field, bounds inclusive.

        Importance: Mirrors Firestore semantics where documents lacking the field never match.
        Alternatives: Treat missing fields as the minimum value.
        """

        lower = to_utc(start)
        upper = to_utc(end)
        matches: list[StoredDocument] = []
        for document in self.list_documents(collection):
            value = document.fields.get(field_name)
            if not isinstance(value, datetime):
                continue
            if lower <= to_utc(value) <= upper:
                matches.append(document)
        return matches

    def set(
        self, collection: str, document_id: str, fields: dict[str, Any], merge: bool = False
    ) -> None:
        with self._lock:
            documents = self._collections.setdefault(collection, {})
            current = documents.get(document_id, {}) if merge else {}
            documents[document_id] = _apply_fields(current, fields)

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        with self._lock:
            documents = self._collections.get(collection, {})
            if document_id not in documents:
                raise DocumentNotFoundError(collection, document_id)
            documents[document_id] = _apply_fields(documents[document_id], fields)

    def add(self, collection: str, fields: dict[str, Any]) -> str:
        document_id = uuid.uuid4().hex[:20]
        self.set(collection, document_id, fields)
        return document_id

    def delete(self, collection: str, document_id: str) -> None:
        with self._lock:
            self._collections.get(collection, {}).pop(document_id, None)


def _apply_fields(current: dict[str, Any], fields: dict[str, Any]) -> dict[str, Any]:
    merged = copy.deepcopy(current)
    for key, value in fields.items():
        if value is DELETE_FIELD:
            merged.pop(key, None)
        else:
            merged[key] = copy.deepcopy(value)
    return merged
