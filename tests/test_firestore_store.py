"""Summary: Tests for the Firestore document store adapter.

Importance: Ensures SDK sentinels and exceptions stay behind the gateway contract.
Alternatives: Run the adapter only against the Firestore emulator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import pytest
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore

from smartlist.storage.document_store import (
    DELETE_FIELD,
    DocumentNotFoundError,
    DocumentStoreError,
)
from smartlist.storage.firestore_store import FirestoreDocumentStore, to_firestore_fields


@dataclass
class _FakeSnapshot:
    id: str
    data: dict[str, Any] | None

    @property
    def exists(self) -> bool:
        return self.data is not None

    def to_dict(self) -> dict[str, Any] | None:
        return self.data


@dataclass
class _FakeDocument:
    document_id: str
    storage: dict[str, dict[str, Any]]
    error: Exception | None = None

    def get(self) -> _FakeSnapshot:
        if self.error is not None:
            raise self.error
        return _FakeSnapshot(self.document_id, self.storage.get(self.document_id))

    def update(self, fields: dict[str, Any]) -> None:
        if self.document_id not in self.storage:
            raise google_exceptions.NotFound("No document to update")
        self.storage[self.document_id].update(fields)


@dataclass
class _FakeCollection:
    storage: dict[str, dict[str, Any]] = field(default_factory=dict)
    error: Exception | None = None

    def document(self, document_id: str) -> _FakeDocument:
        return _FakeDocument(document_id, self.storage, self.error)


class _FakeClient:
    def __init__(self, error: Exception | None = None) -> None:
        self.collections: dict[str, _FakeCollection] = {}
        self._error = error

    def collection(self, path: str) -> _FakeCollection:
        return self.collections.setdefault(path, _FakeCollection(error=self._error))


def test_to_firestore_fields_maps_delete_sentinel() -> None:
    fields = to_firestore_fields({"updatedAt": "now", "lastPasswordChange": DELETE_FIELD})
    assert fields["updatedAt"] == "now"
    assert fields["lastPasswordChange"] is firestore.DELETE_FIELD


def test_get_missing_snapshot_raises_not_found() -> None:
    """Summary: Verify a non-existent snapshot becomes DocumentNotFoundError.

    Importance: Repositories distinguish not-found from other failures.
    Alternatives: Return empty field dictionaries for missing documents.
    """

    store = FirestoreDocumentStore(_FakeClient())
    with pytest.raises(DocumentNotFoundError):
        store.get("users", "ghost")


def test_get_returns_snapshot_fields() -> None:
    client = _FakeClient()
    client.collection("users").storage["u1"] = {"email": "a@example.com"}
    document = FirestoreDocumentStore(client).get("users", "u1")
    assert document.id == "u1"
    assert document.fields == {"email": "a@example.com"}


def test_update_not_found_is_translated() -> None:
    store = FirestoreDocumentStore(_FakeClient())
    with pytest.raises(DocumentNotFoundError):
        store.update("users", "ghost", {"updatedAt": "now"})


def test_api_errors_become_store_errors() -> None:
    """Summary: Verify other Google API failures become DocumentStoreError.

    Importance: The repositories reclassify these as storage errors.
    Alternatives: Let SDK exceptions reach the HTTP layer.
    """

    store = FirestoreDocumentStore(_FakeClient(error=google_exceptions.ServiceUnavailable("down")))
    with pytest.raises(DocumentStoreError) as excinfo:
        store.get("users", "u1")
    assert not isinstance(excinfo.value, DocumentNotFoundError)
