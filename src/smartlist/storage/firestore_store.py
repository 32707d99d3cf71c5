"""Summary: Cloud Firestore implementation of the document store gateway.

Importance: Persists accounts and per-account notes in the hosted document database.
Alternatives: Use the Firestore REST API without the client library.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Any, Iterator

from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1.base_query import FieldFilter

from smartlist.models import to_utc
from smartlist.storage.document_store import (
    DELETE_FIELD,
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreError,
    StoredDocument,
)


logger = logging.getLogger(__name__)


class FirestoreDocumentStore(DocumentStore):
    """Summary: Firestore-backed document store.

    Importance: Keeps Firestore SDK types and exceptions behind the gateway contract.
    Alternatives: Expose the Firestore client to repositories directly.
    """

    def __init__(self, client: firestore.Client) -> None:
        """Summary: Initialize with an already configured Firestore client.

        Importance: The client is created once at startup and injected.
        Alternatives: Create a client lazily on first use.
        """

        self._client = client

    def get(self, collection: str, document_id: str) -> StoredDocument:
        with _translate_errors(collection, document_id):
            snapshot = self._client.collection(collection).document(document_id).get()
        if not snapshot.exists:
            raise DocumentNotFoundError(collection, document_id)
        return StoredDocument(id=snapshot.id, fields=snapshot.to_dict() or {})

    def list_documents(self, collection: str) -> list[StoredDocument]:
        with _translate_errors(collection):
            snapshots = list(self._client.collection(collection).stream())
        return [StoredDocument(id=item.id, fields=item.to_dict() or {}) for item in snapshots]

    def query_range(
        self, collection: str, field_name: str, start: datetime, end: datetime
    ) -> list[StoredDocument]:
        query = (
            self._client.collection(collection)
            .where(filter=FieldFilter(field_name, ">=", to_utc(start)))
            .where(filter=FieldFilter(field_name, "<=", to_utc(end)))
        )
        with _translate_errors(collection):
            snapshots = list(query.stream())
        return [StoredDocument(id=item.id, fields=item.to_dict() or {}) for item in snapshots]

    def set(
        self, collection: str, document_id: str, fields: dict[str, Any], merge: bool = False
    ) -> None:
        reference = self._client.collection(collection).document(document_id)
        with _translate_errors(collection, document_id):
            reference.set(to_firestore_fields(fields), merge=merge)

    def update(self, collection: str, document_id: str, fields: dict[str, Any]) -> None:
        reference = self._client.collection(collection).document(document_id)
        with _translate_errors(collection, document_id):
            reference.update(to_firestore_fields(fields))

    def add(self, collection: str, fields: dict[str, Any]) -> str:
        with _translate_errors(collection):
            _, reference = self._client.collection(collection).add(to_firestore_fields(fields))
        return reference.id

    def delete(self, collection: str, document_id: str) -> None:
        with _translate_errors(collection, document_id):
            self._client.collection(collection).document(document_id).delete()


def to_firestore_fields(fields: dict[str, Any]) -> dict[str, Any]:
    """Summary: Convert gateway field values into Firestore write values.

    Importance: Maps the gateway delete sentinel to Firestore's DELETE_FIELD.
    Alternatives: Leak the Firestore sentinel into repositories.
    """

    return {
        key: firestore.DELETE_FIELD if value is DELETE_FIELD else value
        for key, value in fields.items()
    }


@contextmanager
def _translate_errors(collection: str, document_id: str = "") -> Iterator[None]:
    """Summary: Translate Google API errors into gateway errors.

    Importance: Repositories only need to know about not-found versus other failures.
    Alternatives: Catch SDK exceptions in every repository method.
    """

    try:
        yield
    except google_exceptions.NotFound as exc:
        raise DocumentNotFoundError(collection, document_id) from exc
    except google_exceptions.GoogleAPIError as exc:
        logger.error("Firestore operation on %s failed: %s", collection, exc)
        raise DocumentStoreError(str(exc)) from exc
