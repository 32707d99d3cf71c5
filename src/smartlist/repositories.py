"""Summary: Account and note repositories over the document store gateway.

Importance: Owns field mapping, UTC normalization, and error classification for persisted entities.
Alternatives: Map documents inside services or controllers.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import replace
from datetime import datetime
from pathlib import Path, PurePosixPath
from typing import Any, Iterator

from smartlist.errors import InvalidArgumentError, NotFoundError, StorageError
from smartlist.models import DEFAULT_PRIORITY, Account, Note, to_utc, utc_now
from smartlist.storage.document_store import (
    DELETE_FIELD,
    DocumentNotFoundError,
    DocumentStore,
    DocumentStoreError,
    StoredDocument,
    account_collection,
    notes_collection,
)


logger = logging.getLogger(__name__)

AUDIO_URL_PREFIX = "/audio/"


@contextmanager
def _storage_errors(action: str) -> Iterator[None]:
    """Summary: Reclassify gateway failures as storage errors.

    Importance: Callers see the error taxonomy, never gateway exception types.
    Alternatives: Let DocumentStoreError propagate to the HTTP layer.
    """

    try:
        yield
    except DocumentNotFoundError:
        raise
    except DocumentStoreError as exc:
        raise StorageError(f"Failed to {action}: {exc}") from exc


class AccountRepository:
    """Summary: Persists local account records keyed by identity-provider subject.

    Importance: Merges profile fields and metadata on every sign-in.
    Alternatives: Keep profiles only in the identity provider.
    """

    def __init__(self, store: DocumentStore) -> None:
        self._store = store

    def get(self, account_id: str) -> Account:
        """Summary: Fetch an account by id.

        Importance: Backs profile lookups after sign-in.
        Alternatives: Return None when the account is missing.
        """

        if not account_id:
            raise InvalidArgumentError("Account ID cannot be empty")
        try:
            with _storage_errors(f"load account {account_id}"):
                document = self._store.get(account_collection(), account_id)
        except DocumentNotFoundError as exc:
            raise NotFoundError(f"Account not found for ID: {account_id}") from exc
        return _account_from_document(document)

    def save(self, account: Account) -> Account:
        """Summary: Merge-upsert profile fields and stamp updatedAt with the current time.

        Importance: Last write wins for profile fields; createdAt is kept from the first save.
        Alternatives: Trust the caller's timestamps.
        """

        if not account.id:
            raise InvalidArgumentError("Account ID cannot be empty")
        now = utc_now()
        created_at = to_utc(account.created_at) or now
        with _storage_errors(f"save account {account.id}"):
            try:
                existing = self._store.get(account_collection(), account.id)
            except DocumentNotFoundError:
                existing = None
            existing_created = (
                _timestamp(existing.fields.get("createdAt")) if existing is not None else None
            )
            if existing_created is not None:
                created_at = existing_created
            self._store.set(
                account_collection(),
                account.id,
                {
                    "email": account.email,
                    "createdAt": created_at,
                    "updatedAt": now,
                    "displayName": account.display_name,
                    "photoUrl": account.photo_url,
                },
                merge=True,
            )
        return replace(account, created_at=created_at, updated_at=now)

    def update_metadata(
        self,
        account_id: str,
        updated_at: datetime,
        last_password_change: datetime | None = None,
    ) -> None:
        """Summary: Partially update account metadata fields.

        Importance: An absent last_password_change clears the stored field.
        Alternatives: Rewrite the whole account document.
        """

        if not account_id:
            raise InvalidArgumentError("Account ID cannot be empty")
        fields: dict[str, Any] = {
            "updatedAt": to_utc(updated_at),
            "lastPasswordChange": (
                to_utc(last_password_change) if last_password_change else DELETE_FIELD
            ),
        }
        try:
            with _storage_errors(f"update metadata for account {account_id}"):
                self._store.update(account_collection(), account_id, fields)
        except DocumentNotFoundError as exc:
            raise NotFoundError(f"Account not found for ID: {account_id}") from exc


class NoteRepository:
    """Summary: CRUD and range queries over an account's notes collection.

    Importance: Central persistence path for notes and analytics.
    Alternatives: Query the document store from each service.
    """

    def __init__(self, store: DocumentStore, audio_root: str | Path | None = None) -> None:
        """Summary: Initialize with a store and the local audio directory.

        Importance: Deleting a note also removes its stored audio attachment.
        Alternatives: Leave attachment cleanup to a background job.
        """

        self._store = store
        self._audio_root = Path(audio_root) if audio_root else None

    def list(self, account_id: str) -> list[Note]:
        _require(account_id, "User ID cannot be null or empty")
        with _storage_errors(f"load notes for user {account_id}"):
            documents = self._store.list_documents(notes_collection(account_id))
        return [_note_from_document(document) for document in documents]

    def add(self, account_id: str, note: Note) -> Note:
        """Summary: Persist a new note and return it as re-read from the store.

        Importance: Read-after-write surfaces the assigned id and server-side defaults.
        Alternatives: Echo the input with a locally generated id.
        """

        _require(account_id, "User ID cannot be null or empty")
        _require(note.title, "Note title cannot be null or empty")
        now = utc_now()
        fields = _note_fields(
            replace(
                note,
                created_at=note.created_at or now,
                updated_at=note.updated_at or now,
            )
        )
        collection = notes_collection(account_id)
        with _storage_errors(f"add note for user {account_id}"):
            note_id = self._store.add(collection, fields)
            try:
                document = self._store.get(collection, note_id)
            except DocumentNotFoundError as exc:
                raise StorageError(
                    f"Note {note_id} does not exist after creation for user {account_id}"
                ) from exc
        return _note_from_document(document)

    def update(self, account_id: str, note: Note) -> None:
        """Summary: Fully overwrite a note document.

        Importance: Fields omitted from the note are cleared rather than carried over.
        Alternatives: Merge only the supplied fields.
        """

        _require(account_id, "User ID cannot be null or empty")
        _require(note.id, "Note ID cannot be null or empty")
        _require(note.title, "Note title cannot be null or empty")
        with _storage_errors(f"update note {note.id} for user {account_id}"):
            self._store.set(notes_collection(account_id), note.id, _note_fields(note), merge=False)

    def toggle_status(self, account_id: str, note_id: str) -> Note:
        """Summary: Flip isCompleted based on a fresh read and return the stored result.

        Importance: Read-modify-write without compare-and-swap; concurrent toggles may race.
        Alternatives: Use a store transaction per toggle.
        """

        _require(account_id, "User ID cannot be null or empty")
        _require(note_id, "Note ID cannot be null or empty")
        collection = notes_collection(account_id)
        with _storage_errors(f"toggle note {note_id} status for user {account_id}"):
            try:
                current = self._store.get(collection, note_id)
            except DocumentNotFoundError as exc:
                raise InvalidArgumentError(
                    f"Note {note_id} not found for user {account_id}"
                ) from exc
            completed = bool(current.fields.get("isCompleted", False))
            try:
                self._store.update(
                    collection,
                    note_id,
                    {"isCompleted": not completed, "updatedAt": utc_now()},
                )
                document = self._store.get(collection, note_id)
            except DocumentNotFoundError as exc:
                raise InvalidArgumentError(
                    f"Note {note_id} not found for user {account_id}"
                ) from exc
        return _note_from_document(document)

    def delete(self, account_id: str, note_id: str) -> None:
        """Summary: Delete a note and, best effort, its audio attachment.

        Importance: A missing audio file is not an error; the document is always deleted.
        Alternatives: Keep orphaned attachments on disk.
        """

        _require(account_id, "User ID cannot be null or empty")
        _require(note_id, "Note ID cannot be null or empty")
        collection = notes_collection(account_id)
        with _storage_errors(f"delete note {note_id} for user {account_id}"):
            try:
                document = self._store.get(collection, note_id)
            except DocumentNotFoundError:
                document = None
            if document is not None:
                self._remove_audio(document.fields.get("audioUrl"))
            self._store.delete(collection, note_id)

    def range_query(self, account_id: str, start: datetime, end: datetime) -> list[Note]:
        """Summary: Return notes whose dueDate lies within [start, end] in UTC.

        Importance: Single primitive behind monthly and daily analytics.
        Alternatives: Separate day- and month-aware queries.
        """

        _require(account_id, "User ID cannot be null or empty")
        with _storage_errors(f"load notes for user {account_id} in date range"):
            documents = self._store.query_range(
                notes_collection(account_id), "dueDate", to_utc(start), to_utc(end)
            )
        return [_note_from_document(document) for document in documents]

    def audio_path(self, audio_url: str | None) -> Path | None:
        """Summary: Resolve an audio URL to a file inside the audio directory.

        Importance: Only the final path component is used, so URLs cannot escape the directory.
        Alternatives: Trust the stored URL as a filesystem path.
        """

        if not audio_url or self._audio_root is None:
            return None
        relative = audio_url
        if relative.startswith(AUDIO_URL_PREFIX):
            relative = relative[len(AUDIO_URL_PREFIX):]
        name = PurePosixPath(relative).name
        if not name or name in {".", ".."}:
            return None
        return self._audio_root / name

    def _remove_audio(self, audio_url: str | None) -> None:
        path = self.audio_path(audio_url)
        if path is None:
            return
        try:
            path.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            logger.warning("Could not delete audio file at %s: %s", path, exc)
            return
        logger.info("Deleted audio file at %s.", path)


def _require(value: str | None, message: str) -> None:
    if not value:
        raise InvalidArgumentError(message)


def _note_fields(note: Note) -> dict[str, Any]:
    return {
        "title": note.title,
        "description": note.description or "",
        "isCompleted": note.is_completed,
        "dueDate": to_utc(note.due_date),
        "priority": note.priority,
        "createdAt": to_utc(note.created_at),
        "updatedAt": to_utc(note.updated_at),
        "audioUrl": note.audio_url,
    }


def _note_from_document(document: StoredDocument) -> Note:
    fields = document.fields
    return Note(
        id=document.id,
        title=fields.get("title") or "",
        description=fields.get("description") or "",
        is_completed=bool(fields.get("isCompleted", False)),
        due_date=_timestamp(fields.get("dueDate")),
        priority=fields.get("priority") or DEFAULT_PRIORITY,
        created_at=_timestamp(fields.get("createdAt")),
        updated_at=_timestamp(fields.get("updatedAt")),
        audio_url=fields.get("audioUrl"),
    )


def _account_from_document(document: StoredDocument) -> Account:
    fields = document.fields
    return Account(
        id=document.id,
        email=fields.get("email") or "",
        display_name=fields.get("displayName"),
        photo_url=fields.get("photoUrl"),
        created_at=_timestamp(fields.get("createdAt")),
        updated_at=_timestamp(fields.get("updatedAt")),
        last_password_change=_timestamp(fields.get("lastPasswordChange")),
    )


def _timestamp(value: Any) -> datetime | None:
    """Summary: Read a stored timestamp, accepting datetimes or ISO strings.

    Importance: Older account documents stored timestamps as ISO-8601 strings.
    Alternatives: Migrate every stored document to native timestamps.
    """

    if isinstance(value, datetime):
        return to_utc(value)
    if isinstance(value, str) and value:
        try:
            return to_utc(datetime.fromisoformat(value))
        except ValueError:
            return None
    return None
