"""Summary: Tests for note persistence and the note service.

Importance: Validates CRUD, toggling, full-replace updates, and audio cleanup.
Alternatives: Exercise notes only through the HTTP API.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from smartlist.errors import InvalidArgumentError
from smartlist.models import Note
from smartlist.repositories import NoteRepository
from smartlist.services import NoteService
from smartlist.storage.document_store import InMemoryDocumentStore


def _service(audio_root: Path | None = None) -> NoteService:
    return NoteService(notes=NoteRepository(InMemoryDocumentStore(), audio_root=audio_root))


def test_add_then_list_contains_note() -> None:
    """Summary: Verify an added note is returned by list with its assigned id.

    Importance: Clients rely on the id returned from creation.
    Alternatives: Generate ids on the client.
    """

    service = _service()
    added = service.add_note("u1", Note(title="Buy milk", priority="high"))
    assert added.id
    assert added.created_at is not None
    assert added.updated_at is not None
    notes = service.list_notes("u1")
    assert [note.id for note in notes] == [added.id]
    assert notes[0].title == "Buy milk"
    assert notes[0].priority == "high"


def test_notes_are_isolated_per_account() -> None:
    service = _service()
    service.add_note("u1", Note(title="Mine"))
    assert service.list_notes("u2") == []


def test_add_requires_title_and_account() -> None:
    service = _service()
    with pytest.raises(InvalidArgumentError):
        service.add_note("u1", Note(title=""))
    with pytest.raises(InvalidArgumentError):
        service.add_note("", Note(title="Orphan"))


def test_naive_due_date_is_stored_as_utc() -> None:
    service = _service()
    added = service.add_note("u1", Note(title="Naive", due_date=datetime(2024, 3, 5, 9, 30)))
    assert added.due_date == datetime(2024, 3, 5, 9, 30, tzinfo=timezone.utc)


def test_toggle_twice_restores_completion() -> None:
    """Summary: Verify toggling is an involution on isCompleted.

    Importance: Double taps in the client must not drift the state.
    Alternatives: Expose explicit complete and reopen operations.
    """

    service = _service()
    added = service.add_note("u1", Note(title="Walk dog"))
    first = service.toggle_status("u1", added.id)
    assert first.is_completed is True
    second = service.toggle_status("u1", added.id)
    assert second.is_completed is False


def test_toggle_missing_note_raises_invalid_argument() -> None:
    service = _service()
    with pytest.raises(InvalidArgumentError):
        service.toggle_status("u1", "ghost")


def test_update_replaces_all_fields() -> None:
    """Summary: Verify update overwrites the document, clearing omitted fields.

    Importance: A note saved without audioUrl must lose its attachment reference.
    Alternatives: Merge updates into the stored document.
    """

    service = _service()
    added = service.add_note(
        "u1", Note(title="Record memo", description="draft", audio_url="/audio/memo.m4a")
    )
    service.update_note("u1", Note(id=added.id, title="Record memo v2"))
    stored = service.list_notes("u1")[0]
    assert stored.title == "Record memo v2"
    assert stored.description == ""
    assert stored.audio_url is None


def test_update_requires_id() -> None:
    service = _service()
    with pytest.raises(InvalidArgumentError):
        service.update_note("u1", Note(title="No id"))


def test_delete_removes_note_and_audio(tmp_path: Path) -> None:
    audio = tmp_path / "memo.m4a"
    audio.write_bytes(b"data")
    service = _service(audio_root=tmp_path)
    added = service.add_note("u1", Note(title="Memo", audio_url="/audio/memo.m4a"))
    service.delete_note("u1", added.id)
    assert service.list_notes("u1") == []
    assert not audio.exists()


def test_delete_with_missing_audio_file_still_deletes(tmp_path: Path) -> None:
    """Summary: Verify a missing audio file does not block note deletion.

    Importance: Attachment cleanup is best effort.
    Alternatives: Fail the delete when the file is absent.
    """

    service = _service(audio_root=tmp_path)
    added = service.add_note("u1", Note(title="Memo", audio_url="/audio/gone.m4a"))
    service.delete_note("u1", added.id)
    assert service.list_notes("u1") == []


def test_audio_path_cannot_escape_audio_root(tmp_path: Path) -> None:
    repository = NoteRepository(InMemoryDocumentStore(), audio_root=tmp_path)
    assert repository.audio_path("/audio/../../etc/passwd") == tmp_path / "passwd"
    assert repository.audio_path("/audio/..") is None
    assert repository.audio_path(None) is None
