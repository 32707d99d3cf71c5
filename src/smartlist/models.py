"""Summary: Domain model dataclasses for SmartList.

Importance: Defines the core entities shared across services, repositories, and the API.
Alternatives: Use Pydantic models or ORM classes directly.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


PRIORITIES = ("high", "medium", "low")
DEFAULT_PRIORITY = "medium"


@dataclass(frozen=True)
class Account:
    """Summary: Local record of an authenticated user.

    Importance: Links identity-provider subjects to persisted profile and metadata.
    Alternatives: Read profile data from the identity provider on every request.
    """

    id: str
    email: str
    display_name: str | None = None
    photo_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    last_password_change: datetime | None = None


@dataclass(frozen=True)
class Note:
    """Summary: Represents a task or reminder owned by one account.

    Importance: Core unit for CRUD, toggling, and analytics workflows.
    Alternatives: Store tasks as unstructured text entries.
    """

    title: str
    description: str = ""
    is_completed: bool = False
    due_date: datetime | None = None
    priority: str = DEFAULT_PRIORITY
    created_at: datetime | None = None
    updated_at: datetime | None = None
    audio_url: str | None = None
    id: str | None = None


@dataclass(frozen=True)
class Analytics:
    """Summary: Priority-bucketed summary of notes within a month.

    Importance: Feeds dashboard charts without a separate analytics store.
    Alternatives: Precompute counters on every note write.
    """

    user_id: str
    date: datetime
    high_priority_count: int
    medium_priority_count: int
    low_priority_count: int
    tasks: list[Note] = field(default_factory=list)


def to_utc(value: datetime | None) -> datetime | None:
    """Summary: Normalize a datetime to an aware UTC value.

    Importance: Keeps stored timestamps comparable across clients and the store.
    Alternatives: Store naive datetimes and rely on server local time.
    """

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def note_to_dict(note: Note) -> dict[str, Any]:
    """Summary: Serialize a note into its camelCase JSON shape.

    Importance: Keeps API responses stable for existing mobile clients.
    Alternatives: Return dataclass fields with snake_case names.
    """

    return {
        "id": note.id,
        "title": note.title,
        "description": note.description,
        "isCompleted": note.is_completed,
        "dueDate": _iso(note.due_date),
        "priority": note.priority,
        "createdAt": _iso(note.created_at),
        "updatedAt": _iso(note.updated_at),
        "audioUrl": note.audio_url,
    }


def account_to_dict(account: Account) -> dict[str, Any]:
    """Summary: Serialize an account into its camelCase JSON shape.

    Importance: Matches the profile payload expected by clients after sign-in.
    Alternatives: Expose the raw stored document.
    """

    return {
        "id": account.id,
        "email": account.email,
        "displayName": account.display_name,
        "photoUrl": account.photo_url,
        "createdAt": _iso(account.created_at),
        "updatedAt": _iso(account.updated_at),
        "lastPasswordChange": _iso(account.last_password_change),
    }


def analytics_to_dict(analytics: Analytics) -> dict[str, Any]:
    """Summary: Serialize analytics with its task list.

    Importance: Provides counts and the underlying notes in one response.
    Alternatives: Return counts only and fetch notes separately.
    """

    return {
        "userId": analytics.user_id,
        "date": _iso(analytics.date),
        "highPriorityCount": analytics.high_priority_count,
        "mediumPriorityCount": analytics.medium_priority_count,
        "lowPriorityCount": analytics.low_priority_count,
        "tasks": [note_to_dict(note) for note in analytics.tasks],
    }
