"""Summary: Core application services for SmartList.

Importance: Orchestrates note CRUD, analytics aggregation, and identity-provider flows.
Alternatives: Call repositories and the identity provider directly from controllers.
"""

from __future__ import annotations

import calendar
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from smartlist.errors import (
    InvalidArgumentError,
    InvalidTokenError,
    NotFoundError,
    SmartListError,
    USER_NOT_FOUND,
    classify_provider_error,
)
from smartlist.identity import IdentityProvider, IdentityProviderError, ProviderAccount
from smartlist.models import Account, Analytics, Note, utc_now
from smartlist.repositories import AccountRepository, NoteRepository


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NoteService:
    """Summary: Business façade over the note repository.

    Importance: Decouples the HTTP layer from the storage layer's concrete type.
    Alternatives: Inject the repository into controllers directly.
    """

    notes: NoteRepository

    def list_notes(self, account_id: str) -> list[Note]:
        return self.notes.list(account_id)

    def add_note(self, account_id: str, note: Note) -> Note:
        return self.notes.add(account_id, note)

    def update_note(self, account_id: str, note: Note) -> None:
        self.notes.update(account_id, note)

    def toggle_status(self, account_id: str, note_id: str) -> Note:
        return self.notes.toggle_status(account_id, note_id)

    def delete_note(self, account_id: str, note_id: str) -> None:
        self.notes.delete(account_id, note_id)


def month_bounds(month: date) -> tuple[datetime, datetime]:
    """Summary: Compute the inclusive UTC bounds of a calendar month.

    Importance: The end bound is the last microsecond of the month, so no boundary note is lost.
    Alternatives: Query with an exclusive upper bound at the next month.
    """

    last_day = calendar.monthrange(month.year, month.month)[1]
    start = datetime(month.year, month.month, 1, tzinfo=timezone.utc)
    end = datetime(month.year, month.month, last_day, 23, 59, 59, 999999, tzinfo=timezone.utc)
    return start, end


def day_bounds(day: date) -> tuple[datetime, datetime]:
    """Summary: Compute the inclusive UTC bounds of a single day.

    Importance: Ends one tick before the next day to avoid double counting.
    Alternatives: Filter on a stored date-only field.
    """

    start = datetime(day.year, day.month, day.day, tzinfo=timezone.utc)
    end = datetime(day.year, day.month, day.day, 23, 59, 59, 999999, tzinfo=timezone.utc)
    return start, end


@dataclass(frozen=True)
class AnalyticsService:
    """Summary: Derives month and day task summaries from the note range query.

    Importance: Provides lightweight analytics for dashboards without extra storage.
    Alternatives: Maintain counters on every note write.
    """

    notes: NoteRepository

    def monthly_analytics(self, account_id: str, month: date) -> Analytics:
        """Summary: Count a month's notes by priority.

        Importance: Priority comparison is case-insensitive; unknown priorities are not counted.
        Alternatives: Normalize priority casing on write.
        """

        if not account_id:
            raise InvalidArgumentError("User ID cannot be null or empty")
        start, end = month_bounds(month)
        tasks = self.notes.range_query(account_id, start, end)
        counts = {"high": 0, "medium": 0, "low": 0}
        for task in tasks:
            priority = (task.priority or "").lower()
            if priority in counts:
                counts[priority] += 1
        logger.info("Computed analytics for %s over %s tasks.", account_id, len(tasks))
        return Analytics(
            user_id=account_id,
            date=start,
            high_priority_count=counts["high"],
            medium_priority_count=counts["medium"],
            low_priority_count=counts["low"],
            tasks=tasks,
        )

    def daily_tasks(self, account_id: str, day: date) -> list[Note]:
        if not account_id:
            raise InvalidArgumentError("User ID cannot be null or empty")
        start, end = day_bounds(day)
        return self.notes.range_query(account_id, start, end)


@dataclass(frozen=True)
class AuthService:
    """Summary: Orchestrates identity-provider calls and local account persistence.

    Importance: Callers only ever see the SmartList error taxonomy.
    Alternatives: Expose provider SDK errors to the HTTP layer.
    """

    accounts: AccountRepository
    identity: IdentityProvider

    def login(self, email: str, id_token: str) -> tuple[Account, str]:
        """Summary: Verify an ID token for an email and issue a session token.

        Importance: Rejects tokens whose email claim belongs to someone else.
        Alternatives: Trust the email supplied by the client.
        """

        logger.info("Login started for %s.", email)
        try:
            verified = self.identity.verify_id_token(id_token)
            claimed_email = str(verified.claims.get("email") or "")
            if claimed_email.strip().lower() != (email or "").strip().lower():
                raise InvalidTokenError(
                    "Token email claim does not match the supplied email",
                    reason="invalid-token",
                )
            provider_account = self.identity.get_account_by_email(email)
            account = self._upsert_account(provider_account)
            token = self.identity.create_custom_token(provider_account.uid)
        except IdentityProviderError as exc:
            raise self._classified("login", exc) from exc
        except SmartListError as exc:
            logger.warning("Login failed for %s: %s", email, exc.message)
            raise
        logger.info("Login successful for user %s.", account.id)
        return account, token

    def register(self, email: str, password: str, full_name: str) -> tuple[Account, str]:
        logger.info("Registering user %s.", email)
        try:
            provider_account = self.identity.create_account(
                email=email, password=password, display_name=full_name
            )
            account = self._upsert_account(provider_account, display_name=full_name)
            token = self.identity.create_custom_token(provider_account.uid)
        except IdentityProviderError as exc:
            raise self._classified("register", exc) from exc
        logger.info("Registration successful for user %s.", account.id)
        return account, token

    def sign_in_with_federated_provider(
        self, id_token: str, access_token: str | None = None
    ) -> tuple[Account, str]:
        """Summary: Sign in with a federated (Google) ID token, creating the account if needed.

        Importance: Only the provider's "account not found" code triggers creation.
        Alternatives: Create accounts on every unknown error.
        """

        logger.info("Federated sign-in started.")
        try:
            verified = self.identity.verify_id_token(id_token)
            try:
                provider_account = self.identity.get_account(verified.subject)
            except IdentityProviderError as exc:
                if exc.code != USER_NOT_FOUND:
                    raise
                logger.info("Creating provider account for %s.", verified.subject)
                provider_account = self.identity.create_account(
                    email=verified.claims.get("email"),
                    display_name=verified.claims.get("name"),
                    photo_url=verified.claims.get("picture"),
                    uid=verified.subject,
                )
            account = self._upsert_account(provider_account)
            token = self.identity.create_custom_token(provider_account.uid)
        except IdentityProviderError as exc:
            raise self._classified("federated sign-in", exc) from exc
        logger.info("Federated sign-in successful for user %s.", account.id)
        return account, token

    def logout(self, account_id: str) -> None:
        if not account_id:
            raise InvalidArgumentError("User ID cannot be null or empty")
        logger.info("Logging out user %s.", account_id)
        try:
            self.identity.revoke_sessions(account_id)
        except IdentityProviderError as exc:
            raise self._classified("logout", exc) from exc
        self.accounts.update_metadata(account_id, updated_at=utc_now(), last_password_change=None)
        logger.info("Logout successful for user %s.", account_id)

    def get_account(self, account_id: str) -> Account:
        try:
            return self.accounts.get(account_id)
        except SmartListError as exc:
            logger.warning("Error fetching user %s: %s", account_id, exc.message)
            raise NotFoundError("user-not-found", reason="user-not-found") from exc

    def change_password(self, account_id: str, current_password: str, new_password: str) -> None:
        """Summary: Set a new password and record the change locally.

        Importance: The provider cannot check current_password; clients re-authenticate first.
        Alternatives: Verify the current password through a sign-in REST call.
        """

        if not account_id:
            raise InvalidArgumentError("User ID cannot be null or empty")
        if not new_password:
            raise InvalidArgumentError("New password cannot be empty")
        logger.info("Changing password for user %s.", account_id)
        try:
            self.identity.update_password(account_id, new_password)
        except IdentityProviderError as exc:
            raise self._classified("change password", exc) from exc
        now = utc_now()
        self.accounts.update_metadata(account_id, updated_at=now, last_password_change=now)
        logger.info("Password changed for user %s.", account_id)

    def send_password_reset(self, email: str) -> str:
        """Summary: Generate a password reset link and stamp the local account.

        Importance: Delivery of the link is out of scope; the link is returned to the caller.
        Alternatives: Send the email through a transactional mail provider.
        """

        if not email:
            raise InvalidArgumentError("Email cannot be empty")
        logger.info("Password reset requested for %s.", email)
        try:
            link = self.identity.generate_password_reset_link(email)
            provider_account = self.identity.get_account_by_email(email)
        except IdentityProviderError as exc:
            raise self._classified("password reset", exc) from exc
        try:
            self.accounts.update_metadata(
                provider_account.uid, updated_at=utc_now(), last_password_change=None
            )
        except NotFoundError:
            logger.warning("No local account for %s; reset link generated only.", email)
        return link

    def _upsert_account(
        self, provider_account: ProviderAccount, display_name: str | None = None
    ) -> Account:
        now = utc_now()
        account = Account(
            id=provider_account.uid,
            email=provider_account.email or "",
            display_name=display_name or provider_account.display_name,
            photo_url=provider_account.photo_url,
            created_at=now,
            updated_at=now,
        )
        return self.accounts.save(account)

    def _classified(self, operation: str, exc: IdentityProviderError) -> SmartListError:
        classification = classify_provider_error(exc.code)
        logger.warning(
            "Identity provider error during %s: code=%s reason=%s message=%s",
            operation,
            exc.code,
            classification.reason,
            exc.message,
        )
        return classification.to_error(f"{classification.reason}: {exc.message}")
