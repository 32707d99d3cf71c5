"""Summary: Identity provider abstraction and implementations.

Importance: Centralizes token verification and account management behind one contract.
Alternatives: Call the Firebase Admin SDK directly in each service.
"""

from __future__ import annotations

import hashlib
import logging
import secrets
import threading
import time
import urllib.parse
from abc import ABC, abstractmethod
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Iterator

import firebase_admin
from firebase_admin import auth, credentials
from firebase_admin import exceptions as firebase_exceptions

from smartlist.config import AppConfig
from smartlist.token_codec import TokenCodec, TokenCodecError


logger = logging.getLogger(__name__)


class IdentityProviderError(Exception):
    """Summary: Failure reported by an identity provider, tagged with a raw code.

    Importance: Gives the auth service one exception type to classify.
    Alternatives: Let provider SDK exceptions escape to services.
    """

    def __init__(self, code: str, message: str | None = None) -> None:
        super().__init__(message or code)
        self.code = code
        self.message = message or code


@dataclass(frozen=True)
class ProviderAccount:
    """Summary: Account record as known by the identity provider.

    Importance: Supplies the profile fields copied into the local account.
    Alternatives: Pass provider SDK user records through the service layer.
    """

    uid: str
    email: str | None
    display_name: str | None = None
    photo_url: str | None = None


@dataclass(frozen=True)
class VerifiedToken:
    """Summary: Subject and claims from a verified identity token."""

    subject: str
    claims: dict[str, Any] = field(default_factory=dict)


class IdentityProvider(ABC):
    """Summary: Abstract interface for the hosted identity provider.

    Importance: Allows swapping Firebase Authentication for a local provider in tests.
    Alternatives: Hardcode a single vendor SDK and accept lock-in risk.
    """

    @abstractmethod
    def verify_id_token(self, id_token: str) -> VerifiedToken:
        """Summary: Verify a bearer token and return its subject and claims."""

    @abstractmethod
    def get_account(self, uid: str) -> ProviderAccount:
        """Summary: Look up a provider account by subject."""

    @abstractmethod
    def get_account_by_email(self, email: str) -> ProviderAccount:
        """Summary: Look up a provider account by email."""

    @abstractmethod
    def create_account(
        self,
        email: str | None,
        password: str | None = None,
        display_name: str | None = None,
        photo_url: str | None = None,
        uid: str | None = None,
    ) -> ProviderAccount:
        """Summary: Create a provider account."""

    @abstractmethod
    def update_password(self, uid: str, password: str) -> None:
        """Summary: Set a new password for an account."""

    @abstractmethod
    def revoke_sessions(self, uid: str) -> None:
        """Summary: Revoke all active sessions for a subject."""

    @abstractmethod
    def create_custom_token(self, uid: str) -> str:
        """Summary: Issue a custom token the client exchanges for a session."""

    @abstractmethod
    def generate_password_reset_link(self, email: str) -> str:
        """Summary: Generate a password reset link without delivering it."""


class LocalIdentityProvider(IdentityProvider):
    """Summary: In-process identity provider for local development and tests.

    Importance: Enables offline workflows while reproducing the provider's error codes.
    Alternatives: Run the Firebase Auth emulator.
    """

    def __init__(self, codec: TokenCodec, reset_base_url: str = "http://localhost/reset") -> None:
        self._codec = codec
        self._reset_base_url = reset_base_url
        self._accounts: dict[str, ProviderAccount] = {}
        self._password_hashes: dict[str, str] = {}
        self._revoked_at: dict[str, float] = {}
        self._lock = threading.Lock()

    def issue_id_token(self, uid: str, **extra_claims: Any) -> str:
        """Summary: Mint an ID token for an existing or ad-hoc subject.

        Importance: Stands in for client-side sign-in when exercising the API locally.
        Alternatives: Require a real client SDK to obtain tokens.
        """

        claims: dict[str, Any] = {"uid": uid, "iat": time.time()}
        with self._lock:
            account = self._accounts.get(uid)
        if account is not None:
            claims["email"] = account.email
            if account.display_name:
                claims["name"] = account.display_name
            if account.photo_url:
                claims["picture"] = account.photo_url
        claims.update(extra_claims)
        return self._codec.sign_claims(claims)

    def verify_id_token(self, id_token: str) -> VerifiedToken:
        try:
            claims = self._codec.verify_claims(id_token or "")
        except TokenCodecError as exc:
            raise IdentityProviderError("INVALID_ID_TOKEN", str(exc)) from exc
        subject = claims.get("uid")
        if not isinstance(subject, str) or not subject:
            raise IdentityProviderError("INVALID_ID_TOKEN", "Token has no subject")
        with self._lock:
            revoked_at = self._revoked_at.get(subject)
        if revoked_at is not None and float(claims.get("iat", 0)) <= revoked_at:
            raise IdentityProviderError("INVALID_ID_TOKEN", "Token has been revoked")
        return VerifiedToken(subject=subject, claims=claims)

    def get_account(self, uid: str) -> ProviderAccount:
        with self._lock:
            account = self._accounts.get(uid)
        if account is None:
            raise IdentityProviderError("USER_NOT_FOUND", f"No user record for uid {uid}")
        return account

    def get_account_by_email(self, email: str) -> ProviderAccount:
        with self._lock:
            accounts = list(self._accounts.values())
        for account in accounts:
            if account.email and account.email.lower() == (email or "").lower():
                return account
        raise IdentityProviderError("USER_NOT_FOUND", f"No user record for email {email}")

    def create_account(
        self,
        email: str | None,
        password: str | None = None,
        display_name: str | None = None,
        photo_url: str | None = None,
        uid: str | None = None,
    ) -> ProviderAccount:
        if email is not None and "@" not in email:
            raise IdentityProviderError("INVALID_EMAIL", "Malformed email address string")
        if password is not None and len(password) < 6:
            raise IdentityProviderError(
                "WEAK_PASSWORD", "Password must be at least 6 characters long"
            )
        uid = uid or secrets.token_hex(14)
        with self._lock:
            if email and any(
                (item.email or "").lower() == email.lower() for item in self._accounts.values()
            ):
                raise IdentityProviderError("EMAIL_EXISTS", f"Email {email} already exists")
            if uid in self._accounts:
                raise IdentityProviderError("UID_ALREADY_EXISTS", f"User {uid} already exists")
            account = ProviderAccount(
                uid=uid, email=email, display_name=display_name, photo_url=photo_url
            )
            self._accounts[uid] = account
            if password is not None:
                self._password_hashes[uid] = _hash_password(uid, password)
        return account

    def update_password(self, uid: str, password: str) -> None:
        self.get_account(uid)
        if len(password or "") < 6:
            raise IdentityProviderError(
                "WEAK_PASSWORD", "Password must be at least 6 characters long"
            )
        with self._lock:
            self._password_hashes[uid] = _hash_password(uid, password)

    def revoke_sessions(self, uid: str) -> None:
        self.get_account(uid)
        with self._lock:
            self._revoked_at[uid] = time.time()

    def create_custom_token(self, uid: str) -> str:
        # Local custom tokens are directly usable as bearer tokens.
        self.get_account(uid)
        return self.issue_id_token(uid)

    def generate_password_reset_link(self, email: str) -> str:
        account = self.get_account_by_email(email)
        code = secrets.token_urlsafe(24)
        query = urllib.parse.urlencode({"mode": "resetPassword", "oobCode": code, "uid": account.uid})
        return f"{self._reset_base_url}?{query}"


class FirebaseIdentityProvider(IdentityProvider):
    """Summary: Identity provider backed by Firebase Authentication.

    Importance: Verifies client ID tokens and manages accounts in the hosted provider.
    Alternatives: Use the Identity Toolkit REST API directly.
    """

    def __init__(self, app: firebase_admin.App) -> None:
        """Summary: Initialize with the process-wide Firebase app handle.

        Importance: The app is initialized once at startup and injected here.
        Alternatives: Resolve the default app on every call.
        """

        self._app = app

    def verify_id_token(self, id_token: str) -> VerifiedToken:
        with _translate_firebase_errors():
            claims = auth.verify_id_token(id_token, app=self._app)
        return VerifiedToken(subject=claims["uid"], claims=dict(claims))

    def get_account(self, uid: str) -> ProviderAccount:
        with _translate_firebase_errors():
            record = auth.get_user(uid, app=self._app)
        return _to_provider_account(record)

    def get_account_by_email(self, email: str) -> ProviderAccount:
        with _translate_firebase_errors():
            record = auth.get_user_by_email(email, app=self._app)
        return _to_provider_account(record)

    def create_account(
        self,
        email: str | None,
        password: str | None = None,
        display_name: str | None = None,
        photo_url: str | None = None,
        uid: str | None = None,
    ) -> ProviderAccount:
        kwargs: dict[str, Any] = {}
        if uid:
            kwargs["uid"] = uid
        if email:
            kwargs["email"] = email
        if password:
            kwargs["password"] = password
        if display_name:
            kwargs["display_name"] = display_name
        if photo_url:
            kwargs["photo_url"] = photo_url
        with _translate_firebase_errors():
            record = auth.create_user(app=self._app, **kwargs)
        return _to_provider_account(record)

    def update_password(self, uid: str, password: str) -> None:
        with _translate_firebase_errors():
            auth.update_user(uid, password=password, app=self._app)

    def revoke_sessions(self, uid: str) -> None:
        with _translate_firebase_errors():
            auth.revoke_refresh_tokens(uid, app=self._app)

    def create_custom_token(self, uid: str) -> str:
        with _translate_firebase_errors():
            token = auth.create_custom_token(uid, app=self._app)
        return token.decode("utf-8") if isinstance(token, bytes) else str(token)

    def generate_password_reset_link(self, email: str) -> str:
        with _translate_firebase_errors():
            return auth.generate_password_reset_link(email, app=self._app)


@dataclass(frozen=True)
class IdentityProviderFactory:
    """Summary: Factory for selecting identity providers from configuration.

    Importance: Keeps provider selection logic centralized.
    Alternatives: Wire providers manually at the application entrypoint.
    """

    config: AppConfig

    def build(self, firebase_app: firebase_admin.App | None = None) -> IdentityProvider:
        """Summary: Construct the configured identity provider.

        Importance: Ensures consistent provider selection across services.
        Alternatives: Use dependency injection frameworks.
        """

        if self.config.identity_provider == "firebase":
            return FirebaseIdentityProvider(firebase_app or build_firebase_app(self.config))
        if self.config.identity_provider == "local":
            return LocalIdentityProvider(TokenCodec(self.config.token_secret))
        raise ValueError(f"Unknown identity provider: {self.config.identity_provider}")


def build_firebase_app(config: AppConfig) -> firebase_admin.App:
    """Summary: Initialize the Firebase app once per process.

    Importance: Shares one credentialed app between authentication and Firestore.
    Alternatives: Initialize separate clients per collaborator.
    """

    try:
        return firebase_admin.get_app()
    except ValueError:
        pass
    credential = credentials.Certificate(config.firebase_credentials_path)
    options = {"projectId": config.firebase_project_id} if config.firebase_project_id else None
    logger.info("Initializing Firebase app for project %s.", config.firebase_project_id or "default")
    return firebase_admin.initialize_app(credential, options)


def firebase_error_code(exc: Exception) -> str:
    """Summary: Derive a raw provider code from a Firebase Admin SDK exception.

    Importance: Normalizes SDK exception types into the codes the auth service classifies.
    Alternatives: Classify SDK exception classes in the service layer.
    """

    if isinstance(exc, auth.UserNotFoundError):
        return "USER_NOT_FOUND"
    if isinstance(exc, auth.EmailAlreadyExistsError):
        return "EMAIL_EXISTS"
    if isinstance(exc, auth.InvalidIdTokenError):
        return "INVALID_ID_TOKEN"
    if isinstance(exc, firebase_exceptions.ResourceExhaustedError):
        return "TOO_MANY_ATTEMPTS"
    if isinstance(exc, firebase_exceptions.InvalidArgumentError):
        return "INVALID_ARGUMENT"
    if isinstance(exc, firebase_exceptions.FirebaseError):
        return str(exc.code).upper()
    message = str(exc).lower()
    if "email" in message:
        return "INVALID_EMAIL"
    if "password" in message:
        return "WEAK_PASSWORD"
    if "token" in message:
        return "INVALID_ID_TOKEN"
    return "UNKNOWN"


@contextmanager
def _translate_firebase_errors() -> Iterator[None]:
    try:
        yield
    except (firebase_exceptions.FirebaseError, ValueError) as exc:
        raise IdentityProviderError(firebase_error_code(exc), str(exc)) from exc


def _to_provider_account(record: Any) -> ProviderAccount:
    return ProviderAccount(
        uid=record.uid,
        email=record.email,
        display_name=record.display_name,
        photo_url=record.photo_url,
    )


def _hash_password(uid: str, password: str) -> str:
    return hashlib.sha256(f"{uid}:{password}".encode("utf-8")).hexdigest()
