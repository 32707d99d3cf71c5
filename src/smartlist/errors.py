"""Summary: Error taxonomy shared by repositories, services, and the API.

Importance: Keeps identity-provider and storage vocabulary out of caller-facing errors.
Alternatives: Raise provider exceptions directly and map them in each controller.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    """Summary: Closed set of error kinds produced by the core.

    Importance: Gives the HTTP layer a small, stable vocabulary to map to status codes.
    Alternatives: Use HTTP status codes directly inside services.
    """

    INVALID_ARGUMENT = "invalid-argument"
    NOT_FOUND = "not-found"
    INVALID_TOKEN = "invalid-token"
    AUTH_PROVIDER = "auth-provider"
    STORAGE = "storage"


class SmartListError(Exception):
    """Summary: Base class for classified SmartList errors.

    Importance: Carries the error kind and a stable reason alongside the message.
    Alternatives: Encode the kind in the exception message string.
    """

    kind: ErrorKind = ErrorKind.AUTH_PROVIDER

    def __init__(self, message: str, reason: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason or self.kind.value


class InvalidArgumentError(SmartListError):
    kind = ErrorKind.INVALID_ARGUMENT


class NotFoundError(SmartListError):
    kind = ErrorKind.NOT_FOUND


class InvalidTokenError(SmartListError):
    kind = ErrorKind.INVALID_TOKEN


class AuthProviderError(SmartListError):
    """Summary: Identity-provider failure not otherwise classified.

    Importance: The reason distinguishes invalid email, existing account, weak
    credential, too many attempts, and invalid audience.
    Alternatives: Use a dedicated subclass per reason.
    """

    kind = ErrorKind.AUTH_PROVIDER


class StorageError(SmartListError):
    kind = ErrorKind.STORAGE


_ERROR_TYPES: dict[ErrorKind, type[SmartListError]] = {
    ErrorKind.INVALID_ARGUMENT: InvalidArgumentError,
    ErrorKind.NOT_FOUND: NotFoundError,
    ErrorKind.INVALID_TOKEN: InvalidTokenError,
    ErrorKind.AUTH_PROVIDER: AuthProviderError,
    ErrorKind.STORAGE: StorageError,
}


@dataclass(frozen=True)
class ErrorClassification:
    """Summary: Result of classifying a raw provider error code.

    Importance: Lets callers inspect the classification before deciding to raise.
    Alternatives: Raise directly from the classifier.
    """

    kind: ErrorKind
    reason: str

    def to_error(self, message: str | None = None) -> SmartListError:
        """Summary: Build the exception matching this classification.

        Importance: Preserves the underlying message for logs while exposing a stable reason.
        Alternatives: Construct exception classes at each call site.
        """

        error_type = _ERROR_TYPES[self.kind]
        return error_type(message or self.reason, reason=self.reason)


USER_NOT_FOUND = "USER_NOT_FOUND"

_PROVIDER_CODES: dict[str, ErrorClassification] = {
    "INVALID_EMAIL": ErrorClassification(ErrorKind.AUTH_PROVIDER, "invalid-email"),
    USER_NOT_FOUND: ErrorClassification(ErrorKind.AUTH_PROVIDER, "wrong-credentials"),
    "EMAIL_EXISTS": ErrorClassification(ErrorKind.AUTH_PROVIDER, "email-already-in-use"),
    "INVALID_PASSWORD": ErrorClassification(ErrorKind.AUTH_PROVIDER, "weak-password"),
    "WEAK_PASSWORD": ErrorClassification(ErrorKind.AUTH_PROVIDER, "weak-password"),
    "TOO_MANY_ATTEMPTS": ErrorClassification(ErrorKind.AUTH_PROVIDER, "too-many-requests"),
    "INVALID_ID_TOKEN": ErrorClassification(ErrorKind.INVALID_TOKEN, "invalid-token"),
    "INVALID_ARGUMENT": ErrorClassification(ErrorKind.AUTH_PROVIDER, "invalid-audience"),
}

_DEFAULT_CLASSIFICATION = ErrorClassification(ErrorKind.AUTH_PROVIDER, "auth-error")


def classify_provider_error(raw_code: str | None) -> ErrorClassification:
    """Summary: Map an identity-provider error code to the error taxonomy.

    Importance: Total over every input; unknown codes fall back to a generic auth error.
    Alternatives: Pattern-match provider exception types at each call site.
    """

    if not raw_code:
        return _DEFAULT_CLASSIFICATION
    return _PROVIDER_CODES.get(raw_code.strip().upper(), _DEFAULT_CLASSIFICATION)
