"""Summary: FastAPI application for SmartList.

Importance: Exposes note, analytics, and auth endpoints to mobile and web clients.
Alternatives: Use a different web framework or a CLI-only workflow.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from datetime import date, datetime
from typing import Any

from fastapi import Depends, FastAPI, Header, HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field

from smartlist.app import AppServices, build_services
from smartlist.config import AppConfig
from smartlist.errors import InvalidArgumentError, NotFoundError, SmartListError
from smartlist.identity import IdentityProviderError
from smartlist.models import (
    DEFAULT_PRIORITY,
    PRIORITIES,
    Note,
    account_to_dict,
    analytics_to_dict,
    note_to_dict,
    utc_now,
)


logger = logging.getLogger(__name__)


class ApiModel(BaseModel):
    """Summary: Base request model accepting camelCase or snake_case keys.

    Importance: Existing clients send camelCase JSON.
    Alternatives: Require snake_case payloads.
    """

    model_config = ConfigDict(populate_by_name=True)


class NoteRequest(ApiModel):
    """Summary: Request payload for note creation and replacement.

    Importance: Keeps note inputs explicit for API clients.
    Alternatives: Accept arbitrary dictionaries and map fields manually.
    """

    title: str = ""
    description: str = ""
    is_completed: bool = Field(default=False, alias="isCompleted")
    due_date: datetime | None = Field(default=None, alias="dueDate")
    priority: str = DEFAULT_PRIORITY
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")
    audio_url: str | None = Field(default=None, alias="audioUrl")

    def to_note(self, note_id: str | None = None) -> Note:
        return Note(
            id=note_id,
            title=self.title,
            description=self.description,
            is_completed=self.is_completed,
            due_date=self.due_date,
            priority=self.priority,
            created_at=self.created_at,
            updated_at=self.updated_at,
            audio_url=self.audio_url,
        )


class LoginRequest(ApiModel):
    email: str
    id_token: str = Field(alias="idToken")


class RegisterRequest(ApiModel):
    email: str
    password: str
    full_name: str = Field(alias="fullName")


class FederatedSignInRequest(ApiModel):
    """Summary: Request payload for Google sign-in.

    Importance: Carries the ID token issued to the client by the federated provider.
    Alternatives: Run the OAuth code exchange server-side.
    """

    id_token: str = Field(alias="idToken")
    access_token: str | None = Field(default=None, alias="accessToken")


class LogoutRequest(ApiModel):
    user_id: str | None = Field(default=None, alias="userId")


class ChangePasswordRequest(ApiModel):
    current_password: str = Field(default="", alias="currentPassword")
    new_password: str = Field(alias="newPassword")


class PasswordResetRequest(ApiModel):
    email: str


def _invalid_request(details: str) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": "Invalid request", "details": details})


def _note_error(exc: SmartListError, failure: str) -> JSONResponse:
    """Summary: Translate a classified error into a note/analytics HTTP response.

    Importance: Missing fields and unknown ids are client errors; storage failures are server errors.
    Alternatives: Register a global exception handler.
    """

    if isinstance(exc, (InvalidArgumentError, NotFoundError)):
        return _invalid_request(exc.message)
    logger.error("%s: %s", failure, exc.message)
    return JSONResponse(status_code=500, content={"error": failure, "details": exc.message})


def _validation_details(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part != "body")
        message = str(error.get("msg", "invalid"))
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages) or "Invalid request body"


def _auth_error(exc: SmartListError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": {"message": exc.reason, "details": exc.message}},
    )


def create_app(config: AppConfig, services: AppServices | None = None) -> FastAPI:
    """Summary: Create a FastAPI app wired to SmartList services.

    Importance: Ensures the API layer shares the same configuration and collaborators.
    Alternatives: Instantiate services globally outside the factory.
    """

    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=config.log_level, format="%(levelname)s %(name)s: %(message)s"
        )
    app = FastAPI(title="SmartList API", version="0.1.0")
    services = services or build_services(config)
    app.state.services = services

    @app.exception_handler(RequestValidationError)
    def validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Summary: Report malformed request bodies as 400 responses.

        Importance: Auth routes keep their nested error shape; other routes use the flat one.
        Alternatives: Accept FastAPI's default 422 response.
        """

        details = _validation_details(exc)
        if request.url.path.startswith("/api/auth/"):
            return _auth_error(InvalidArgumentError(details))
        return _invalid_request(details)

    def require_account_id(authorization: str | None = Header(default=None)) -> str:
        """Summary: Resolve the authenticated account id from a bearer token.

        Importance: Every note and analytics call is scoped to the token subject.
        Alternatives: Accept the account id as a request parameter.
        """

        scheme, _, token = (authorization or "").partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            raise HTTPException(status_code=401, detail="User not authenticated")
        try:
            verified = services.identity.verify_id_token(token.strip())
        except IdentityProviderError as exc:
            logger.warning("Rejected bearer token: %s", exc.message)
            raise HTTPException(status_code=401, detail="User not authenticated") from exc
        return verified.subject

    @app.get("/health")
    def health() -> dict[str, str]:
        """Summary: Health check endpoint.

        Importance: Supports uptime checks in local and cloud deployments.
        Alternatives: Use a metrics endpoint only.
        """

        return {"status": "ok"}

    @app.get("/api/analytics/month/{year}/{month}", response_model=None)
    def month_analytics(
        year: int, month: int, account_id: str = Depends(require_account_id)
    ) -> Any:
        """Summary: Return priority counts and tasks for a month.

        Importance: Drives the monthly dashboard chart.
        Alternatives: Compute analytics on the client.
        """

        if year < 1900 or year > 9999 or month < 1 or month > 12:
            return _invalid_request("Invalid year or month")
        try:
            analytics = services.analytics.monthly_analytics(account_id, date(year, month, 1))
        except SmartListError as exc:
            return _note_error(exc, "Failed to load analytics")
        return analytics_to_dict(analytics)

    @app.get("/api/analytics/date/{year}/{month}/{day}", response_model=None)
    def tasks_for_date(
        year: int, month: int, day: int, account_id: str = Depends(require_account_id)
    ) -> Any:
        if year < 1900 or year > 9999:
            return _invalid_request("Invalid date")
        try:
            requested = date(year, month, day)
        except ValueError:
            return _invalid_request("Invalid date")
        try:
            tasks = services.analytics.daily_tasks(account_id, requested)
        except SmartListError as exc:
            return _note_error(exc, "Failed to load tasks")
        return [note_to_dict(task) for task in tasks]

    @app.get("/api/note", response_model=None)
    def list_notes(account_id: str = Depends(require_account_id)) -> Any:
        try:
            notes = services.notes.list_notes(account_id)
        except SmartListError as exc:
            return _note_error(exc, "Failed to load notes")
        return [note_to_dict(note) for note in notes]

    @app.post("/api/note", response_model=None)
    def add_note(payload: NoteRequest, account_id: str = Depends(require_account_id)) -> Any:
        """Summary: Create a note for the authenticated account.

        Importance: Returns the stored note including its assigned id.
        Alternatives: Return only the new id.
        """

        if not payload.title:
            return _invalid_request("Title is required")
        if payload.priority.lower() not in PRIORITIES:
            return _invalid_request("Priority must be high, medium, or low")
        try:
            note = services.notes.add_note(account_id, payload.to_note())
        except SmartListError as exc:
            return _note_error(exc, "Failed to add note")
        return JSONResponse(status_code=201, content=note_to_dict(note))

    @app.put("/api/note/{note_id}", response_model=None)
    def update_note(
        note_id: str, payload: NoteRequest, account_id: str = Depends(require_account_id)
    ) -> Any:
        """Summary: Replace a note with the supplied fields.

        Importance: Omitted fields are cleared, matching full-replace semantics.
        Alternatives: Use PATCH with merge semantics.
        """

        if not note_id or not payload.title:
            return _invalid_request("ID and title are required")
        if payload.priority.lower() not in PRIORITIES:
            return _invalid_request("Priority must be high, medium, or low")
        note = payload.to_note(note_id)
        if note.updated_at is None:
            note = replace(note, updated_at=utc_now())
        try:
            services.notes.update_note(account_id, note)
        except SmartListError as exc:
            return _note_error(exc, "Failed to update note")
        return note_to_dict(note)

    @app.patch("/api/note/{note_id}/toggle", response_model=None)
    def toggle_note(note_id: str, account_id: str = Depends(require_account_id)) -> Any:
        try:
            note = services.notes.toggle_status(account_id, note_id)
        except SmartListError as exc:
            return _note_error(exc, "Failed to toggle note status")
        return note_to_dict(note)

    @app.delete("/api/note/{note_id}", response_model=None)
    def delete_note(note_id: str, account_id: str = Depends(require_account_id)) -> Any:
        try:
            services.notes.delete_note(account_id, note_id)
        except SmartListError as exc:
            return _note_error(exc, "Failed to delete note")
        return Response(status_code=204)

    @app.post("/api/auth/login", response_model=None)
    def login(payload: LoginRequest) -> Any:
        try:
            account, token = services.auth.login(payload.email, payload.id_token)
        except SmartListError as exc:
            return _auth_error(exc)
        return {"user": account_to_dict(account), "token": token}

    @app.post("/api/auth/register", response_model=None)
    def register(payload: RegisterRequest) -> Any:
        try:
            account, token = services.auth.register(
                payload.email, payload.password, payload.full_name
            )
        except SmartListError as exc:
            return _auth_error(exc)
        return JSONResponse(
            status_code=201, content={"user": account_to_dict(account), "token": token}
        )

    @app.post("/api/auth/google", response_model=None)
    def google_sign_in(payload: FederatedSignInRequest) -> Any:
        try:
            account, token = services.auth.sign_in_with_federated_provider(
                payload.id_token, payload.access_token
            )
        except SmartListError as exc:
            return _auth_error(exc)
        return {"user": account_to_dict(account), "token": token}

    @app.post("/api/auth/logout", response_model=None)
    def logout(
        payload: LogoutRequest | None = None, account_id: str = Depends(require_account_id)
    ) -> Any:
        """Summary: Revoke sessions for the authenticated account.

        Importance: A body userId, when sent, must match the token subject.
        Alternatives: Trust the userId in the body.
        """

        if payload is not None and payload.user_id and payload.user_id != account_id:
            return _auth_error(InvalidArgumentError("User ID does not match the token"))
        try:
            services.auth.logout(account_id)
        except SmartListError as exc:
            return _auth_error(exc)
        return {"status": "ok"}

    @app.get("/api/auth/user/{user_id}", response_model=None)
    def get_user(user_id: str, account_id: str = Depends(require_account_id)) -> Any:
        if user_id != account_id:
            return _auth_error(NotFoundError("user-not-found", reason="user-not-found"))
        try:
            account = services.auth.get_account(user_id)
        except SmartListError as exc:
            return _auth_error(exc)
        return account_to_dict(account)

    @app.post("/api/auth/change-password", response_model=None)
    def change_password(
        payload: ChangePasswordRequest, account_id: str = Depends(require_account_id)
    ) -> Any:
        try:
            services.auth.change_password(
                account_id, payload.current_password, payload.new_password
            )
        except SmartListError as exc:
            return _auth_error(exc)
        return {"status": "ok"}

    @app.post("/api/auth/reset-password", response_model=None)
    def reset_password(payload: PasswordResetRequest) -> Any:
        """Summary: Generate a password reset link for an email.

        Importance: The link is never returned over HTTP; delivery happens out of band.
        Alternatives: Email the link directly from the API.
        """

        try:
            services.auth.send_password_reset(payload.email)
        except SmartListError as exc:
            return _auth_error(exc)
        return {"status": "ok"}

    return app


def app_factory() -> FastAPI:
    """Summary: Build the app from environment configuration.

    Importance: Entry point for `uvicorn smartlist.api:app_factory --factory`.
    Alternatives: Create a module-level app at import time.
    """

    return create_app(AppConfig.from_env())
