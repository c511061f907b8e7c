"""
Supabase Notes Gateway.

Implements the NotesGateway contract against a Supabase-style service:
a GoTrue auth API and a PostgREST table API, both reached over HTTP.

Row ownership is enforced here with explicit `user_id=eq.<owner>` filters
on every list, update and delete, independent of any row-level security
configured on the server.

Usage:
    from notes_app.remote.supabase import create_gateway

    gateway = create_gateway()
    await gateway.sign_in_with_password("me@example.com", "secret")
    notes = await gateway.list_notes(identity.id, "groceries")
    await gateway.close()
"""

from datetime import datetime
from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from notes_app.core.config import get_app_config
from notes_app.core.exceptions import (
    AuthenticationError,
    ExternalServiceError,
    NotFoundError,
    RateLimitError,
)
from notes_app.core.logging import get_logger, log_with_source
from notes_app.remote.client import APIClient, create_api_client
from notes_app.remote.gateway import (
    NotesGateway,
    SessionChangeHandler,
    SessionEventEmitter,
    Unsubscribe,
)
from notes_app.schemas.identity import AuthSession, Identity, SessionEvent
from notes_app.schemas.note import Note, NoteChanges, NoteInsert

logger = get_logger(__name__)

SESSION_EXPIRED_MESSAGE = "Your session has expired. Please sign in again."
RETURN_REPRESENTATION = {"Prefer": "return=representation"}


def escape_like(term: str) -> str:
    """Escape LIKE metacharacters so the term matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _error_message(response: httpx.Response) -> str:
    """Extract a human-readable message from a GoTrue or PostgREST error body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        for key in ("msg", "error_description", "message", "error"):
            value = body.get(key)
            if isinstance(value, str) and value:
                return value
    return f"Request failed with status {response.status_code}"


class SupabaseGateway(NotesGateway):
    """
    Gateway to a GoTrue + PostgREST deployment.

    Holds the signed-in session in memory only; nothing is persisted
    locally, so every process starts signed out.
    """

    def __init__(
        self,
        client: APIClient,
        auth_path: str = "/auth/v1",
        rest_path: str = "/rest/v1",
        notes_table: str = "notes",
    ) -> None:
        self._client = client
        self._auth_path = auth_path.rstrip("/")
        self._notes_path = f"{rest_path.rstrip('/')}/{notes_table}"
        self._session: AuthSession | None = None
        self._events = SessionEventEmitter()

    @property
    def session(self) -> AuthSession | None:
        return self._session

    # -------------------------------------------------------------------------
    # Transport and error mapping
    # -------------------------------------------------------------------------

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise ExternalServiceError(f"Could not reach the notes service: {e}") from e

    def _raise_for_auth(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = _error_message(response)
        log_with_source(
            logger, "remote", "warning", "Auth request rejected",
            status_code=response.status_code, error=message,
        )
        if response.status_code == 429:
            raise RateLimitError(message)
        if response.status_code in (400, 401, 403, 422):
            raise AuthenticationError(message)
        raise ExternalServiceError(message)

    async def _raise_for_data(self, response: httpx.Response) -> None:
        if response.is_success:
            return
        message = _error_message(response)
        log_with_source(
            logger, "remote", "warning", "Data request rejected",
            status_code=response.status_code, error=message,
        )
        if response.status_code == 401:
            if self._session is not None:
                await self._drop_session()
                raise AuthenticationError(SESSION_EXPIRED_MESSAGE)
            raise AuthenticationError(message)
        if response.status_code == 404:
            raise NotFoundError(message)
        if response.status_code == 429:
            raise RateLimitError(message)
        raise ExternalServiceError(message)

    async def _drop_session(self) -> None:
        self._session = None
        self._client.set_access_token(None)
        await self._events.emit(SessionEvent.SIGNED_OUT, None)

    @staticmethod
    def _rows(response: httpx.Response) -> list[dict[str, Any]]:
        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, list):
            raise ExternalServiceError("Unexpected response from the notes service")
        return body

    @staticmethod
    def _notes(rows: list[dict[str, Any]]) -> list[Note]:
        try:
            return [Note.model_validate(row) for row in rows]
        except PydanticValidationError as e:
            raise ExternalServiceError("Unexpected note data from the notes service") from e

    # -------------------------------------------------------------------------
    # Authentication
    # -------------------------------------------------------------------------

    def subscribe_to_session_changes(self, handler: SessionChangeHandler) -> Unsubscribe:
        return self._events.subscribe(handler)

    async def get_current_identity(self) -> Identity | None:
        if self._session is None:
            return None

        response = await self._send("GET", f"{self._auth_path}/user")
        if response.status_code == 401:
            await self._drop_session()
            return None
        self._raise_for_auth(response)
        try:
            return Identity.model_validate(response.json())
        except (PydanticValidationError, ValueError) as e:
            raise ExternalServiceError("Unexpected response from the auth service") from e

    async def sign_in_with_password(self, email: str, password: str) -> None:
        response = await self._send(
            "POST",
            f"{self._auth_path}/token",
            params={"grant_type": "password"},
            json={"email": email, "password": password},
        )
        self._raise_for_auth(response)
        try:
            session = AuthSession.model_validate(response.json())
        except (PydanticValidationError, ValueError) as e:
            raise ExternalServiceError("Unexpected response from the auth service") from e

        self._session = session
        self._client.set_access_token(session.access_token)
        log_with_source(logger, "remote", "info", "Signed in", user_id=session.user.id)
        await self._events.emit(SessionEvent.SIGNED_IN, session.user)

    async def sign_up(self, email: str, password: str) -> None:
        response = await self._send(
            "POST",
            f"{self._auth_path}/signup",
            json={"email": email, "password": password},
        )
        self._raise_for_auth(response)
        log_with_source(logger, "remote", "info", "Account registered")

    async def sign_out(self) -> None:
        if self._session is None:
            return
        try:
            response = await self._send("POST", f"{self._auth_path}/logout")
            if not response.is_success:
                log_with_source(
                    logger, "remote", "warning", "Remote sign-out rejected",
                    status_code=response.status_code,
                )
        except ExternalServiceError as e:
            log_with_source(logger, "remote", "warning", "Remote sign-out failed", error=e.message)
        await self._drop_session()

    # -------------------------------------------------------------------------
    # Notes
    # -------------------------------------------------------------------------

    async def list_notes(self, owner_id: str, title_substring: str = "") -> list[Note]:
        params = {
            "select": "*",
            "user_id": f"eq.{owner_id}",
            "order": "updated_at.desc",
        }
        if title_substring:
            params["title"] = f"ilike.*{escape_like(title_substring)}*"

        response = await self._send("GET", self._notes_path, params=params)
        await self._raise_for_data(response)
        notes = self._notes(self._rows(response))
        if not title_substring:
            return notes
        # `*` is a wildcard in PostgREST like-patterns and cannot be escaped
        term = title_substring.casefold()
        return [note for note in notes if term in note.title.casefold()]

    async def create_note(self, owner_id: str, title: str, content: str) -> Note:
        row = NoteInsert(user_id=owner_id, title=title, content=content)
        response = await self._send(
            "POST",
            self._notes_path,
            json=row.model_dump(),
            headers=RETURN_REPRESENTATION,
        )
        await self._raise_for_data(response)
        rows = self._rows(response)
        if not rows:
            raise ExternalServiceError("The notes service did not return the created note")
        return self._notes(rows[:1])[0]

    async def update_note(
        self,
        note_id: str,
        owner_id: str,
        title: str,
        content: str,
        updated_at: datetime,
    ) -> None:
        changes = NoteChanges(title=title, content=content, updated_at=updated_at)
        response = await self._send(
            "PATCH",
            self._notes_path,
            params={"id": f"eq.{note_id}", "user_id": f"eq.{owner_id}"},
            json=changes.model_dump(mode="json"),
            headers=RETURN_REPRESENTATION,
        )
        await self._raise_for_data(response)
        if not self._rows(response):
            raise NotFoundError("Note not found")

    async def delete_note(self, note_id: str, owner_id: str) -> None:
        response = await self._send(
            "DELETE",
            self._notes_path,
            params={"id": f"eq.{note_id}", "user_id": f"eq.{owner_id}"},
            headers=RETURN_REPRESENTATION,
        )
        await self._raise_for_data(response)
        if not self._rows(response):
            raise NotFoundError("Note not found")

    async def close(self) -> None:
        self._events.clear()
        await self._client.close()


def create_gateway(transport: httpx.AsyncBaseTransport | None = None) -> SupabaseGateway:
    """Build a gateway from config/.env and remote.yaml."""
    remote = get_app_config().remote
    return SupabaseGateway(
        create_api_client(transport=transport),
        auth_path=remote.auth_path,
        rest_path=remote.rest_path,
        notes_table=remote.notes_table,
    )
