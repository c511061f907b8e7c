"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Remote Service:
    Tests never reach a real notes service. Services are exercised against
    FakeNotesGateway, an in-memory implementation of the gateway contract
    that scopes every operation to its owner exactly like the real store,
    records each call, and can be told to fail a given operation.

    The HTTP gateway itself is tested separately against httpx.MockTransport.
"""

import itertools
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import pytest

from notes_app.core.config import get_app_config, get_settings
from notes_app.core.exceptions import (
    ApplicationError,
    AuthenticationError,
    NotFoundError,
)
from notes_app.remote.gateway import (
    NotesGateway,
    SessionChangeHandler,
    SessionEventEmitter,
    Unsubscribe,
)
from notes_app.schemas.identity import Identity, SessionEvent
from notes_app.schemas.note import Note

BASE_TIME = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# Configuration
# =============================================================================


@pytest.fixture(autouse=True)
def _remote_service_env(monkeypatch):
    """Point the remote settings at a placeholder service for every test."""
    monkeypatch.setenv("NOTES_SERVICE_URL", "https://notes.test")
    monkeypatch.setenv("NOTES_SERVICE_KEY", "anon-key")
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


# =============================================================================
# Fake Gateway
# =============================================================================


class FakeNotesGateway(NotesGateway):
    """In-memory, owner-scoped notes store with a password auth stub."""

    def __init__(self) -> None:
        self.users: dict[str, tuple[str, Identity]] = {}
        self.notes: dict[str, Note] = {}
        self.identity: Identity | None = None
        self.calls: list[tuple[str, tuple]] = []
        self.failures: dict[str, ApplicationError] = {}
        self.closed = False
        self.events = SessionEventEmitter()
        self._ids = itertools.count(1)
        self._clock = itertools.count(1)

    # -- test helpers ---------------------------------------------------------

    def add_user(self, email: str, password: str, user_id: str | None = None) -> Identity:
        identity = Identity(id=user_id or f"user-{len(self.users) + 1}", email=email)
        self.users[email] = (password, identity)
        return identity

    def seed_note(
        self,
        owner_id: str,
        title: str,
        content: str = "",
        updated_at: datetime | None = None,
        note_id: str | None = None,
    ) -> Note:
        note = Note(
            id=note_id or f"note-{next(self._ids)}",
            user_id=owner_id,
            title=title,
            content=content,
            created_at=updated_at or BASE_TIME,
            updated_at=updated_at or BASE_TIME,
        )
        self.notes[note.id] = note
        return note

    def fail(self, operation: str, error: ApplicationError) -> None:
        """Make the next call to `operation` raise `error`."""
        self.failures[operation] = error

    def calls_to(self, operation: str) -> list[tuple]:
        return [args for name, args in self.calls if name == operation]

    async def force_sign_out(self) -> None:
        """Simulate the remote service ending the session."""
        self.identity = None
        await self.events.emit(SessionEvent.SIGNED_OUT, None)

    def _record(self, operation: str, *args: Any) -> None:
        self.calls.append((operation, args))
        error = self.failures.pop(operation, None)
        if error is not None:
            raise error

    def _now(self) -> datetime:
        return BASE_TIME + timedelta(days=1, seconds=next(self._clock))

    # -- contract -------------------------------------------------------------

    async def get_current_identity(self) -> Identity | None:
        self._record("get_current_identity")
        return self.identity

    def subscribe_to_session_changes(self, handler: SessionChangeHandler) -> Unsubscribe:
        return self.events.subscribe(handler)

    async def sign_in_with_password(self, email: str, password: str) -> None:
        self._record("sign_in_with_password", email)
        stored = self.users.get(email)
        if stored is None or stored[0] != password:
            raise AuthenticationError("Invalid login credentials")
        self.identity = stored[1]
        await self.events.emit(SessionEvent.SIGNED_IN, self.identity)

    async def sign_up(self, email: str, password: str) -> None:
        self._record("sign_up", email)
        if email in self.users:
            raise AuthenticationError("User already registered")
        self.add_user(email, password)

    async def sign_out(self) -> None:
        self._record("sign_out")
        if self.identity is not None:
            await self.force_sign_out()

    async def list_notes(self, owner_id: str, title_substring: str = "") -> list[Note]:
        self._record("list_notes", owner_id, title_substring)
        term = title_substring.lower()
        notes = [
            note for note in self.notes.values()
            if note.owner_id == owner_id and term in note.title.lower()
        ]
        return sorted(notes, key=lambda note: note.updated_at, reverse=True)

    async def create_note(self, owner_id: str, title: str, content: str) -> Note:
        self._record("create_note", owner_id, title, content)
        return self.seed_note(owner_id, title, content, updated_at=self._now())

    async def update_note(
        self,
        note_id: str,
        owner_id: str,
        title: str,
        content: str,
        updated_at: datetime,
    ) -> None:
        self._record("update_note", note_id, owner_id, title, content, updated_at)
        note = self.notes.get(note_id)
        if note is None or note.owner_id != owner_id:
            raise NotFoundError("Note not found")
        self.notes[note_id] = note.model_copy(
            update={"title": title, "content": content, "updated_at": updated_at},
        )

    async def delete_note(self, note_id: str, owner_id: str) -> None:
        self._record("delete_note", note_id, owner_id)
        note = self.notes.get(note_id)
        if note is None or note.owner_id != owner_id:
            raise NotFoundError("Note not found")
        del self.notes[note_id]

    async def close(self) -> None:
        self.closed = True
        self.events.clear()


# =============================================================================
# Recording Presenter
# =============================================================================


class RecordingPresenter:
    """Presenter that records messages and answers confirmations from a script."""

    def __init__(self, confirm_answer: bool = True) -> None:
        self.messages: list[tuple[str, str]] = []
        self.questions: list[str] = []
        self.confirm_answer = confirm_answer

    def show_message(self, message: str, severity: str = "information") -> None:
        self.messages.append((message, severity))

    async def confirm(self, question: str) -> bool:
        self.questions.append(question)
        return self.confirm_answer

    @property
    def errors(self) -> list[str]:
        return [message for message, severity in self.messages if severity == "error"]


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def gateway() -> FakeNotesGateway:
    """Empty in-memory gateway."""
    return FakeNotesGateway()


@pytest.fixture
def presenter() -> RecordingPresenter:
    """Presenter that confirms every question."""
    return RecordingPresenter()


@pytest.fixture
def alice(gateway: FakeNotesGateway) -> Identity:
    """A registered user on the fake gateway."""
    return gateway.add_user("alice@example.com", "secret123", user_id="user-alice")


@pytest.fixture
def at() -> Callable[[int], datetime]:
    """Timestamps relative to a fixed base: at(5) is five minutes after it."""

    def _at(minutes: int) -> datetime:
        return BASE_TIME + timedelta(minutes=minutes)

    return _at
