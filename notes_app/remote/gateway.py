"""
Notes Gateway Contract.

The minimal interface the client needs from the remote notes service.
Operations return on success and raise an ApplicationError subclass on
failure; the error message is suitable for showing to the user.

Ownership is never implicit: every list, update and delete names the
owner, and implementations must scope the operation to it.
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from datetime import datetime

from notes_app.core.logging import get_logger
from notes_app.schemas.identity import Identity, SessionEvent
from notes_app.schemas.note import Note

logger = get_logger(__name__)

SessionChangeHandler = Callable[[SessionEvent, Identity | None], Awaitable[None] | None]
Unsubscribe = Callable[[], None]


class SessionEventEmitter:
    """
    Observer registry for session-change notifications.

    `subscribe` returns a disposer. Once disposed, a handler is never called
    again, including by an emit that is already in progress.
    """

    def __init__(self) -> None:
        self._handlers: list[SessionChangeHandler] = []

    def __len__(self) -> int:
        return len(self._handlers)

    def subscribe(self, handler: SessionChangeHandler) -> Unsubscribe:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    async def emit(self, event: SessionEvent, identity: Identity | None) -> None:
        logger.debug(
            "Session event",
            extra={"session_event": event.value, "handlers": len(self._handlers)},
        )
        for handler in list(self._handlers):
            if handler not in self._handlers:
                continue
            result = handler(event, identity)
            if inspect.isawaitable(result):
                await result

    def clear(self) -> None:
        self._handlers.clear()


class NotesGateway(ABC):
    """Data access contract for authentication and owner-scoped note CRUD."""

    @abstractmethod
    async def get_current_identity(self) -> Identity | None:
        """Return the signed-in identity, or None."""

    @abstractmethod
    def subscribe_to_session_changes(self, handler: SessionChangeHandler) -> Unsubscribe:
        """Register a session-change handler. Returns its disposer."""

    @abstractmethod
    async def sign_in_with_password(self, email: str, password: str) -> None:
        """Authenticate with email and password."""

    @abstractmethod
    async def sign_up(self, email: str, password: str) -> None:
        """Register a new account. Does not sign in."""

    @abstractmethod
    async def sign_out(self) -> None:
        """End the current session, best effort."""

    @abstractmethod
    async def list_notes(self, owner_id: str, title_substring: str = "") -> list[Note]:
        """Notes of `owner_id` whose title contains the substring, newest update first."""

    @abstractmethod
    async def create_note(self, owner_id: str, title: str, content: str) -> Note:
        """Create a note owned by `owner_id` and return it as stored."""

    @abstractmethod
    async def update_note(
        self,
        note_id: str,
        owner_id: str,
        title: str,
        content: str,
        updated_at: datetime,
    ) -> None:
        """Update the note matching both `note_id` and `owner_id`."""

    @abstractmethod
    async def delete_note(self, note_id: str, owner_id: str) -> None:
        """Delete the note matching both `note_id` and `owner_id`."""

    async def close(self) -> None:
        """Release network resources."""
