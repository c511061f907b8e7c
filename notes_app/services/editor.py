"""
Editor Service.

The editor/viewer state machine:

    BROWSING                 no note selected, no draft
    VIEWING(note)            a persisted note is shown read-only
    EDITING(draft, target)   a draft is open; target None means "new note"

Transitions:
    add_note   BROWSING/VIEWING/EDITING -> EDITING(empty, None)
    select     any                      -> VIEWING(note), draft discarded
    edit       VIEWING(note)            -> EDITING(copy of note, note)
    cancel     EDITING(_, note)         -> VIEWING(note)
               EDITING(_, None)         -> BROWSING
    save       EDITING(_, None)         -> BROWSING, collection reloaded
               EDITING(_, note)         -> VIEWING(updated note), collection reloaded
    delete     VIEWING(note)            -> BROWSING after confirmation, collection reloaded
               EDITING(_, note)         -> same; the open draft is dropped
    reset      any                      -> BROWSING

A failed save or delete leaves the state untouched and skips the reload.
"""

from dataclasses import dataclass
from enum import Enum

from notes_app.core.exceptions import ApplicationError, AuthenticationError
from notes_app.remote.gateway import NotesGateway
from notes_app.schemas.base import utc_now
from notes_app.schemas.identity import Identity
from notes_app.schemas.note import Draft, Note
from notes_app.services.base import BaseService, Presenter
from notes_app.services.collection import CollectionService
from notes_app.services.session import SessionService

DELETE_CONFIRMATION = "Delete this note?"


class EditorMode(str, Enum):
    BROWSING = "browsing"
    VIEWING = "viewing"
    EDITING = "editing"


@dataclass(frozen=True)
class EditorState:
    """Snapshot of the editor. `note` is the viewed note or the edit target."""

    mode: EditorMode = EditorMode.BROWSING
    note: Note | None = None
    draft: Draft | None = None

    @property
    def creating(self) -> bool:
        return self.mode is EditorMode.EDITING and self.note is None


BROWSING = EditorState()


class EditorService(BaseService):
    """Selection, draft and save/delete round-trips for a single note at a time."""

    log_source = "editor"

    def __init__(
        self,
        gateway: NotesGateway,
        presenter: Presenter,
        session: SessionService,
        collection: CollectionService,
        title_max_length: int = 120,
    ) -> None:
        super().__init__(gateway, presenter)
        self._session = session
        self._collection = collection
        self.title_max_length = title_max_length
        self.state = BROWSING

    @property
    def mode(self) -> EditorMode:
        return self.state.mode

    @property
    def selected(self) -> Note | None:
        """The note shown or edited, if it is a persisted one."""
        return self.state.note

    @property
    def draft(self) -> Draft | None:
        return self.state.draft

    def _transition(self, state: EditorState) -> None:
        if state.mode is not self.state.mode:
            self._log("debug", "Editor transition", from_mode=self.state.mode.value, to_mode=state.mode.value)
        self.state = state
        self._publish()

    def _require_identity(self) -> Identity:
        identity = self._session.identity
        if identity is None:
            raise AuthenticationError("You are signed out. Please sign in again.")
        return identity

    def add_note(self) -> None:
        """Open an empty draft for a new note, clearing any selection."""
        self._transition(EditorState(EditorMode.EDITING, note=None, draft=Draft()))

    def select(self, note: Note) -> None:
        """Show an existing note. Any open draft is discarded."""
        self._transition(EditorState(EditorMode.VIEWING, note=note))

    def edit(self) -> None:
        """Open a draft copied from the viewed note."""
        if self.state.mode is not EditorMode.VIEWING or self.state.note is None:
            return
        note = self.state.note
        self._transition(EditorState(EditorMode.EDITING, note=note, draft=Draft.from_note(note)))

    def cancel(self) -> None:
        """Leave editing without saving."""
        if self.state.mode is not EditorMode.EDITING:
            return
        if self.state.note is None:
            self._transition(BROWSING)
        else:
            self._transition(EditorState(EditorMode.VIEWING, note=self.state.note))

    def reset(self) -> None:
        """Back to browsing with nothing selected."""
        self._transition(BROWSING)

    def update_draft(self, title: str | None = None, content: str | None = None) -> None:
        """Apply user edits to the open draft."""
        if self.state.draft is None:
            return
        if title is not None:
            self.state.draft.title = title
        if content is not None:
            self.state.draft.content = content

    def _validate_draft(self, draft: Draft) -> None:
        self._validate_required({"title": draft.title}, ["title"])
        self._validate_string_length(draft.title, "title", max_length=self.title_max_length)

    async def save(self) -> bool:
        """
        Persist the open draft.

        Creates a note when the draft has no target, otherwise updates the
        target scoped to the current identity.

        Returns:
            True when saved; False when validation or the request failed
        """
        state = self.state
        if state.mode is not EditorMode.EDITING or state.draft is None:
            return False
        draft = state.draft

        try:
            self._validate_draft(draft)
            identity = self._require_identity()
            if state.note is None:
                note = await self.gateway.create_note(identity.id, draft.title, draft.content or "")
                self._log("info", "Note created", note_id=note.id)
                next_state = BROWSING
            else:
                updated_at = utc_now()
                await self.gateway.update_note(
                    state.note.id,
                    identity.id,
                    draft.title,
                    draft.content or "",
                    updated_at,
                )
                updated = state.note.model_copy(
                    update={"title": draft.title, "content": draft.content or "", "updated_at": updated_at},
                )
                self._log("info", "Note updated", note_id=updated.id)
                next_state = EditorState(EditorMode.VIEWING, note=updated)
        except ApplicationError as e:
            self._report_failure("save_note", e)
            return False

        if self.state is state:
            self._transition(next_state)
        await self._collection.reload()
        return True

    async def delete(self) -> bool:
        """
        Delete the selected note after the user confirms.

        Returns:
            True when deleted; False when declined or the request failed
        """
        state = self.state
        note = state.note
        if note is None or state.mode is EditorMode.BROWSING:
            return False

        if not await self._presenter.confirm(DELETE_CONFIRMATION):
            self._log("debug", "Delete declined", note_id=note.id)
            return False

        try:
            identity = self._require_identity()
            await self.gateway.delete_note(note.id, identity.id)
        except ApplicationError as e:
            self._report_failure("delete_note", e)
            return False

        self._log("info", "Note deleted", note_id=note.id)
        if self.state.note is not None and self.state.note.id == note.id:
            self._transition(BROWSING)
        await self._collection.reload()
        return True
