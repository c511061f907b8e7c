"""
Unit Tests for the Editor Service.

Covers every state-machine transition plus the save and delete
round-trips against the in-memory gateway.
"""

import pytest

from notes_app.core.exceptions import ExternalServiceError, NotFoundError
from notes_app.schemas.note import Draft
from notes_app.services.collection import CollectionService
from notes_app.services.editor import (
    BROWSING,
    DELETE_CONFIRMATION,
    EditorMode,
    EditorService,
)
from notes_app.services.session import SessionService


@pytest.fixture
async def session(gateway, presenter, alice) -> SessionService:
    service = SessionService(gateway, presenter)
    await service.start()
    await service.sign_in("alice@example.com", "secret123")
    return service


@pytest.fixture
async def collection(gateway, presenter, alice) -> CollectionService:
    service = CollectionService(gateway, presenter)
    await service.set_owner(alice.id)
    yield service
    service.close()


@pytest.fixture
def editor(gateway, presenter, session, collection) -> EditorService:
    return EditorService(gateway, presenter, session=session, collection=collection, title_max_length=20)


@pytest.fixture
def note(gateway, alice, at):
    return gateway.seed_note(alice.id, "Groceries", "milk, eggs", updated_at=at(1))


class TestTransitions:
    """Tests for the pure state transitions."""

    def test_starts_browsing(self, editor):
        assert editor.state is BROWSING
        assert editor.selected is None
        assert editor.draft is None

    def test_add_note_opens_empty_draft(self, editor, note):
        editor.select(note)

        editor.add_note()

        assert editor.mode is EditorMode.EDITING
        assert editor.selected is None
        assert editor.draft == Draft(title="", content="")
        assert editor.state.creating is True

    def test_select_shows_note(self, editor, note):
        editor.select(note)

        assert editor.mode is EditorMode.VIEWING
        assert editor.selected == note
        assert editor.draft is None

    def test_select_discards_open_draft(self, editor, note, gateway, alice):
        other = gateway.seed_note(alice.id, "Other")
        editor.select(note)
        editor.edit()
        editor.update_draft(title="Unsaved")

        editor.select(other)

        assert editor.mode is EditorMode.VIEWING
        assert editor.selected == other
        assert editor.draft is None

    def test_edit_copies_note_into_draft(self, editor, note):
        editor.select(note)

        editor.edit()

        assert editor.mode is EditorMode.EDITING
        assert editor.selected == note
        assert editor.draft == Draft(title="Groceries", content="milk, eggs")
        assert editor.state.creating is False

    def test_edit_ignored_while_browsing(self, editor):
        editor.edit()

        assert editor.state is BROWSING

    def test_cancel_existing_returns_to_viewing(self, editor, note):
        editor.select(note)
        editor.edit()
        editor.update_draft(title="Changed")

        editor.cancel()

        assert editor.mode is EditorMode.VIEWING
        assert editor.selected.title == "Groceries"

    def test_cancel_new_returns_to_browsing(self, editor):
        editor.add_note()

        editor.cancel()

        assert editor.state is BROWSING

    def test_update_draft_without_draft_is_ignored(self, editor, note):
        editor.select(note)

        editor.update_draft(title="x")

        assert editor.draft is None

    def test_reset(self, editor, note):
        editor.select(note)

        editor.reset()

        assert editor.state is BROWSING

    def test_transitions_are_published(self, editor, note):
        modes = []
        editor.subscribe(lambda: modes.append(editor.mode))

        editor.select(note)
        editor.edit()
        editor.cancel()

        assert modes == [EditorMode.VIEWING, EditorMode.EDITING, EditorMode.VIEWING]


class TestSave:
    """Tests for create and update round-trips."""

    @pytest.mark.asyncio
    async def test_empty_title_is_rejected_without_request(self, editor, gateway, presenter):
        editor.add_note()
        editor.update_draft(title="   ", content="body")

        assert await editor.save() is False

        assert gateway.calls_to("create_note") == []
        assert editor.mode is EditorMode.EDITING
        assert presenter.errors == ["Title is required."]

    @pytest.mark.asyncio
    async def test_empty_title_on_update_is_rejected(self, editor, gateway, note):
        editor.select(note)
        editor.edit()
        editor.update_draft(title="")

        assert await editor.save() is False

        assert gateway.calls_to("update_note") == []
        assert editor.mode is EditorMode.EDITING

    @pytest.mark.asyncio
    async def test_title_too_long_is_rejected(self, editor, gateway, presenter):
        editor.add_note()
        editor.update_draft(title="x" * 21)

        assert await editor.save() is False

        assert gateway.calls_to("create_note") == []
        assert presenter.errors == ["Title must be at most 20 characters."]

    @pytest.mark.asyncio
    async def test_create_returns_to_browsing_and_reloads(self, editor, gateway, collection, alice):
        editor.add_note()
        editor.update_draft(title="New note", content="hello")
        gateway.calls.clear()

        assert await editor.save() is True

        assert editor.state is BROWSING
        assert gateway.calls_to("create_note") == [(alice.id, "New note", "hello")]
        assert gateway.calls_to("list_notes") == [(alice.id, "")]
        assert [n.title for n in collection.notes] == ["New note"]

    @pytest.mark.asyncio
    async def test_update_returns_to_viewing_updated_note(self, editor, gateway, collection, note, alice):
        await collection.reload()
        editor.select(note)
        editor.edit()
        editor.update_draft(title="Groceries", content="milk, eggs, bread")

        assert await editor.save() is True

        assert editor.mode is EditorMode.VIEWING
        assert editor.selected.content == "milk, eggs, bread"
        assert editor.selected.updated_at > note.updated_at
        ((note_id, owner_id, *_),) = gateway.calls_to("update_note")
        assert (note_id, owner_id) == (note.id, alice.id)
        assert collection.notes[0].content == "milk, eggs, bread"

    @pytest.mark.asyncio
    async def test_failed_create_keeps_draft_and_skips_reload(self, editor, gateway, presenter):
        editor.add_note()
        editor.update_draft(title="Keep me")
        gateway.calls.clear()
        gateway.fail("create_note", ExternalServiceError("Could not reach the notes service"))

        assert await editor.save() is False

        assert editor.mode is EditorMode.EDITING
        assert editor.draft.title == "Keep me"
        assert gateway.calls_to("list_notes") == []
        assert presenter.errors == ["Could not reach the notes service"]

    @pytest.mark.asyncio
    async def test_update_of_missing_note_surfaces_not_found(self, editor, gateway, presenter, note):
        editor.select(note)
        editor.edit()
        del gateway.notes[note.id]

        assert await editor.save() is False

        assert presenter.errors == ["Note not found"]
        assert editor.mode is EditorMode.EDITING

    @pytest.mark.asyncio
    async def test_save_while_signed_out_fails(self, editor, session, gateway, presenter):
        editor.add_note()
        editor.update_draft(title="Orphan")
        await session.sign_out()

        assert await editor.save() is False

        assert gateway.calls_to("create_note") == []
        assert presenter.errors == ["You are signed out. Please sign in again."]

    @pytest.mark.asyncio
    async def test_save_outside_editing_is_noop(self, editor, note):
        editor.select(note)

        assert await editor.save() is False


class TestDelete:
    """Tests for confirmed deletion."""

    @pytest.mark.asyncio
    async def test_confirmed_delete_returns_to_browsing(self, editor, gateway, collection, presenter, note):
        await collection.reload()
        editor.select(note)

        assert await editor.delete() is True

        assert presenter.questions == [DELETE_CONFIRMATION]
        assert editor.state is BROWSING
        assert editor.selected is None
        assert note.id not in gateway.notes
        assert collection.notes == []

    @pytest.mark.asyncio
    async def test_declined_delete_issues_no_request(self, editor, gateway, presenter, note):
        presenter.confirm_answer = False
        editor.select(note)

        assert await editor.delete() is False

        assert editor.mode is EditorMode.VIEWING
        assert editor.selected == note
        assert gateway.calls_to("delete_note") == []

    @pytest.mark.asyncio
    async def test_delete_from_editing_drops_draft(self, editor, note):
        editor.select(note)
        editor.edit()
        editor.update_draft(title="Half edited")

        assert await editor.delete() is True

        assert editor.state is BROWSING

    @pytest.mark.asyncio
    async def test_delete_scoped_to_owner(self, editor, gateway, alice, note):
        editor.select(note)

        await editor.delete()

        assert gateway.calls_to("delete_note") == [(note.id, alice.id)]

    @pytest.mark.asyncio
    async def test_failed_delete_keeps_state(self, editor, gateway, presenter, note):
        editor.select(note)
        gateway.fail("delete_note", NotFoundError("Note not found"))

        assert await editor.delete() is False

        assert editor.mode is EditorMode.VIEWING
        assert presenter.errors == ["Note not found"]

    @pytest.mark.asyncio
    async def test_nothing_selected_asks_nothing(self, editor, presenter):
        assert await editor.delete() is False

        assert presenter.questions == []

    @pytest.mark.asyncio
    async def test_new_draft_cannot_be_deleted(self, editor, presenter):
        editor.add_note()

        assert await editor.delete() is False

        assert presenter.questions == []
