"""
Notes TUI.

Terminal front end for the notes workspace: an auth form when signed out;
a sidebar (add, search, note list) and a main pane (placeholder, viewer or
editor) when signed in. Every widget is derived from service state and
re-rendered after each state change.

Usage:
    python run.py --action app
"""

from collections.abc import Callable
from datetime import datetime

from rich.text import Text
from textual import on, work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.widgets import (
    Button,
    Footer,
    Header,
    Input,
    Label,
    ListItem,
    ListView,
    Static,
    TextArea,
)

from notes_app.core.logging import get_logger, log_with_source
from notes_app.remote.gateway import NotesGateway
from notes_app.schemas.note import Note
from notes_app.services.base import Presenter
from notes_app.services.editor import EditorMode
from notes_app.services.session import AuthView, SessionStatus
from notes_app.services.workspace import WorkspaceService
from notes_app.tui.screens import ConfirmScreen

logger = get_logger(__name__)

WorkspaceFactory = Callable[[NotesGateway, Presenter], WorkspaceService]

THEMES = {"dark": "textual-dark", "light": "textual-light"}


def format_timestamp(value: datetime | None) -> str:
    if value is None:
        return ""
    return value.astimezone().strftime("%Y-%m-%d %H:%M")


class NoteListItem(ListItem):
    """Sidebar entry: title and last update time."""

    def __init__(self, note: Note) -> None:
        super().__init__()
        self.note = note

    def compose(self) -> ComposeResult:
        yield Label(Text(self.note.title, style="bold"), classes="note-title")
        yield Label(format_timestamp(self.note.updated_at), classes="note-updated")


class NotesApp(App):
    """Notes manager TUI. Also the presenter the services report to."""

    TITLE = "Notes App"

    CSS = """
    #checking {
        width: 1fr;
        height: 1fr;
        content-align: center middle;
        color: $text-muted;
    }

    #auth-view {
        align: center middle;
    }

    #auth-form {
        width: 50;
        height: auto;
        padding: 1 2;
        border: solid $primary;
        background: $surface;
    }

    #auth-form Input, #auth-form Button {
        width: 100%;
        margin: 1 0 0 0;
    }

    #auth-title {
        text-style: bold;
    }

    #sidebar {
        width: 36;
        border-right: solid $primary;
    }

    #sidebar Button, #sidebar Input {
        width: 100%;
    }

    #list-status {
        color: $text-muted;
        padding: 0 1;
    }

    #note-list {
        height: 1fr;
    }

    .note-updated {
        color: $text-muted;
    }

    #main-pane {
        width: 1fr;
        padding: 1 2;
    }

    #placeholder {
        width: 1fr;
        height: 1fr;
        content-align: center middle;
        color: $text-muted;
    }

    #viewer-title {
        text-style: bold;
    }

    #viewer-meta {
        color: $text-muted;
        margin-bottom: 1;
    }

    #editor-content {
        height: 1fr;
        margin: 1 0;
    }

    .buttons {
        height: auto;
        margin-top: 1;
    }

    .buttons Button {
        margin-right: 2;
    }
    """

    BINDINGS = [
        Binding("ctrl+n", "add_note", "Add Note"),
        Binding("ctrl+s", "save_note", "Save"),
        Binding("f2", "edit_note", "Edit"),
        Binding("f8", "delete_note", "Delete"),
        Binding("escape", "cancel_edit", "Cancel", show=False),
        Binding("ctrl+t", "toggle_theme", "Theme"),
        Binding("ctrl+l", "logout", "Logout"),
        Binding("ctrl+q", "quit", "Quit"),
    ]

    def __init__(
        self,
        gateway: NotesGateway,
        theme_name: str = "dark",
        workspace_factory: WorkspaceFactory = WorkspaceService.from_config,
    ) -> None:
        super().__init__()
        self._theme_name = theme_name
        self.workspace = workspace_factory(gateway, self)
        self._dispose_observer: Callable[[], None] | None = None
        self._listed_notes: list[Note] | None = None
        self._editor_key: tuple | None = None
        self._refresh_pending = False

    # -------------------------------------------------------------------------
    # Presenter
    # -------------------------------------------------------------------------

    def show_message(self, message: str, severity: str = "information") -> None:
        self.notify(message, severity=severity)

    async def confirm(self, question: str) -> bool:
        return bool(await self.push_screen_wait(ConfirmScreen(question)))

    # -------------------------------------------------------------------------
    # Layout
    # -------------------------------------------------------------------------

    def compose(self) -> ComposeResult:
        yield Header()
        yield Static("Checking session...", id="checking")
        with Vertical(id="auth-view"):
            with Vertical(id="auth-form"):
                yield Label("Sign In", id="auth-title")
                yield Input(placeholder="Email", id="auth-email")
                yield Input(placeholder="Password", password=True, id="auth-password")
                yield Button("Sign In", variant="primary", id="auth-submit")
                yield Button("No account? Sign Up", id="auth-toggle")
        with Horizontal(id="notes-view"):
            with Vertical(id="sidebar"):
                yield Button("+ Add Note", variant="primary", id="add-note")
                yield Input(placeholder="Search notes", id="search")
                yield Static("", id="list-status")
                yield ListView(id="note-list")
            with Vertical(id="main-pane"):
                yield Static("Select a note or add a new note to get started.", id="placeholder")
                with VerticalScroll(id="viewer"):
                    yield Static("", id="viewer-title")
                    yield Static("", id="viewer-meta")
                    yield Static("", id="viewer-content")
                    with Horizontal(classes="buttons"):
                        yield Button("Edit", id="edit-note")
                        yield Button("Delete", variant="error", id="viewer-delete")
                with Vertical(id="editor"):
                    yield Input(placeholder="Note title", id="editor-title", max_length=120)
                    yield TextArea(id="editor-content")
                    with Horizontal(classes="buttons"):
                        yield Button("Save", variant="primary", id="save-note")
                        yield Button("Cancel", id="cancel-edit")
                        yield Button("Delete", variant="error", id="editor-delete")
        yield Footer()

    async def on_mount(self) -> None:
        self.theme = THEMES.get(self._theme_name, THEMES["dark"])
        self.query_one("#editor-title", Input).max_length = self.workspace.editor.title_max_length
        self._dispose_observer = self.workspace.subscribe(self._schedule_refresh)
        await self._refresh_view()
        self._start_workspace()

    async def on_unmount(self) -> None:
        if self._dispose_observer is not None:
            self._dispose_observer()
            self._dispose_observer = None
        await self.workspace.close()

    @work(group="startup")
    async def _start_workspace(self) -> None:
        await self.workspace.start()

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def _schedule_refresh(self) -> None:
        if not self._refresh_pending:
            self._refresh_pending = True
            self.call_later(self._refresh_view)

    async def _refresh_view(self) -> None:
        self._refresh_pending = False
        session = self.workspace.session

        self.query_one("#checking").display = session.status is SessionStatus.CHECKING
        self.query_one("#auth-view").display = session.status is SessionStatus.UNAUTHENTICATED
        self.query_one("#notes-view").display = session.is_authenticated
        self.sub_title = (session.identity.email or "") if session.identity else ""

        if session.status is SessionStatus.UNAUTHENTICATED:
            self._render_auth_form()
        await self._render_sidebar()
        self._render_main_pane()

    def _render_auth_form(self) -> None:
        signing_in = self.workspace.session.auth_view is AuthView.SIGN_IN
        self.query_one("#auth-title", Label).update("Sign In" if signing_in else "Sign Up")
        self.query_one("#auth-submit", Button).label = "Sign In" if signing_in else "Sign Up"
        self.query_one("#auth-toggle", Button).label = (
            "No account? Sign Up" if signing_in else "Already signed up? Sign In"
        )

    async def _render_sidebar(self) -> None:
        collection = self.workspace.collection
        editor = self.workspace.editor

        if collection.loading:
            status = "Loading..."
        elif not collection.notes:
            status = "No notes found."
        else:
            status = ""
        self.query_one("#list-status", Static).update(status)
        self.query_one("#add-note", Button).disabled = editor.state.creating

        list_view = self.query_one("#note-list", ListView)
        if self._listed_notes is not collection.notes:
            self._listed_notes = collection.notes
            await list_view.clear()
            await list_view.extend(NoteListItem(note) for note in collection.notes)

        selected = editor.selected
        index = None
        if selected is not None:
            index = next(
                (i for i, note in enumerate(collection.notes) if note.id == selected.id),
                None,
            )
        if list_view.index != index:
            list_view.index = index

    def _render_main_pane(self) -> None:
        state = self.workspace.editor.state

        self.query_one("#placeholder").display = state.mode is EditorMode.BROWSING
        self.query_one("#viewer").display = state.mode is EditorMode.VIEWING
        self.query_one("#editor").display = state.mode is EditorMode.EDITING

        if state.mode is EditorMode.VIEWING and state.note is not None:
            note = state.note
            self.query_one("#viewer-title", Static).update(Text(note.title))
            self.query_one("#viewer-meta", Static).update(format_timestamp(note.updated_at))
            self.query_one("#viewer-content", Static).update(Text(note.content))

        editor_key = (state.mode, state.note.id if state.note else None, id(state.draft))
        if state.mode is EditorMode.EDITING and state.draft is not None and editor_key != self._editor_key:
            self.query_one("#editor-title", Input).value = state.draft.title
            self.query_one("#editor-content", TextArea).load_text(state.draft.content)
            self.query_one("#save-note", Button).label = "Create" if state.creating else "Save"
            self.query_one("#editor-delete", Button).display = not state.creating
            self.query_one("#editor-title", Input).focus()
        self._editor_key = editor_key

    # -------------------------------------------------------------------------
    # Auth form
    # -------------------------------------------------------------------------

    @on(Button.Pressed, "#auth-submit")
    @on(Input.Submitted, "#auth-password")
    def on_auth_submit(self) -> None:
        self._submit_auth()

    @on(Button.Pressed, "#auth-toggle")
    def on_auth_toggle(self) -> None:
        self.workspace.session.toggle_auth_view()

    @work(exclusive=True, group="session")
    async def _submit_auth(self) -> None:
        session = self.workspace.session
        email = self.query_one("#auth-email", Input).value
        password_input = self.query_one("#auth-password", Input)

        if session.auth_view is AuthView.SIGN_IN:
            succeeded = await session.sign_in(email, password_input.value)
        else:
            succeeded = await session.sign_up(email, password_input.value)
        if succeeded:
            password_input.value = ""

    # -------------------------------------------------------------------------
    # Sidebar
    # -------------------------------------------------------------------------

    @on(Button.Pressed, "#add-note")
    def on_add_note(self) -> None:
        self.action_add_note()

    @on(Input.Changed, "#search")
    def on_search_changed(self, event: Input.Changed) -> None:
        self.workspace.collection.set_search_term(event.value)

    @on(ListView.Selected, "#note-list")
    def on_note_selected(self, event: ListView.Selected) -> None:
        if isinstance(event.item, NoteListItem):
            self.workspace.editor.select(event.item.note)

    # -------------------------------------------------------------------------
    # Viewer and editor
    # -------------------------------------------------------------------------

    @on(Input.Changed, "#editor-title")
    def on_title_changed(self, event: Input.Changed) -> None:
        self.workspace.editor.update_draft(title=event.value)

    @on(TextArea.Changed, "#editor-content")
    def on_content_changed(self, event: TextArea.Changed) -> None:
        self.workspace.editor.update_draft(content=event.text_area.text)

    @on(Button.Pressed, "#edit-note")
    def on_edit_note(self) -> None:
        self.action_edit_note()

    @on(Button.Pressed, "#save-note")
    def on_save_note(self) -> None:
        self.action_save_note()

    @on(Button.Pressed, "#cancel-edit")
    def on_cancel_edit(self) -> None:
        self.action_cancel_edit()

    @on(Button.Pressed, "#viewer-delete")
    @on(Button.Pressed, "#editor-delete")
    def on_delete_note(self) -> None:
        self.action_delete_note()

    @work(exclusive=True, group="editor")
    async def _save_note(self) -> None:
        await self.workspace.editor.save()

    @work(exclusive=True, group="editor")
    async def _delete_note(self) -> None:
        await self.workspace.editor.delete()

    @work(exclusive=True, group="session")
    async def _logout(self) -> None:
        await self.workspace.session.sign_out()

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def action_add_note(self) -> None:
        if not self.workspace.session.is_authenticated or self.workspace.editor.state.creating:
            return
        self.workspace.editor.add_note()

    def action_edit_note(self) -> None:
        self.workspace.editor.edit()

    def action_save_note(self) -> None:
        if self.workspace.editor.mode is EditorMode.EDITING:
            self._save_note()

    def action_delete_note(self) -> None:
        if self.workspace.editor.selected is not None:
            self._delete_note()

    def action_cancel_edit(self) -> None:
        self.workspace.editor.cancel()

    def action_toggle_theme(self) -> None:
        self.theme = THEMES["light"] if self.theme == THEMES["dark"] else THEMES["dark"]

    def action_logout(self) -> None:
        if self.workspace.session.is_authenticated:
            log_with_source(logger, "tui", "info", "Logout requested")
            self._logout()
