"""
Notes Collection Service.

Loads and caches the current user's notes, filtered by a title search term
and ordered newest update first. Search-term changes are debounced so a
burst of keystrokes triggers a single reload with the final term.

Load failures are not surfaced: the list simply becomes empty. Loads for
the same owner are not fenced; whichever response arrives last wins. A
response for an owner that is no longer current is dropped.
"""

from notes_app.core.exceptions import ApplicationError
from notes_app.core.scheduling import Debouncer
from notes_app.remote.gateway import NotesGateway
from notes_app.schemas.note import Note
from notes_app.services.base import BaseService, Presenter


class CollectionService(BaseService):
    """Owner-scoped, searchable notes list."""

    log_source = "notes"

    def __init__(
        self,
        gateway: NotesGateway,
        presenter: Presenter,
        debounce_seconds: float = 0.3,
    ) -> None:
        super().__init__(gateway, presenter)
        self.notes: list[Note] = []
        self.loading = False
        self._loads_in_flight = 0
        self.search_term = ""
        self.owner_id: str | None = None
        self._search_debouncer = Debouncer(debounce_seconds, self.reload, name="search")

    def find(self, note_id: str) -> Note | None:
        return next((note for note in self.notes if note.id == note_id), None)

    async def load(self, owner_id: str, search_term: str = "") -> list[Note]:
        """
        Fetch the owner's notes whose title contains `search_term`.

        Returns:
            The loaded list; empty when the request failed
        """
        current_owner = self.owner_id
        self._loads_in_flight += 1
        self.loading = True
        self._publish()
        try:
            notes = await self.gateway.list_notes(owner_id, search_term)
        except ApplicationError as e:
            self._log("warning", "Loading notes failed", code=e.code, error=e.message)
            notes = []
        finally:
            self._loads_in_flight -= 1
            self.loading = self._loads_in_flight > 0

        if self.owner_id != current_owner:
            # Signed out or switched user while the request was in flight.
            self._log("debug", "Discarding notes of a previous owner")
            self._publish()
            return []

        self.notes = notes
        self._log("debug", "Notes loaded", count=len(notes), search_term=search_term)
        self._publish()
        return notes

    async def reload(self) -> list[Note]:
        """Load again for the current owner and search term. No-op when signed out."""
        if self.owner_id is None:
            return []
        return await self.load(self.owner_id, self.search_term)

    async def set_owner(self, owner_id: str) -> list[Note]:
        """Switch to a newly authenticated owner and load their notes."""
        self._search_debouncer.cancel()
        self.owner_id = owner_id
        return await self.reload()

    def set_search_term(self, term: str) -> None:
        """Record the search term and schedule a debounced reload."""
        if term == self.search_term:
            return
        self.search_term = term
        self._publish()
        if self.owner_id is not None:
            self._search_debouncer.trigger()

    def clear(self) -> None:
        """Forget the owner and the loaded notes."""
        self._search_debouncer.cancel()
        self.owner_id = None
        self.notes = []
        self.loading = False
        self._publish()

    def close(self) -> None:
        """Cancel any pending debounced reload; it will not fire."""
        self._search_debouncer.close()
