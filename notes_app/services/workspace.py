"""
Workspace Service.

Composition root for the client state. Owns the gateway and the three
services, and wires them together:

    login   -> collection loads the new owner's notes
    logout  -> collection cleared, editor back to browsing

Constructed once at startup and closed once at shutdown. After `close()`
no session callback, debounced search or observer fires.

Usage:
    workspace = WorkspaceService.from_config(gateway, presenter)
    await workspace.start()
    ...
    await workspace.close()
"""

from collections.abc import Callable

from notes_app.core.config import get_app_config
from notes_app.core.logging import get_logger, log_with_source
from notes_app.remote.gateway import NotesGateway
from notes_app.schemas.identity import Identity
from notes_app.services.base import Presenter, StateObserver
from notes_app.services.collection import CollectionService
from notes_app.services.editor import EditorService
from notes_app.services.session import SessionService

logger = get_logger(__name__)


class WorkspaceService:
    """Single owned instance holding all client-side state."""

    def __init__(
        self,
        gateway: NotesGateway,
        presenter: Presenter,
        debounce_seconds: float = 0.3,
        title_max_length: int = 120,
        min_password_length: int = 6,
    ) -> None:
        self.gateway = gateway
        self.session = SessionService(gateway, presenter, min_password_length=min_password_length)
        self.collection = CollectionService(gateway, presenter, debounce_seconds=debounce_seconds)
        self.editor = EditorService(
            gateway,
            presenter,
            session=self.session,
            collection=self.collection,
            title_max_length=title_max_length,
        )
        self._disposers: list[Callable[[], None]] = [
            self.session.add_identity_listener(self._on_identity_change),
        ]
        self._closed = False

    @classmethod
    def from_config(cls, gateway: NotesGateway, presenter: Presenter) -> "WorkspaceService":
        """Build a workspace with limits and timings from application.yaml."""
        app = get_app_config().application
        return cls(
            gateway,
            presenter,
            debounce_seconds=app.search.debounce_ms / 1000,
            title_max_length=app.notes.title_max_length,
            min_password_length=app.auth.min_password_length,
        )

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Observe state changes of every service. Returns one disposer for all."""
        disposers = [
            self.session.subscribe(observer),
            self.collection.subscribe(observer),
            self.editor.subscribe(observer),
        ]
        self._disposers.extend(disposers)

        def dispose() -> None:
            for disposer in disposers:
                disposer()

        return dispose

    async def start(self) -> None:
        log_with_source(logger, "internal", "info", "Workspace starting")
        await self.session.start()

    async def close(self) -> None:
        """Tear down subscriptions, pending timers and the gateway. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self.collection.close()
        await self.session.close()
        for disposer in self._disposers:
            disposer()
        self._disposers.clear()
        await self.gateway.close()
        log_with_source(logger, "internal", "info", "Workspace closed")

    async def _on_identity_change(self, identity: Identity | None) -> None:
        if identity is None:
            self.collection.clear()
            self.editor.reset()
            return
        self.editor.reset()
        await self.collection.set_owner(identity.id)
