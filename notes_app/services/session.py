"""
Session Service.

Tracks the authenticated identity. Everything else in the application is
gated on it: without an identity only the auth form is reachable.

States:
    CHECKING         - initial identity check in flight
    UNAUTHENTICATED  - no identity; auth form shown
    AUTHENTICATED    - exactly one identity held

Identity changes are pushed to registered identity listeners, which is how
the notes collection learns to load on login and to clear on logout.
"""

from collections.abc import Awaitable, Callable
from enum import Enum

from notes_app.core.exceptions import ApplicationError
from notes_app.remote.gateway import NotesGateway, Unsubscribe
from notes_app.schemas.identity import Identity, SessionEvent
from notes_app.services.base import BaseService, Presenter

IdentityListener = Callable[[Identity | None], Awaitable[None]]

SIGN_UP_SUCCESS_MESSAGE = "Sign up successful, now you can log in."


class SessionStatus(str, Enum):
    CHECKING = "checking"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class AuthView(str, Enum):
    SIGN_IN = "sign-in"
    SIGN_UP = "sign-up"


class SessionService(BaseService):
    """Holds the current identity and reacts to sign-in, sign-up and sign-out."""

    log_source = "session"

    def __init__(
        self,
        gateway: NotesGateway,
        presenter: Presenter,
        min_password_length: int = 6,
    ) -> None:
        super().__init__(gateway, presenter)
        self.min_password_length = min_password_length
        self.status = SessionStatus.CHECKING
        self.identity: Identity | None = None
        self.auth_view = AuthView.SIGN_IN
        self._identity_listeners: list[IdentityListener] = []
        self._unsubscribe: Unsubscribe | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.status is SessionStatus.AUTHENTICATED

    def add_identity_listener(self, listener: IdentityListener) -> Callable[[], None]:
        """Register an async listener called with the new identity (or None)."""
        self._identity_listeners.append(listener)

        def dispose() -> None:
            if listener in self._identity_listeners:
                self._identity_listeners.remove(listener)

        return dispose

    async def start(self) -> None:
        """Subscribe to session changes and resolve the initial identity."""
        if self._unsubscribe is None:
            self._unsubscribe = self.gateway.subscribe_to_session_changes(self._on_session_change)

        try:
            identity = await self.gateway.get_current_identity()
        except ApplicationError as e:
            self._log("warning", "Identity check failed", error=e.message)
            identity = None

        if self.status is SessionStatus.CHECKING or identity is not None:
            await self._set_identity(identity)

    async def close(self) -> None:
        """Release the session-change subscription. No callback fires afterwards."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._identity_listeners.clear()

    def toggle_auth_view(self) -> None:
        self.auth_view = AuthView.SIGN_UP if self.auth_view is AuthView.SIGN_IN else AuthView.SIGN_IN
        self._publish()

    async def sign_in(self, email: str, password: str) -> bool:
        """
        Sign in with email and password.

        Returns:
            True when authenticated; False after a surfaced failure
        """
        try:
            self._validate_credentials(email, password)
            await self.gateway.sign_in_with_password(email.strip(), password)
            if not self.is_authenticated:
                # Handler may not have delivered the identity; ask for it.
                identity = await self.gateway.get_current_identity()
                if identity is None:
                    raise ApplicationError("Sign in did not return a session.", code="AUTH_NO_SESSION")
                await self._set_identity(identity)
        except ApplicationError as e:
            self._report_failure("sign_in", e)
            return False

        self.auth_view = AuthView.SIGN_IN
        self._log("info", "Signed in", user_id=self.identity.id if self.identity else None)
        self._publish()
        return True

    async def sign_up(self, email: str, password: str) -> bool:
        """
        Register an account. Never authenticates; the user signs in afterwards.

        Returns:
            True on success; False after a surfaced failure
        """
        try:
            self._validate_credentials(email, password)
            await self.gateway.sign_up(email.strip(), password)
        except ApplicationError as e:
            self._report_failure("sign_up", e)
            return False

        self.auth_view = AuthView.SIGN_IN
        self._log("info", "Signed up")
        self._presenter.show_message(SIGN_UP_SUCCESS_MESSAGE)
        self._publish()
        return True

    async def sign_out(self) -> None:
        """Sign out remotely (best effort) and reset all local state."""
        try:
            await self.gateway.sign_out()
        except ApplicationError as e:
            self._log("warning", "Remote sign-out failed", error=e.message)
        await self._set_identity(None)

    def _validate_credentials(self, email: str, password: str) -> None:
        self._validate_required({"email": email, "password": password}, ["email", "password"])
        self._validate_string_length(password, "password", min_length=self.min_password_length)

    async def _on_session_change(self, event: SessionEvent, identity: Identity | None) -> None:
        self._log("debug", "Session change received", session_event=event.value)
        if event is SessionEvent.SIGNED_OUT:
            await self._set_identity(None)
        elif identity is not None:
            await self._set_identity(identity)

    async def _set_identity(self, identity: Identity | None) -> None:
        previous = self.identity
        self.identity = identity
        self.status = SessionStatus.AUTHENTICATED if identity else SessionStatus.UNAUTHENTICATED

        changed = (previous.id if previous else None) != (identity.id if identity else None)
        if changed:
            if identity is None:
                self._log("info", "Session ended", user_id=previous.id if previous else None)
            for listener in list(self._identity_listeners):
                await listener(identity)
        self._publish()
