"""
Base Service.

Base class for the client-side services. Services hold application state,
call the remote gateway, validate user input and report outcomes to the
user through a Presenter.

Usage:
    from notes_app.services.base import BaseService

    class TagService(BaseService):
        async def rename(self, tag: Tag, name: str) -> bool:
            try:
                self._validate_required({"name": name}, ["name"])
                await self.gateway.rename_tag(tag.id, name)
            except ApplicationError as e:
                self._report_failure("rename_tag", e)
                return False
            self._publish()
            return True
"""

from collections.abc import Callable
from typing import Any, Protocol

from notes_app.core.exceptions import ApplicationError, ValidationError
from notes_app.core.logging import get_logger, log_with_source
from notes_app.remote.gateway import NotesGateway

StateObserver = Callable[[], None]


class Presenter(Protocol):
    """The user-facing surface services report to."""

    def show_message(self, message: str, severity: str = "information") -> None:
        """Show a message. Severity is information, warning or error."""

    async def confirm(self, question: str) -> bool:
        """Ask a yes/no question and wait for the answer."""


class BaseService:
    """
    Base class for all services.

    Provides:
    - Gateway and presenter access
    - State-change observers for the presentation layer
    - Logging with an explicit source
    - Common validation patterns

    Subclasses should:
    - Set `log_source` to their log source name
    - Call `_publish()` after every state change
    """

    log_source = "internal"

    def __init__(self, gateway: NotesGateway, presenter: Presenter) -> None:
        """
        Initialize the service.

        Args:
            gateway: Remote data access contract
            presenter: Where messages and confirmations go
        """
        self._gateway = gateway
        self._presenter = presenter
        self._observers: list[StateObserver] = []
        self._logger = get_logger(self.__class__.__module__)

    @property
    def gateway(self) -> NotesGateway:
        """Get the remote gateway."""
        return self._gateway

    def subscribe(self, observer: StateObserver) -> Callable[[], None]:
        """Register a state observer. Returns its disposer."""
        self._observers.append(observer)

        def dispose() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return dispose

    def _publish(self) -> None:
        """Notify observers that state changed."""
        for observer in list(self._observers):
            observer()

    def _report_failure(self, operation: str, error: ApplicationError) -> None:
        """Log a failed operation and show its message to the user."""
        level = "info" if isinstance(error, ValidationError) else "warning"
        self._log(level, "Operation failed", operation=operation, code=error.code, error=error.message)
        self._presenter.show_message(error.message, severity="error")

    def _validate_required(
        self,
        fields: dict[str, Any],
        field_names: list[str],
    ) -> None:
        """
        Validate that required fields are present and not blank.

        Raises:
            ValidationError: If any required field is missing or empty
        """
        missing = []
        for name in field_names:
            value = fields.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                missing.append(name)

        if missing:
            label = ", ".join(name.capitalize() for name in missing)
            verb = "is" if len(missing) == 1 else "are"
            raise ValidationError(
                f"{label} {verb} required.",
                details={"missing_fields": missing},
            )

    def _validate_string_length(
        self,
        value: str,
        field_name: str,
        min_length: int | None = None,
        max_length: int | None = None,
    ) -> None:
        """
        Validate string length constraints.

        Raises:
            ValidationError: If string length is out of bounds
        """
        label = field_name.capitalize()
        if min_length is not None and len(value) < min_length:
            raise ValidationError(
                f"{label} must be at least {min_length} characters.",
                details={field_name: f"Minimum length is {min_length}"},
            )
        if max_length is not None and len(value) > max_length:
            raise ValidationError(
                f"{label} must be at most {max_length} characters.",
                details={field_name: f"Maximum length is {max_length}"},
            )

    def _log(self, level: str, message: str, **context: Any) -> None:
        log_with_source(
            self._logger,
            self.log_source,
            level,
            message,
            service=self.__class__.__name__,
            **context,
        )
