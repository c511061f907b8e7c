# Pydantic schemas package
from notes_app.schemas.identity import Identity, SessionEvent
from notes_app.schemas.note import Draft, Note

__all__ = [
    "Draft",
    "Identity",
    "Note",
    "SessionEvent",
]
