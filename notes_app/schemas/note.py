"""
Note Schemas.

Pydantic models for persisted notes, the rows sent to the remote store,
and the transient editor draft.
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from notes_app.schemas.base import WireModel


class Note(WireModel):
    """A persisted, owned note as returned by the remote store."""

    id: str = Field(description="Note unique identifier, assigned by the store")
    owner_id: str = Field(alias="user_id", description="Identifier of the owning user")
    title: str = Field(description="Note title")
    content: str = Field(default="", description="Note content")
    created_at: datetime | None = Field(default=None, description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp, the ordering key")

    @field_validator("content", mode="before")
    @classmethod
    def _null_content_is_empty(cls, value: str | None) -> str:
        return "" if value is None else value

    def __repr__(self) -> str:
        return f"<Note(id={self.id}, title={self.title!r})>"


class NoteInsert(BaseModel):
    """Row sent to create a note."""

    user_id: str
    title: str
    content: str = ""


class NoteChanges(BaseModel):
    """Columns sent to update a note. Dump with mode="json" for the wire."""

    title: str
    content: str = ""
    updated_at: datetime


class Draft(BaseModel):
    """In-progress title and content of a note being created or edited."""

    title: str = ""
    content: str = ""

    @classmethod
    def from_note(cls, note: Note) -> "Draft":
        return cls(title=note.title, content=note.content)
