"""
Notes Manager.

- core/: configuration, logging, exceptions, scheduling
- schemas/: pydantic models for identities, notes and drafts
- remote/: data access layer for the remote notes service (httpx)
- services/: session, notes collection and editor state machines
- tui/: terminal user interface (Textual)
"""
