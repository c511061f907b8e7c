"""
Remote Data Access Layer.

Authentication and owner-scoped note CRUD against the remote notes
service. Services depend only on the NotesGateway contract.
"""
