"""
Client-side state machines.

Services own all application state. The presentation layer only reads
their state and forwards user actions to them.
"""
